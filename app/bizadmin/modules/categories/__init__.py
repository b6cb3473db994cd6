"""
Customer categories (e.g. Standard, Premium) with their benefits text.
Customers and offerings reference a category.
"""
