"""
Contract line items. Final value = quantity * unit value - discount.
"""
