"""
Customers module.

Scope:
- Customers CRUD with CPF/phone masks and optional category
- Searches by name, CPF, category and active flag
"""
