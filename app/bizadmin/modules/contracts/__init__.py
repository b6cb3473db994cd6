"""
Contracts between a customer and the business. The total value is derived
from the contract's line items.
"""
