"""
Offerings (services sold to customers), priced in the configured currency.
"""
