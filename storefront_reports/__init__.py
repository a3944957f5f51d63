"""
Storefront Reports

Reporting aggregation engine for a storefront back-office.
"""

__version__ = "1.0.0"
