"""
Report Catalog

Importing this package registers every built-in report with the default
registry.
"""

from . import analytics, customers, delivery, expenses, inventory, orders, payments, sales

__all__ = [
    "analytics",
    "customers",
    "delivery",
    "expenses",
    "inventory",
    "orders",
    "payments",
    "sales",
]
