"""
Data Generation Module
"""
from .generators import (
    CatalogGenerator,
    ClickstreamGenerator,
    CustomerGenerator,
    ExpenseGenerator,
    OrderGenerator,
    StorefrontGenerator,
)

__all__ = [
    "StorefrontGenerator",
    "CatalogGenerator",
    "CustomerGenerator",
    "OrderGenerator",
    "ExpenseGenerator",
    "ClickstreamGenerator",
]
