from .budget import (
    BudgetItem,
    DeliveryAddress,
    budget_total,
    build_budget_item,
    format_budget_message,
    search_products,
)

__all__ = [
    "BudgetItem",
    "DeliveryAddress",
    "budget_total",
    "build_budget_item",
    "format_budget_message",
    "search_products",
]
