"""Budget (quote) lines built from cached catalog entries.

A budget line is a catalog entry, a quantity and a discount percentage. The
text summary produced by ``format_budget_message`` is what the seller sends
to the customer.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from pos_catalog.errors import QuoteValidationError
from pos_catalog.integrations.contracts.catalog import CatalogEntry
from pos_catalog.utils.formatting import format_brl, format_decimal, to_cents

PAYMENT_METHODS = ("Pix", "Crédito", "Débito")
SEARCH_LIMIT = 100


@dataclass(frozen=True)
class BudgetItem:
    code: int
    name: str
    unit_price: Decimal
    quantity: int
    discount_percent: Decimal
    total: Decimal

    @property
    def discount_amount(self) -> Decimal:
        return to_cents(self.unit_price * self.discount_percent / Decimal(100))


@dataclass
class DeliveryAddress:
    street: Optional[str] = None
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    cep: Optional[str] = None


def search_products(entries: Iterable[CatalogEntry], term: str, limit: int = SEARCH_LIMIT) -> List[CatalogEntry]:
    """Entries whose name contains ``term`` (case-insensitive) or whose code contains it."""
    needle = (term or "").strip().lower()
    if not needle:
        return []
    matches = [e for e in entries if needle in e.name.lower() or needle in str(e.code)]
    return matches[: max(0, limit)]


def _as_decimal(value: Any, field: str, errors: Dict[str, str]) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        errors.setdefault(field, f"{field} must be a number")
        return Decimal(0)


def build_budget_item(entry: CatalogEntry, quantity: Any, discount_percent: Any = 0) -> BudgetItem:
    errors: Dict[str, str] = {}

    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        qty = 0
        errors["quantity"] = "Quantidade deve ser um número inteiro"
    if "quantity" not in errors and qty < 1:
        errors["quantity"] = "Quantidade deve ser maior que 0"

    discount = _as_decimal(discount_percent, "discount", errors)
    if "discount" not in errors:
        if discount < 0:
            errors["discount"] = "Desconto não pode ser negativo"
        elif discount > 100:
            errors["discount"] = "Desconto não pode ser maior que 100%"

    if errors:
        raise QuoteValidationError(errors)

    gross = entry.unit_price * qty
    total = to_cents(gross - gross * discount / Decimal(100))
    return BudgetItem(
        code=entry.code,
        name=entry.name,
        unit_price=entry.unit_price,
        quantity=qty,
        discount_percent=discount,
        total=total,
    )


def _percent(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return format_decimal(value)


def budget_total(items: Iterable[BudgetItem]) -> Decimal:
    return to_cents(sum((item.total for item in items), Decimal(0)))


def format_budget_message(
    items: List[BudgetItem],
    payment_method: str,
    address: Optional[DeliveryAddress] = None,
    has_delivery: bool = False,
) -> str:
    if not items:
        return "Não há itens no orçamento para formatar."

    message = "\n\n📋 *Orçamento*\n\n"

    if address is not None:
        message += "🏠 *Endereço de Entrega:*\n"
        message += f"{address.street or 'Não informado'}, {address.number or 'S/N'}\n"
        message += f"{address.neighborhood or 'Não informado'}\n"
        message += f"{address.city or 'Não informado'} - {address.state or 'Não informado'}\n"
        message += f"CEP: {address.cep or 'Não informado'}\n\n"

    message += "🛍️ *Itens do Orçamento:*\n"
    for index, item in enumerate(items, start=1):
        message += f"\n*{index}. {item.name}*\n"
        message += f"Quantidade: {item.quantity}\n"
        message += f"Preço Unitário: {format_brl(item.unit_price)}\n"
        message += f"Desconto: {_percent(item.discount_percent)}% ({format_brl(item.discount_amount)})\n"
        message += f"Subtotal: {format_brl(item.total)}\n"

    message += "\n💰 *Resumo:*\n"
    message += f"Total Geral: {format_brl(budget_total(items))}\n"
    message += f"Método de Pagamento: {payment_method}\n"
    message += f"Entrega: {'Com Entrega' if has_delivery else 'Sem Entrega'}"
    return message
