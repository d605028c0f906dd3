from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError, field_validator

from pos_catalog.errors import MalformedRemoteData
from pos_catalog.integrations.contracts.catalog import CatalogEntry

logger = logging.getLogger(__name__)

CODE_KEYS = ("code", "codigo", "codigoProduto", "codigo_produto", "product_code", "productCode", "id")
NAME_KEYS = ("name", "nome", "nomeProduto", "nome_produto", "product_name", "productName", "descricao", "description")
PRICE_KEYS = ("unit_price", "unitPrice", "price", "valorVenda", "valor_venda", "preco", "sale_price")
STOCK_KEYS = ("stock_quantity", "stockQuantity", "stock", "estoque", "quantity", "qty")

# "1.200" is twelve hundred in pt-BR sheets
THOUSANDS_INT = re.compile(r"^-?\d{1,3}(\.\d{3})+$")


class CatalogRecordModel(BaseModel):
    code: int
    name: str = ""
    unit_price: Decimal = Decimal("0")
    stock_quantity: int = Field(default=0)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    def to_entry(self) -> CatalogEntry:
        return CatalogEntry(
            code=self.code,
            name=self.name,
            unit_price=self.unit_price,
            stock_quantity=self.stock_quantity,
        )


def extract_records(body: Any, data_field: str = "data") -> List[Any]:
    """Return the record array of a response body.

    Accepts a flat JSON array or an object carrying the array under
    ``data_field`` (dotted paths such as ``payload.items`` are followed).
    """
    if isinstance(body, list):
        return body

    node = body
    for part in data_field.split("."):
        if not isinstance(node, dict) or part not in node:
            raise MalformedRemoteData(f"Response has no '{data_field}' array", payload={"body_type": type(body).__name__})
        node = node[part]

    if not isinstance(node, list):
        raise MalformedRemoteData(f"Response field '{data_field}' is not an array", payload={"field_type": type(node).__name__})
    return node


def normalize_record(raw: Dict[str, Any]) -> Optional[CatalogEntry]:
    """Map one remote record to a CatalogEntry, or None when it has no usable code."""
    if not isinstance(raw, dict):
        return None

    code = _parse_int(_first_non_empty(raw, *CODE_KEYS))
    if code is None:
        return None

    payload = {
        "code": code,
        "name": _first_non_empty(raw, *NAME_KEYS, default=""),
        "unit_price": _parse_decimal(_first_non_empty(raw, *PRICE_KEYS)) or Decimal("0"),
        "stock_quantity": _parse_int(_first_non_empty(raw, *STOCK_KEYS)) or 0,
    }
    try:
        return CatalogRecordModel(**payload).to_entry()
    except ValidationError as exc:
        logger.debug("Dropping catalog record %r: %s", raw, exc)
        return None


def normalize_row(row: Sequence[Any], columns) -> Optional[CatalogEntry]:
    """Map one spreadsheet row using the configured column indexes."""
    def cell(index: int) -> Any:
        return row[index] if index < len(row) else None

    return normalize_record(
        {
            "code": cell(columns.code),
            "name": cell(columns.name),
            "unit_price": cell(columns.unit_price),
            "stock_quantity": cell(columns.stock_quantity),
        }
    )


def normalize_records(records: Sequence[Any], columns=None) -> List[CatalogEntry]:
    entries: List[CatalogEntry] = []
    dropped = 0
    for raw in records:
        if columns is not None and isinstance(raw, (list, tuple)):
            entry = normalize_row(raw, columns)
        else:
            entry = normalize_record(raw)
        if entry is None:
            dropped += 1
            continue
        entries.append(entry)
    if dropped:
        logger.debug("Dropped %d catalog records without a usable code", dropped)
    return entries


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if THOUSANDS_INT.match(text):
        text = text.replace(".", "")
    try:
        return int(text)
    except ValueError:
        pass
    number = _parse_decimal(text)
    if number is not None and number == number.to_integral_value():
        return int(number)
    return None


def _parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse 1234.56, '1234.56', '1.234,56' or 'R$ 12,90'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    text = str(value).strip().replace("R$", "").replace(" ", "")
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None
