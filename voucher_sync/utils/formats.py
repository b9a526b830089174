# voucher_sync/utils/formats.py
"""
Conversión de los formatos alemanes usados por el export de facturas.

- Fechas: ``DD.MM.YYYY``
- Decimales: coma o punto como separador decimal (``"1.234,56"`` también se acepta)
"""
from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

GERMAN_DATE_FORMAT = "%d.%m.%Y"
ISO_DATE_FORMAT = "%Y-%m-%d"


def parse_german_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Fecha vacía o inválida: {value!r}")
    return datetime.strptime(value.strip(), GERMAN_DATE_FORMAT).date()


def parse_german_decimal(value: Any) -> Decimal:
    """
    Convierte un importe del CSV a Decimal sin pasar nunca por float.

    "119,00" -> Decimal("119.00"); "1.234,56" -> Decimal("1234.56");
    "19.5" -> Decimal("19.5").
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Importe vacío o inválido: {value!r}")
    text = value.strip().replace(" ", "")
    if "," in text:
        # Formato alemán: el punto es separador de miles
        text = text.replace(".", "").replace(",", ".")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Importe no numérico: {value!r}") from exc


def format_iso_date(value: date) -> str:
    return value.strftime(ISO_DATE_FORMAT)
