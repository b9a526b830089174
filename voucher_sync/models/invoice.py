"""
Registro de factura leído del export CSV.
"""
from __future__ import annotations
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

from voucher_sync.errors import MalformedInvoiceNumber, PrefixNotConfigured
from voucher_sync.utils.formats import format_iso_date, parse_german_date, parse_german_decimal

ACCEPTED_CURRENCY = "EUR"
BUSINESS_TO_BUSINESS = "B2B"
PREFIX_SEPARATOR = "-"
ATTACHMENT_EXTENSION = ".pdf"


class PrefixResolver(Protocol):
    def resolve_prefix_path(self, prefix: str) -> str:
        ...


class InvoiceRecord(BaseModel):
    """Una línea del CSV de facturas. Inmutable tras la lectura."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    invoice_number: str = Field(..., alias="Rechnungsnummer", min_length=1)
    internal_reference: Optional[str] = Field(None, alias="Interne Referenz")
    invoice_date: date = Field(..., alias="Rechnungsdatum")
    delivery_date: date = Field(..., alias="Lieferdatum")
    net: Decimal = Field(..., alias="Netto")
    vat: Decimal = Field(..., alias="USt. Rate (%)")
    final_amount: Decimal = Field(..., alias="Endbetrag")
    currency: str = Field(..., alias="Währung")
    transaction_type: str = Field("", alias="Transaktionsart")
    billing_address: str = Field("", alias="Rechnungsadresse")

    @field_validator("invoice_date", "delivery_date", mode="before")
    @classmethod
    def german_date(cls, v):
        return parse_german_date(v)

    @field_validator("net", "vat", "final_amount", mode="before")
    @classmethod
    def german_decimal(cls, v):
        return parse_german_decimal(v)

    @field_validator("internal_reference", mode="before")
    @classmethod
    def empty_reference_is_none(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("transaction_type", "billing_address", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return "" if v is None else v

    # ------------------------------------------------------------------
    def is_valid(self) -> bool:
        """True si la factura se puede subir (solo se acepta EUR)."""
        return self.currency == ACCEPTED_CURRENCY

    def resolved_number(self) -> str:
        """Referencia interna si existe; si no, el número de factura."""
        return self.internal_reference or self.invoice_number

    def is_business_to_business(self) -> bool:
        return self.transaction_type.upper() == BUSINESS_TO_BUSINESS

    def formatted_invoice_date(self) -> str:
        return format_iso_date(self.invoice_date)

    def formatted_delivery_date(self) -> str:
        return format_iso_date(self.delivery_date)

    def month_year_segment(self) -> str:
        # Carpeta mensual: mes con dos dígitos y año completo, p. ej. "03-2024"
        return f"{self.invoice_date.month:02d}-{self.invoice_date.year}"

    def prefix(self) -> str:
        number = self.resolved_number()
        head, sep, _ = number.partition(PREFIX_SEPARATOR)
        if not sep or not head:
            raise MalformedInvoiceNumber(number)
        return head

    def attachment_path(self, resolver: PrefixResolver) -> Path:
        """
        Ruta local del PDF: <carpeta del prefijo>/<MM-YYYY>/<número>.pdf

        Raises:
            MalformedInvoiceNumber: Si el número resuelto no tiene prefijo
            PrefixNotConfigured: Si el resolver no conoce carpeta para el prefijo
        """
        prefix = self.prefix()
        folder = resolver.resolve_prefix_path(prefix)
        if not folder:
            raise PrefixNotConfigured(prefix)
        return (
            Path(folder).expanduser()
            / self.month_year_segment()
            / f"{self.invoice_number}{ATTACHMENT_EXTENSION}"
        )
