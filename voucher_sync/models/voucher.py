"""
Payload del voucher que se envía a ``POST {base}/vouchers``.
"""
from __future__ import annotations
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from voucher_sync.models.invoice import InvoiceRecord

SALES_INVOICE = "salesinvoice"
TAX_TYPE_NET = "net"
TAX_TYPE_GROSS = "gross"
# Categoría contable "Innergemeinschaftliche Lieferung" (entrega intracomunitaria)
INTRA_COMMUNITY_SUPPLY_CATEGORY_ID = "9075a4e3-66de-4795-a016-3889feca0d20"


# Con hasta 15 dígitos significativos el float más corto que lo representa
# se escribe en JSON con los mismos dígitos que el Decimal
MAX_WIRE_DIGITS = 15


def wire_number(value: Decimal) -> float:
    """
    Convierte un importe Decimal en el número JSON que espera el servicio.

    La conversión es exacta en el texto JSON resultante (p. ej. ``1234.56``)
    mientras el valor no supere :data:`MAX_WIRE_DIGITS` dígitos significativos;
    si los supera se lanza ``ValueError`` en lugar de redondear en silencio.
    """
    if not value.is_finite() or len(value.normalize().as_tuple().digits) > MAX_WIRE_DIGITS:
        raise ValueError(f"Importe {value} no representable sin pérdida en JSON")
    return float(value)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class VoucherItem(_CamelModel):
    amount: Decimal
    tax_amount: Decimal
    tax_rate_percent: Decimal
    category_id: str = INTRA_COMMUNITY_SUPPLY_CATEGORY_ID

    @field_serializer("amount", "tax_amount", "tax_rate_percent", when_used="json")
    def decimal_as_number(self, value: Decimal) -> float:
        return wire_number(value)


class VoucherRequest(_CamelModel):
    voucher_type: str = Field(SALES_INVOICE, alias="type")
    voucher_number: str
    voucher_date: str
    shipping_date: str
    due_date: Optional[str] = None
    total_gross_amount: Decimal
    total_tax_amount: Decimal
    tax_type: str
    contact_id: str
    voucher_items: List[VoucherItem]

    @field_serializer("total_gross_amount", "total_tax_amount", when_used="json")
    def decimal_as_number(self, value: Decimal) -> float:
        return wire_number(value)

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def build_voucher_request(invoice: InvoiceRecord, contact_id: str) -> VoucherRequest:
    """
    Construye el voucher de venta para una factura.

    El impuesto total se calcula como ``net - final_amount`` tal cual, conservando
    el signo, para cuadrar con el total contable del export.
    """
    tax_amount = invoice.net - invoice.final_amount
    return VoucherRequest(
        voucher_type=SALES_INVOICE,
        voucher_number=invoice.invoice_number,
        voucher_date=invoice.formatted_invoice_date(),
        shipping_date=invoice.formatted_delivery_date(),
        due_date=None,
        total_gross_amount=invoice.final_amount,
        total_tax_amount=tax_amount,
        tax_type=TAX_TYPE_NET if invoice.is_business_to_business() else TAX_TYPE_GROSS,
        contact_id=contact_id,
        voucher_items=[
            VoucherItem(
                amount=invoice.final_amount,
                tax_amount=tax_amount,
                tax_rate_percent=invoice.vat,
            )
        ],
    )
