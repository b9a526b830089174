# voucher_sync/models/__init__.py

"""
Módulo models - Tipos de datos y estructuras.
"""
from voucher_sync.models.invoice import (
    ACCEPTED_CURRENCY,
    InvoiceRecord,
    PrefixResolver,
)
from voucher_sync.models.voucher import (
    INTRA_COMMUNITY_SUPPLY_CATEGORY_ID,
    VoucherItem,
    VoucherRequest,
    build_voucher_request,
)

__all__ = [
    'ACCEPTED_CURRENCY',
    'InvoiceRecord',
    'PrefixResolver',
    'INTRA_COMMUNITY_SUPPLY_CATEGORY_ID',
    'VoucherItem',
    'VoucherRequest',
    'build_voucher_request',
]
