# voucher_sync/modules/__init__.py
"""
Módulo modules - Integración con el disco, el operador y el servicio remoto.
"""
from voucher_sync.modules.invoice_source import read_invoices
from voucher_sync.modules.ledger import CompletedLedger, load_ledger, save_ledger
from voucher_sync.modules.resolver import ConfigResolver, Credentials, Resolver
from voucher_sync.modules.voucher_client import VoucherClient

__all__ = [
    'read_invoices',
    'CompletedLedger',
    'load_ledger',
    'save_ledger',
    'ConfigResolver',
    'Credentials',
    'Resolver',
    'VoucherClient',
]
