# voucher_sync/core/__init__.py

"""
Módulo core - Componentes fundamentales del sistema.
"""
from voucher_sync.core.config import Settings, load_config
from voucher_sync.core.app import SyncDriver, SyncState, SyncSummary, pending_invoices

__all__ = [
    # Config
    'Settings',
    'load_config',

    # Driver
    'SyncDriver',
    'SyncState',
    'SyncSummary',
    'pending_invoices',
]
