# voucher_sync/core/app.py
from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from voucher_sync.core.config import Settings
from voucher_sync.errors import VoucherSyncError
from voucher_sync.models.invoice import InvoiceRecord
from voucher_sync.modules.invoice_source import read_invoices
from voucher_sync.modules.ledger import CompletedLedger, load_ledger, save_ledger
from voucher_sync.modules.resolver import ConfigResolver, Resolver
from voucher_sync.modules.voucher_client import VoucherClient
from voucher_sync.services.uploader import VoucherUploader
from voucher_sync.utils.logger import get_logger

logger = get_logger("SyncDriver")


class SyncState(str, Enum):
    LOADING = "loading"
    UPLOADING = "uploading"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass
class SyncSummary:
    """Resultado de una ejecución."""
    total: int = 0
    already_done: int = 0
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)


def pending_invoices(
    invoices: List[InvoiceRecord], ledger: CompletedLedger
) -> List[InvoiceRecord]:
    """
    Facturas que aún no están en el ledger, en el orden del CSV.

    Una factura se considera hecha si su número o su número resuelto (referencia
    interna) ya figuran en el ledger.
    """
    return [
        inv for inv in invoices
        if not ledger.contains(inv.invoice_number)
        and not ledger.contains(inv.resolved_number())
    ]


class SyncDriver:
    """
    Orquesta la sincronización completa.

    Flujo:
    1. LOADING: lee el CSV de facturas y el ledger (ausente = vacío)
    2. UPLOADING: sube cada factura pendiente de forma secuencial; un fallo no
       detiene la ejecución
    3. PERSISTING: reescribe el ledger con las entradas previas más las nuevas,
       haya o no fallos
    """

    def __init__(
        self,
        cfg: Settings,
        uploader: VoucherUploader,
        resolver: Resolver,
        invoice_reader: Callable[..., List[InvoiceRecord]] = read_invoices,
        ledger_loader: Callable[[Path], CompletedLedger] = load_ledger,
        ledger_saver: Callable[[Path, CompletedLedger], None] = save_ledger,
    ):
        self.cfg = cfg
        self.uploader = uploader
        self.resolver = resolver
        self._read_invoices = invoice_reader
        self._load_ledger = ledger_loader
        self._save_ledger = ledger_saver
        self.state: Optional[SyncState] = None

    @classmethod
    def from_settings(cls, cfg: Settings, resolver: Optional[Resolver] = None) -> "SyncDriver":
        resolver = resolver or ConfigResolver(cfg.RESOLVER_CONFIG_PATH)
        client = VoucherClient(
            cfg.API_BASE_URL,
            timeout=cfg.REQUEST_TIMEOUT,
            max_retries=cfg.MAX_TRANSPORT_RETRIES,
        )
        return cls(cfg, VoucherUploader(client, resolver), resolver)

    def _enter(self, state: SyncState) -> None:
        logger.debug("Estado %s -> %s", self.state.value if self.state else "-", state.value)
        self.state = state

    def run(self) -> SyncSummary:
        """
        Ejecuta la sincronización.

        Returns:
            Resumen de la ejecución

        Raises:
            InvoiceSourceError: Si no se puede leer el CSV de facturas
            LedgerReadError: Si el ledger existe pero está corrupto
            LedgerWriteError: Si no se pudo guardar el ledger al final
        """
        summary = SyncSummary()

        # LOADING
        self._enter(SyncState.LOADING)
        logger.info("Leyendo facturas de %s", self.cfg.INVOICES_PATH)
        invoices = self._read_invoices(self.cfg.INVOICES_PATH, delimiter=self.cfg.CSV_DELIMITER)
        logger.info("Encontradas %d facturas", len(invoices))

        logger.info("Leyendo ledger %s", self.cfg.LEDGER_PATH)
        done = self._load_ledger(self.cfg.LEDGER_PATH)
        logger.info("Encontradas %d facturas ya subidas", len(done))

        to_upload = pending_invoices(invoices, done)
        summary.total = len(invoices)
        summary.already_done = len(invoices) - len(to_upload)
        logger.info("Encontradas %d facturas para subir", len(to_upload))

        # UPLOADING
        self._enter(SyncState.UPLOADING)
        uploaded = done.copy()
        try:
            for invoice in to_upload:
                summary.attempted += 1
                if self._upload_one(invoice, summary):
                    # El ledger se indexa por el número crudo, no por la referencia interna
                    uploaded.add(invoice.invoice_number)
        except KeyboardInterrupt:
            logger.warning("Interrumpido; guardando %d entradas del ledger", len(uploaded))
            raise
        finally:
            # PERSISTING: lo ya subido se guarda siempre, también si se aborta
            self._enter(SyncState.PERSISTING)
            logger.info("Escribiendo ledger %s", self.cfg.LEDGER_PATH)
            self._save_ledger(self.cfg.LEDGER_PATH, uploaded)

        self._enter(SyncState.DONE)
        log_summary(summary)
        return summary

    def _upload_one(self, invoice: InvoiceRecord, summary: SyncSummary) -> bool:
        display = invoice.resolved_number()
        logger.debug("Subiendo factura %s", display)
        started = time.monotonic()
        try:
            credentials = self.resolver.credentials()
            voucher_id = self.uploader.upload(invoice, credentials)
        except (VoucherSyncError, OSError) as exc:
            self._record_failure(summary, display, exc)
            logger.error("Error subiendo factura %s: %s", display, exc)
            return False
        except Exception as exc:
            # Fallo inesperado: se registra y se continúa con la siguiente factura
            self._record_failure(summary, display, exc)
            logger.error("Error inesperado subiendo factura %s: %s", display, exc, exc_info=True)
            return False

        summary.succeeded += 1
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("Factura %s subida en %dms (voucher %s)", display, elapsed_ms, voucher_id)
        return True

    @staticmethod
    def _record_failure(summary: SyncSummary, display: str, exc: Exception) -> None:
        summary.failed += 1
        summary.failures.append((display, str(exc) or type(exc).__name__))


def log_summary(summary: SyncSummary) -> None:
    logger.info("RESUMEN DE SINCRONIZACIÓN:")
    logger.info("  Facturas en origen: %d", summary.total)
    logger.info("  Ya sincronizadas: %d", summary.already_done)
    logger.info("  Intentadas: %d", summary.attempted)
    logger.info("  Exitosas: %d", summary.succeeded)
    logger.info("  Fallidas: %d", summary.failed)
    for display, reason in summary.failures:
        logger.warning("    - %s: %s", display, reason)
