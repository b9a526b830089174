# voucher_sync/errors.py
"""
Jerarquía de excepciones de voucher-sync.

- Validación / resolución / subida: fallan una sola factura; el driver registra
  el error y continúa con la siguiente.
- Ledger, configuración y fuente de facturas: fatales para la ejecución.
"""
from __future__ import annotations
from typing import Optional


class VoucherSyncError(Exception):
    """Raíz de todos los errores del paquete."""


# ---------------------------------------------------------------------------
# Configuración / fuentes
# ---------------------------------------------------------------------------

class ConfigError(VoucherSyncError):
    """Configuración inválida o almacén del resolver ilegible."""


class InvoiceSourceError(VoucherSyncError):
    """No se pudo abrir o leer el CSV de facturas."""


# ---------------------------------------------------------------------------
# Validación
# ---------------------------------------------------------------------------

class InvalidInvoiceError(VoucherSyncError):
    """Fila del CSV que no cumple las reglas de negocio (p. ej. moneda distinta de EUR)."""


class MalformedInvoiceNumber(InvalidInvoiceError):
    def __init__(self, number: str):
        self.number = number
        super().__init__(f"Número de factura sin prefijo reconocible: {number!r}")


# ---------------------------------------------------------------------------
# Resolución (prefijo -> carpeta, dirección -> contacto)
# ---------------------------------------------------------------------------

class ResolutionError(VoucherSyncError):
    """El resolver no pudo producir un valor para la clave solicitada."""


class PrefixNotConfigured(ResolutionError):
    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No hay carpeta configurada para el prefijo {prefix!r}")


class ContactNotResolved(ResolutionError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No hay contacto configurado para la dirección {address!r}")


# ---------------------------------------------------------------------------
# Subida de vouchers
# ---------------------------------------------------------------------------

class UploadError(VoucherSyncError):
    """Fallo al subir una factura concreta."""


class AttachmentMissing(UploadError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"No existe el PDF adjunto: {path}")


class AttachmentSizeInvalid(UploadError):
    def __init__(self, path, size: int, max_size: int):
        self.path = path
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"Tamaño de adjunto inválido ({size} bytes, máximo {max_size}): {path}"
        )


class VoucherRejected(UploadError):
    def __init__(self, status: int, remote_message: Optional[str] = None):
        self.status = status
        self.remote_message = remote_message
        detail = f": {remote_message}" if remote_message else ""
        super().__init__(f"Voucher rechazado (HTTP {status}){detail}")


class AttachmentUploadRejected(UploadError):
    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Subida del PDF rechazada (HTTP {status})")


class AuthRefreshExhausted(UploadError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"El servicio sigue respondiendo 401 tras renovar la API key ({attempts} intentos)"
        )


class TransportError(UploadError):
    """Error de red (conexión, DNS, TLS...) antes de obtener una respuesta."""


class UploadTimeout(TransportError):
    """La petición superó REQUEST_TIMEOUT."""


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class LedgerError(VoucherSyncError):
    """Errores del ledger de facturas completadas. Siempre fatales."""


class LedgerReadError(LedgerError):
    """El ledger existe pero está corrupto o no se puede leer."""


class LedgerWriteError(LedgerError):
    """No se pudo persistir el ledger; la próxima ejecución podría duplicar vouchers."""
