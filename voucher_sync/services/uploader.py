# voucher_sync/services/uploader.py
from __future__ import annotations
from pathlib import Path
from typing import Optional, Tuple

import requests

from voucher_sync.errors import (
    AttachmentMissing,
    AttachmentSizeInvalid,
    AttachmentUploadRejected,
    AuthRefreshExhausted,
    ContactNotResolved,
    InvalidInvoiceError,
    VoucherRejected,
)
from voucher_sync.models.invoice import InvoiceRecord
from voucher_sync.models.voucher import VoucherRequest, build_voucher_request
from voucher_sync.modules.resolver import Credentials, Resolver
from voucher_sync.modules.voucher_client import VoucherClient
from voucher_sync.utils.common import format_file_size
from voucher_sync.utils.logger import get_logger

logger = get_logger("Uploader")

# Límite del servicio remoto para adjuntos
MAX_ATTACHMENT_BYTES = 5_000_000
# Intento original + un reintento tras renovar la API key
MAX_AUTH_ATTEMPTS = 2
FILE_ACCEPTED_STATUS = 202


class VoucherUploader:
    """
    Sube una factura como voucher de venta más su PDF.

    Flujo por factura:
    1. Resuelve y valida el PDF local (existe, 0 < tamaño <= 5 MB) sin tocar la red
    2. Resuelve el contacto remoto de la dirección de facturación
    3. ``POST /vouchers``; ante 401 renueva la API key y reintenta una vez
    4. ``POST /vouchers/{id}/files`` con el PDF; solo 202 es éxito

    Si el paso 4 falla el voucher queda creado en remoto y la factura se reporta
    como fallida; no se intenta borrar el voucher.
    """

    def __init__(
        self,
        client: VoucherClient,
        resolver: Resolver,
        max_attachment_bytes: int = MAX_ATTACHMENT_BYTES,
    ):
        self.client = client
        self.resolver = resolver
        self.max_attachment_bytes = max_attachment_bytes
        self.logger = logger

    # ------------------------------------------------------------------
    def upload(self, invoice: InvoiceRecord, credentials: Credentials) -> str:
        """
        Sube una factura.

        Args:
            invoice: Factura a subir
            credentials: API key vigente

        Returns:
            Id del voucher creado en el servicio remoto

        Raises:
            UploadError: Cualquier fallo de subida de esta factura
            ResolutionError: Si no hay carpeta o contacto configurado
            MalformedInvoiceNumber: Si el número no permite resolver el prefijo
        """
        path = self.check_attachment(invoice)
        request = self.build_request(invoice)
        voucher_id, credentials = self._submit_voucher(invoice, request, credentials)
        self._submit_file(invoice, voucher_id, path, credentials)
        return voucher_id

    def check_attachment(self, invoice: InvoiceRecord) -> Path:
        path = invoice.attachment_path(self.resolver)
        if not path.is_file():
            raise AttachmentMissing(path)
        size = path.stat().st_size
        if size <= 0 or size > self.max_attachment_bytes:
            raise AttachmentSizeInvalid(path, size, self.max_attachment_bytes)
        self.logger.debug(
            "Adjunto %s encontrado (%s)", path, format_file_size(size)
        )
        return path

    def build_request(self, invoice: InvoiceRecord) -> VoucherRequest:
        if not invoice.billing_address:
            raise ContactNotResolved(invoice.billing_address)
        contact_id = self.resolver.resolve_contact_id(invoice.billing_address)
        return build_voucher_request(invoice, contact_id)

    # ------------------------------------------------------------------
    def _submit_voucher(
        self, invoice: InvoiceRecord, request: VoucherRequest, credentials: Credentials
    ) -> Tuple[str, Credentials]:
        try:
            payload = request.to_payload()
        except ValueError as exc:
            raise InvalidInvoiceError(
                f"Importes de {invoice.resolved_number()} no serializables: {exc}"
            ) from exc
        for attempt in range(1, MAX_AUTH_ATTEMPTS + 1):
            resp = self.client.create_voucher(credentials, payload)
            if resp.status_code == 401:
                self.logger.warning(
                    "401 al crear voucher %s (intento %d/%d)",
                    invoice.resolved_number(), attempt, MAX_AUTH_ATTEMPTS,
                )
                if attempt == MAX_AUTH_ATTEMPTS:
                    break
                credentials = self.resolver.invalidate_api_key()
                continue

            if not 200 <= resp.status_code < 300:
                raise VoucherRejected(resp.status_code, _remote_message(resp))

            voucher_id = _voucher_id(resp)
            if not voucher_id:
                raise VoucherRejected(resp.status_code, "respuesta sin id de voucher")
            self.logger.debug(
                "Voucher %s creado para factura %s", voucher_id, invoice.resolved_number()
            )
            return voucher_id, credentials

        raise AuthRefreshExhausted(MAX_AUTH_ATTEMPTS)

    def _submit_file(
        self, invoice: InvoiceRecord, voucher_id: str, path: Path, credentials: Credentials
    ) -> None:
        try:
            resp = self.client.upload_voucher_file(credentials, voucher_id, path)
        except FileNotFoundError as exc:
            raise AttachmentMissing(path) from exc
        if resp.status_code != FILE_ACCEPTED_STATUS:
            self.logger.error(
                "PDF de %s rechazado (HTTP %d); el voucher %s queda creado sin adjunto",
                invoice.resolved_number(), resp.status_code, voucher_id,
            )
            raise AttachmentUploadRejected(resp.status_code)


def _json_body(resp: requests.Response) -> Optional[dict]:
    try:
        body = resp.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _remote_message(resp: requests.Response) -> Optional[str]:
    body = _json_body(resp)
    if not body:
        return None
    message = body.get("error") or body.get("message")
    return str(message) if message else None


def _voucher_id(resp: requests.Response) -> Optional[str]:
    body = _json_body(resp)
    if not body or not body.get("id"):
        return None
    return str(body["id"])
