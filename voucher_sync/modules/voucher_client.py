# voucher_sync/modules/voucher_client.py

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from voucher_sync.errors import TransportError, UploadTimeout
from voucher_sync.modules.resolver import Credentials
from voucher_sync.utils.logger import get_logger

logger = get_logger("VoucherClient")

PDF_CONTENT_TYPE = "application/pdf"
FILE_PART_TYPE = "voucher"


def _session_with_retries(total: int = 3, backoff: float = 0.5) -> requests.Session:
    """
    Retorna una sesión de requests con reintentos automáticos y backoff exponencial.

    Solo se reintentan errores de conexión y HTTP 429 (límite de peticiones del
    servicio, respetando Retry-After). Un 5xx en un POST no se reintenta: el
    voucher podría haberse creado ya en el servidor.

    ``read=False`` hace que urllib3 relance el ``ReadTimeoutError`` original en
    lugar de envolverlo en ``MaxRetryError``; así requests lo entrega como
    ``ReadTimeout`` y no como ``ConnectionError``.
    """
    session = requests.Session()
    retry_strategy = Retry(
        total=total,
        connect=total,
        read=False,
        status=total,
        backoff_factor=backoff,
        status_forcelist=[429],
        allowed_methods=["POST"],
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class VoucherClient:
    """
    Cliente HTTP del servicio de vouchers.

    Devuelve la respuesta tal cual para que el uploader clasifique el resultado;
    solo traduce los fallos de transporte a :class:`TransportError` /
    :class:`UploadTimeout`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or _session_with_retries(total=max_retries)

    @staticmethod
    def _headers(credentials: Credentials) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {credentials.api_key}",
            "Accept": "application/json",
        }

    def _post(self, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            logger.error("Timeout (%ss) en POST %s", self.timeout, url)
            raise UploadTimeout(f"Timeout tras {self.timeout}s en POST {url}") from exc
        except requests.exceptions.RequestException as exc:
            logger.error("Error de conexión en POST %s: %s", url, exc)
            raise TransportError(f"Error de red en POST {url}: {exc}") from exc

    def create_voucher(self, credentials: Credentials, payload: Dict[str, Any]) -> requests.Response:
        """``POST {base}/vouchers`` con el payload JSON del voucher."""
        url = f"{self.base_url}/vouchers"
        headers = self._headers(credentials)
        headers["Content-Type"] = "application/json"
        logger.debug("POST %s voucherNumber=%s", url, payload.get("voucherNumber"))
        return self._post(url, headers=headers, json=payload)

    def upload_voucher_file(
        self, credentials: Credentials, voucher_id: str, path: Path
    ) -> requests.Response:
        """``POST {base}/vouchers/{id}/files`` con el PDF como multipart/form-data."""
        url = f"{self.base_url}/vouchers/{voucher_id}/files"
        logger.debug("POST %s file=%s", url, path)
        with open(path, "rb") as fh:
            return self._post(
                url,
                headers=self._headers(credentials),
                data={"type": FILE_PART_TYPE},
                files={"file": (path.name, fh, PDF_CONTENT_TYPE)},
            )
