"""
Configuración central de pytest y fixtures compartidas para todos los tests.

Proporciona:
- Facturas de prueba
- Resolver falso con respuestas precargadas (sin prompts)
- Sesión HTTP falsa que registra las peticiones (sin red)
- Settings apuntando a tmp_path
"""
import os
import tempfile

# Los logs de los tests no deben ir al directorio del proyecto
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="voucher_sync_logs_"))

from datetime import date
from decimal import Decimal

import pytest

from voucher_sync.core.config import Settings
from voucher_sync.errors import ContactNotResolved, PrefixNotConfigured
from voucher_sync.models.invoice import InvoiceRecord
from voucher_sync.modules.resolver import Credentials
from voucher_sync.modules.voucher_client import VoucherClient
from voucher_sync.services.uploader import VoucherUploader

BASE_URL = "https://api.example.test/v1"
API_KEY = "initial-api-key-0001"
FRESH_API_KEY = "refreshed-api-key-0002"
ADDRESS = "Muster GmbH, Hauptstr. 1, 10115 Berlin"
CONTACT_ID = "contact-123"


# ==================== DOBLES DE PRUEBA ====================

class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body


class FakeSession:
    """Sesión que devuelve respuestas encoladas y registra cada POST."""

    def __init__(self, voucher_responses=None, file_responses=None):
        self.voucher_responses = list(voucher_responses or [])
        self.file_responses = list(file_responses or [])
        self.calls = []

    @property
    def voucher_calls(self):
        return [c for c in self.calls if not c["url"].endswith("/files")]

    @property
    def file_calls(self):
        return [c for c in self.calls if c["url"].endswith("/files")]

    def post(self, url, **kwargs):
        call = {"url": url, "headers": dict(kwargs.get("headers") or {}),
                "json": kwargs.get("json"), "data": kwargs.get("data"),
                "timeout": kwargs.get("timeout")}
        files = kwargs.get("files")
        if files:
            name, fh, content_type = files["file"]
            call["file"] = (name, fh.read(), content_type)
        self.calls.append(call)
        queue = self.file_responses if url.endswith("/files") else self.voucher_responses
        if not queue:
            raise AssertionError(f"POST inesperado a {url}")
        result = queue.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeResolver:
    """Resolver con respuestas precargadas; nunca pregunta al operador."""

    def __init__(self, prefixes=None, contacts=None, api_keys=None):
        self.prefixes = dict(prefixes or {})
        self.contacts = dict(contacts or {})
        self.api_keys = list(api_keys or [API_KEY, FRESH_API_KEY])
        self.invalidations = 0
        self.contact_lookups = []

    def credentials(self):
        return Credentials(self.api_keys[min(self.invalidations, len(self.api_keys) - 1)])

    def invalidate_api_key(self):
        self.invalidations += 1
        return self.credentials()

    def resolve_prefix_path(self, prefix):
        if prefix not in self.prefixes:
            raise PrefixNotConfigured(prefix)
        return self.prefixes[prefix]

    def resolve_contact_id(self, address):
        self.contact_lookups.append(address)
        if address not in self.contacts:
            raise ContactNotResolved(address)
        return self.contacts[address]


# ==================== FIXTURES ====================

def build_invoice(number="INV-1", **overrides):
    data = dict(
        invoice_number=number,
        internal_reference=None,
        invoice_date=date(2024, 3, 5),
        delivery_date=date(2024, 3, 4),
        net=Decimal("119.00"),
        vat=Decimal("19"),
        final_amount=Decimal("100.00"),
        currency="EUR",
        transaction_type="B2B",
        billing_address=ADDRESS,
    )
    data.update(overrides)
    return InvoiceRecord(**data)


@pytest.fixture
def make_invoice():
    return build_invoice


@pytest.fixture
def pdf_root(tmp_path):
    root = tmp_path / "pdfs"
    root.mkdir()
    return root


@pytest.fixture
def write_pdf(pdf_root):
    """Crea el PDF esperado para una factura en <root>/<MM-YYYY>/<número>.pdf."""
    def _write(invoice, content=b"%PDF-1.4 test"):
        folder = pdf_root / invoice.month_year_segment()
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / f"{invoice.invoice_number}.pdf"
        path.write_bytes(content)
        return path
    return _write


@pytest.fixture
def resolver(pdf_root):
    return FakeResolver(prefixes={"INV": str(pdf_root)}, contacts={ADDRESS: CONTACT_ID})


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return VoucherClient(BASE_URL, timeout=5, session=session)


@pytest.fixture
def uploader(client, resolver):
    return VoucherUploader(client, resolver)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        API_BASE_URL=BASE_URL,
        INVOICES_PATH=tmp_path / "invoices.csv",
        LEDGER_PATH=tmp_path / "done_invoices.csv",
        RESOLVER_CONFIG_PATH=tmp_path / "config.json",
    )
