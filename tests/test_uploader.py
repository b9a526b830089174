from decimal import Decimal

import pytest
import requests

from voucher_sync.errors import (
    AttachmentMissing,
    AttachmentSizeInvalid,
    AttachmentUploadRejected,
    AuthRefreshExhausted,
    ContactNotResolved,
    InvalidInvoiceError,
    PrefixNotConfigured,
    TransportError,
    UploadTimeout,
    VoucherRejected,
)
from voucher_sync.modules.voucher_client import VoucherClient
from voucher_sync.services.uploader import VoucherUploader

from conftest import API_KEY, BASE_URL, CONTACT_ID, FRESH_API_KEY, FakeResponse, FakeSession


def created(voucher_id="v1"):
    return FakeResponse(201, {"id": voucher_id, "resourceUri": f"{BASE_URL}/vouchers/{voucher_id}"})


def test_upload_success(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice("INV-2", net=Decimal("119.00"), final_amount=Decimal("100.00"))
    write_pdf(invoice, b"%PDF-1.4 content")
    session.voucher_responses.append(created("v1"))
    session.file_responses.append(FakeResponse(202, {"id": "f1"}))

    voucher_id = uploader.upload(invoice, resolver.credentials())

    assert voucher_id == "v1"
    [voucher_call] = session.voucher_calls
    assert voucher_call["url"] == f"{BASE_URL}/vouchers"
    assert voucher_call["headers"]["Authorization"] == f"Bearer {API_KEY}"
    assert voucher_call["json"]["voucherNumber"] == "INV-2"
    assert voucher_call["json"]["totalTaxAmount"] == 19.0
    assert voucher_call["json"]["contactId"] == CONTACT_ID
    assert voucher_call["timeout"] == 5

    [file_call] = session.file_calls
    assert file_call["url"] == f"{BASE_URL}/vouchers/v1/files"
    assert file_call["data"] == {"type": "voucher"}
    assert file_call["file"] == ("INV-2.pdf", b"%PDF-1.4 content", "application/pdf")


def test_401_refreshes_key_once_and_retries(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.extend([FakeResponse(401, {"message": "Unauthorized"}), created()])
    session.file_responses.append(FakeResponse(202))

    assert uploader.upload(invoice, resolver.credentials()) == "v1"

    assert resolver.invalidations == 1
    first, second = session.voucher_calls
    assert first["headers"]["Authorization"] == f"Bearer {API_KEY}"
    assert second["headers"]["Authorization"] == f"Bearer {FRESH_API_KEY}"
    # El PDF se sube con la key renovada
    assert session.file_calls[0]["headers"]["Authorization"] == f"Bearer {FRESH_API_KEY}"


def test_repeated_401_is_bounded(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.extend([FakeResponse(401), FakeResponse(401)])

    with pytest.raises(AuthRefreshExhausted):
        uploader.upload(invoice, resolver.credentials())
    assert resolver.invalidations == 1
    assert len(session.voucher_calls) == 2
    assert session.file_calls == []


def test_voucher_rejected_with_remote_message(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.append(FakeResponse(406, {"error": "Missing entity"}))

    with pytest.raises(VoucherRejected) as info:
        uploader.upload(invoice, resolver.credentials())
    assert info.value.status == 406
    assert info.value.remote_message == "Missing entity"
    assert session.file_calls == []


def test_voucher_rejected_without_json_body(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.append(FakeResponse(500, None, text="<html>"))

    with pytest.raises(VoucherRejected) as info:
        uploader.upload(invoice, resolver.credentials())
    assert info.value.status == 500
    assert info.value.remote_message is None


def test_created_without_id_is_rejected(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.append(FakeResponse(201, {}))

    with pytest.raises(VoucherRejected):
        uploader.upload(invoice, resolver.credentials())


def test_file_upload_must_return_202(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice)
    session.voucher_responses.append(created())
    session.file_responses.append(FakeResponse(200, {"id": "f1"}))

    with pytest.raises(AttachmentUploadRejected) as info:
        uploader.upload(invoice, resolver.credentials())
    assert info.value.status == 200
    # El voucher quedó creado; no se intenta borrarlo
    assert len(session.calls) == 2


def test_missing_attachment_makes_no_request(uploader, session, resolver, make_invoice):
    with pytest.raises(AttachmentMissing):
        uploader.upload(make_invoice(), resolver.credentials())
    assert session.calls == []
    assert resolver.contact_lookups == []


def test_empty_attachment(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice()
    write_pdf(invoice, b"")
    with pytest.raises(AttachmentSizeInvalid):
        uploader.upload(invoice, resolver.credentials())
    assert session.calls == []


def test_oversized_attachment(client, session, resolver, make_invoice, write_pdf):
    uploader = VoucherUploader(client, resolver, max_attachment_bytes=10)
    invoice = make_invoice()
    write_pdf(invoice, b"x" * 11)
    with pytest.raises(AttachmentSizeInvalid) as info:
        uploader.upload(invoice, resolver.credentials())
    assert info.value.size == 11
    assert session.calls == []


def test_attachment_at_limit_is_accepted(client, session, resolver, make_invoice, write_pdf):
    uploader = VoucherUploader(client, resolver, max_attachment_bytes=10)
    invoice = make_invoice()
    write_pdf(invoice, b"x" * 10)
    session.voucher_responses.append(created())
    session.file_responses.append(FakeResponse(202))
    assert uploader.upload(invoice, resolver.credentials()) == "v1"


def test_unknown_prefix(uploader, session, resolver, make_invoice):
    with pytest.raises(PrefixNotConfigured):
        uploader.upload(make_invoice("XYZ-1"), resolver.credentials())
    assert session.calls == []


def test_unknown_contact_makes_no_request(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice(billing_address="Unbekannt AG")
    write_pdf(invoice)
    with pytest.raises(ContactNotResolved):
        uploader.upload(invoice, resolver.credentials())
    assert session.calls == []


def test_timeout_is_distinct(resolver, make_invoice, write_pdf):
    session = FakeSession(voucher_responses=[requests.exceptions.ReadTimeout("slow")])
    uploader = VoucherUploader(VoucherClient(BASE_URL, timeout=1, session=session), resolver)
    invoice = make_invoice()
    write_pdf(invoice)
    with pytest.raises(UploadTimeout):
        uploader.upload(invoice, resolver.credentials())


def test_connection_error(resolver, make_invoice, write_pdf):
    session = FakeSession(voucher_responses=[requests.exceptions.ConnectionError("refused")])
    uploader = VoucherUploader(VoucherClient(BASE_URL, session=session), resolver)
    invoice = make_invoice()
    write_pdf(invoice)
    with pytest.raises(TransportError) as info:
        uploader.upload(invoice, resolver.credentials())
    assert not isinstance(info.value, UploadTimeout)


def test_amount_beyond_json_precision_makes_no_request(uploader, session, resolver, make_invoice, write_pdf):
    invoice = make_invoice(final_amount=Decimal("1234567890123.4567"))
    write_pdf(invoice)
    with pytest.raises(InvalidInvoiceError):
        uploader.upload(invoice, resolver.credentials())
    assert session.calls == []
