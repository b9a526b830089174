from voucher_sync.services.uploader import (
    MAX_ATTACHMENT_BYTES,
    MAX_AUTH_ATTEMPTS,
    VoucherUploader,
)

__all__ = [
    'MAX_ATTACHMENT_BYTES',
    'MAX_AUTH_ATTEMPTS',
    'VoucherUploader',
]
