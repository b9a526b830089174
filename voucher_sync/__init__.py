"""voucher-sync: sube facturas locales como vouchers al servicio contable."""

__version__ = "1.0.0"
