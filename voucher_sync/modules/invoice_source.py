# voucher_sync/modules/invoice_source.py
"""
Lectura del export CSV de facturas.
"""
from __future__ import annotations
import csv
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from voucher_sync.errors import InvoiceSourceError
from voucher_sync.models.invoice import ACCEPTED_CURRENCY, InvoiceRecord
from voucher_sync.utils.logger import get_logger

logger = get_logger("InvoiceSource")


def read_invoices(path: Union[str, Path], delimiter: str = ",") -> List[InvoiceRecord]:
    """
    Lee todas las facturas válidas del CSV, en el orden del archivo.

    Las filas que no se pueden parsear y las facturas en una moneda distinta de
    EUR se registran en el log y se descartan.

    Raises:
        InvoiceSourceError: Si el archivo no existe o no se puede leer
    """
    file_path = Path(path)
    if not file_path.exists():
        raise InvoiceSourceError(f"No existe el archivo de facturas: {file_path}")

    invoices: List[InvoiceRecord] = []
    try:
        # utf-8-sig: los exports de Excel suelen traer BOM
        with file_path.open("r", encoding="utf-8-sig", newline="") as fh:
            reader = csv.DictReader(fh, delimiter=delimiter)
            for line_no, row in enumerate(reader, start=2):
                try:
                    # Columnas sobrantes quedan bajo la clave None en DictReader
                    record = InvoiceRecord.model_validate(
                        {k: v for k, v in row.items() if k is not None}
                    )
                except ValidationError as exc:
                    logger.error(
                        "Error parseando factura en línea %d: %s",
                        line_no, _summarize(exc),
                    )
                    continue
                if not record.is_valid():
                    logger.error(
                        "Factura %s no es válida: moneda %s (solo se acepta %s)",
                        record.invoice_number, record.currency, ACCEPTED_CURRENCY,
                    )
                    continue
                invoices.append(record)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise InvoiceSourceError(f"No se pudo leer {file_path}: {exc}") from exc

    logger.debug("Leídas %d facturas válidas de %s", len(invoices), file_path)
    return invoices


def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)
