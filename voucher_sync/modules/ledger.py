# voucher_sync/modules/ledger.py
"""
Ledger de facturas ya sincronizadas (``done_invoices.csv``).

Conjunto append-only de números de factura. Se carga al inicio de la ejecución y
se reescribe completo y de forma atómica al final.
"""
from __future__ import annotations
import csv
import io
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

from voucher_sync.errors import LedgerReadError, LedgerWriteError
from voucher_sync.utils.common import atomic_write_text
from voucher_sync.utils.logger import get_logger

logger = get_logger("Ledger")

LEDGER_COLUMN = "Rechnungsnummer"


class CompletedLedger:
    """
    Conjunto ordenado de números de factura completados.

    - Mantiene el orden de inserción para que el CSV tenga diffs estables.
    - ``add`` de un número ya presente no hace nada: ninguna entrada se escribe dos veces.
    - No existe operación de borrado.
    """

    def __init__(self, entries: Optional[Iterable[str]] = None):
        self._entries: List[str] = []
        self._index: set[str] = set()
        for number in entries or ():
            self.add(number)

    def add(self, number: str) -> bool:
        """Agrega un número; devuelve False si ya estaba."""
        if number in self._index:
            return False
        self._index.add(number)
        self._entries.append(number)
        return True

    def contains(self, number: str) -> bool:
        return number in self._index

    def __contains__(self, number: object) -> bool:
        return number in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    def as_set(self) -> frozenset[str]:
        return frozenset(self._index)

    def copy(self) -> "CompletedLedger":
        return CompletedLedger(self._entries)


def load_ledger(path: Union[str, Path]) -> CompletedLedger:
    """
    Lee el ledger desde CSV.

    Returns:
        Ledger vacío si el archivo no existe (primera ejecución)

    Raises:
        LedgerReadError: Si el archivo existe pero no se puede leer o está corrupto
    """
    file_path = Path(path)
    if not file_path.exists():
        logger.info("No existe %s; se asume primera ejecución", file_path)
        return CompletedLedger()

    ledger = CompletedLedger()
    duplicates = 0
    try:
        with file_path.open("r", encoding="utf-8-sig", newline="") as fh:
            reader = csv.DictReader(fh)
            if reader.fieldnames is None:
                # Archivo vacío: equivalente a un ledger sin entradas
                return ledger
            if LEDGER_COLUMN not in reader.fieldnames:
                raise LedgerReadError(
                    f"El ledger '{file_path}' no tiene la columna '{LEDGER_COLUMN}'. "
                    "Archivo sin cambios; corrígelo y vuelve a intentar."
                )
            for line_no, row in enumerate(reader, start=2):
                number = (row.get(LEDGER_COLUMN) or "").strip()
                if not number:
                    raise LedgerReadError(
                        f"Fila {line_no} del ledger '{file_path}' sin número de factura."
                    )
                if not ledger.add(number):
                    duplicates += 1
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise LedgerReadError(f"No se pudo leer el ledger '{file_path}': {exc}") from exc

    if duplicates:
        logger.warning(
            "Ledger %s contiene %d números repetidos; se conserva la primera aparición",
            file_path, duplicates,
        )
    return ledger


def save_ledger(path: Union[str, Path], ledger: Iterable[str]) -> None:
    """
    Reescribe el ledger completo de forma atómica.

    Raises:
        LedgerWriteError: Si no se pudo escribir; el archivo anterior queda intacto
    """
    file_path = Path(path)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([LEDGER_COLUMN])
    count = 0
    for number in ledger:
        writer.writerow([number])
        count += 1
    try:
        atomic_write_text(file_path, buffer.getvalue())
    except OSError as exc:
        raise LedgerWriteError(
            f"No se pudo escribir el ledger '{file_path}': {exc}"
        ) from exc
    logger.info("Ledger guardado en %s (facturas=%d)", file_path, count)
