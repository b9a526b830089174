"""
Utilidades comunes para voucher-sync.
Funciones reutilizables entre diferentes módulos.
"""

import os
import tempfile
from pathlib import Path
from typing import Union


def atomic_write_text(path: Union[str, Path], data: str, newline: str = "") -> None:
    """
    Escribe ``data`` en ``path`` de forma atómica.

    El contenido se escribe primero en un archivo temporal del mismo directorio y
    luego se reemplaza el destino con ``os.replace``; un fallo a mitad de camino
    deja el archivo original intacto.

    Raises:
        OSError: Si no se puede escribir o reemplazar el archivo
    """
    path = Path(path)
    dirpath = path.parent
    dirpath.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=str(dirpath))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline=newline) as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, str(path))
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def format_file_size(size_bytes: int) -> str:
    """
    Formatear tamaño de archivo en formato legible.

    Args:
        size_bytes: Tamaño en bytes

    Returns:
        String formateado (ej: "1.5 MB")
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    return f"{size:.1f} {units[unit_index]}"
