# Utilidades del paquete
from .logger import get_logger, logger, set_package_level
from .formats import (
    parse_german_date,
    parse_german_decimal,
    format_iso_date,
)
from .common import (
    atomic_write_text,
    format_file_size,
)

__all__ = [
    # Logger
    "get_logger",
    "logger",
    "set_package_level",

    # Formatos alemanes
    "parse_german_date",
    "parse_german_decimal",
    "format_iso_date",

    # Common utilities
    "atomic_write_text",
    "format_file_size",
]
