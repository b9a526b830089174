from __future__ import annotations
from pathlib import Path

from pydantic import ValidationError, field_validator, Field
from pydantic_settings import BaseSettings

from voucher_sync.errors import ConfigError
from voucher_sync.utils.logger import get_logger

logger = get_logger("Config")

DEFAULT_API_BASE_URL = "https://api.lexoffice.io/v1"
DEFAULT_RESOLVER_CONFIG_PATH = Path("~/.config/voucher-sync/config.json")


class Settings(BaseSettings):
    """Configuración global de la aplicación (entorno + .env)"""
    API_BASE_URL: str = DEFAULT_API_BASE_URL
    REQUEST_TIMEOUT: float = Field(30.0, gt=0)
    MAX_TRANSPORT_RETRIES: int = Field(3, ge=0)

    INVOICES_PATH: Path = Path("invoices.csv")
    LEDGER_PATH: Path = Path("done_invoices.csv")
    CSV_DELIMITER: str = ","
    RESOLVER_CONFIG_PATH: Path = DEFAULT_RESOLVER_CONFIG_PATH

    LOG_LEVEL: str = "INFO"

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("API_BASE_URL debe empezar por http:// o https://")
        return v.rstrip("/")

    @field_validator("CSV_DELIMITER")
    @classmethod
    def single_char_delimiter(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("CSV_DELIMITER debe ser un único carácter")
        return v

    @field_validator("RESOLVER_CONFIG_PATH")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return Path(v).expanduser()

    @field_validator("LOG_LEVEL")
    @classmethod
    def known_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL desconocido: {v}")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_config(**overrides) -> Settings:
    """
    Carga la configuración desde variables de entorno y ``.env``.

    Args:
        overrides: Valores explícitos que tienen prioridad sobre el entorno

    Returns:
        Objeto Settings validado

    Raises:
        ConfigError: Si algún valor no pasa la validación
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Configuración inválida: {exc}") from exc
    logger.debug(
        "Configuración cargada: base=%s, facturas=%s, ledger=%s",
        settings.API_BASE_URL, settings.INVOICES_PATH, settings.LEDGER_PATH,
    )
    return settings
