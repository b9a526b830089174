# voucher_sync/modules/resolver.py
"""
Resolver de credenciales, carpetas y contactos.

Guarda en un JSON persistente:
- la API key del servicio contable,
- prefijo de factura -> carpeta local con los PDFs,
- dirección de facturación -> id de contacto remoto.

Cuando falta un valor se pregunta al operador una única vez y la respuesta se
persiste para las siguientes ejecuciones.
"""
from __future__ import annotations
import getpass
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from voucher_sync.errors import ConfigError, ContactNotResolved, PrefixNotConfigured
from voucher_sync.utils.common import atomic_write_text
from voucher_sync.utils.logger import get_logger

logger = get_logger("Resolver")

MIN_API_KEY_LENGTH = 16
MAX_KEY_PROMPTS = 3

Prompt = Callable[[str], str]


@dataclass(frozen=True)
class Credentials:
    """Bearer token del servicio remoto. Valor inmutable."""
    api_key: str

    def is_valid(self) -> bool:
        # Viaja en la cabecera Authorization: solo ASCII imprimible, sin espacios
        key = self.api_key
        return (
            len(key) >= MIN_API_KEY_LENGTH
            and key.isascii()
            and key.isprintable()
            and not any(ch.isspace() for ch in key)
        )

    def __repr__(self) -> str:
        return f"Credentials(api_key='***{self.api_key[-4:]}')"


class Resolver(Protocol):
    """Interfaz que consume el uploader; los tests inyectan una implementación falsa."""

    def credentials(self) -> Credentials:
        ...

    def invalidate_api_key(self) -> Credentials:
        ...

    def resolve_prefix_path(self, prefix: str) -> str:
        ...

    def resolve_contact_id(self, address: str) -> str:
        ...


class PrefixConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    prefix: str
    path: str


class ContactConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    address: str
    contact_id: str


class StoredConfig(BaseModel):
    model_config = ConfigDict(frozen=True)
    api_key: str = ""
    prefixes: List[PrefixConfig] = []
    contacts: List[ContactConfig] = []

    def prefix_path(self, prefix: str) -> Optional[str]:
        return next((p.path for p in self.prefixes if p.prefix == prefix), None)

    def contact_id(self, address: str) -> Optional[str]:
        return next((c.contact_id for c in self.contacts if c.address == address), None)


class ConfigResolver:
    """
    Implementación persistente e interactiva de :class:`Resolver`.

    Args:
        path: Ruta del JSON de configuración
        prompt: Función para pedir datos al operador (por defecto ``input``)
        secret_prompt: Función para pedir la API key (por defecto ``getpass``)
    """

    def __init__(
        self,
        path: Union[str, Path],
        prompt: Prompt = input,
        secret_prompt: Prompt = getpass.getpass,
    ):
        self.path = Path(path)
        self._prompt = prompt
        self._secret_prompt = secret_prompt
        self._config = self._load()

    # ------------------------------------------------------------------
    def _load(self) -> StoredConfig:
        if not self.path.exists():
            logger.info("No existe %s; se creará al primer dato aprendido", self.path)
            return StoredConfig()
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
            return StoredConfig.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(
                f"No se pudo leer la configuración '{self.path}': {exc}"
            ) from exc

    def _store(self, config: StoredConfig) -> None:
        try:
            atomic_write_text(
                self.path,
                json.dumps(config.model_dump(), ensure_ascii=False, indent=2) + "\n",
            )
        except OSError as exc:
            raise ConfigError(f"No se pudo guardar la configuración '{self.path}': {exc}") from exc
        self._config = config

    def _ask(self, question: str, secret: bool = False) -> str:
        reader = self._secret_prompt if secret else self._prompt
        return (reader(question) or "").strip()

    # ------------------------------------------------------------------
    def credentials(self) -> Credentials:
        current = Credentials(self._config.api_key)
        if current.is_valid():
            return current
        logger.error("La API key guardada no es válida; se solicitará una nueva")
        return self._request_api_key()

    def invalidate_api_key(self) -> Credentials:
        logger.warning("API key rechazada por el servicio (401); se solicitará una nueva")
        return self._request_api_key()

    def _request_api_key(self) -> Credentials:
        logger.info("Solicitando API key al operador")
        for _ in range(MAX_KEY_PROMPTS):
            api_key = self._ask("Introduce tu API KEY y confirma con enter: ", secret=True)
            candidate = Credentials(api_key)
            if candidate.is_valid():
                self._store(self._config.model_copy(update={"api_key": api_key}))
                return candidate
            logger.error(
                "La API key debe tener al menos %d caracteres ASCII y sin espacios",
                MIN_API_KEY_LENGTH,
            )
        raise ConfigError(f"No se obtuvo una API key válida tras {MAX_KEY_PROMPTS} intentos")

    def resolve_prefix_path(self, prefix: str) -> str:
        known = self._config.prefix_path(prefix)
        if known:
            return known
        answer = self._ask(
            f"Nuevo prefijo de factura: {prefix}.\n"
            "Introduce la carpeta donde están sus PDFs: "
        )
        if not answer:
            raise PrefixNotConfigured(prefix)
        prefixes = list(self._config.prefixes) + [PrefixConfig(prefix=prefix, path=answer)]
        self._store(self._config.model_copy(update={"prefixes": prefixes}))
        logger.info("Prefijo %s asociado a %s", prefix, answer)
        return answer

    def resolve_contact_id(self, address: str) -> str:
        known = self._config.contact_id(address)
        if known:
            return known
        answer = self._ask(
            f"Dirección de facturación sin contacto asociado:\n{address}\n"
            "Introduce el id de contacto del servicio contable: "
        )
        if not answer:
            raise ContactNotResolved(address)
        contacts = list(self._config.contacts) + [ContactConfig(address=address, contact_id=answer)]
        self._store(self._config.model_copy(update={"contacts": contacts}))
        logger.info("Dirección %r asociada al contacto %s", address, answer)
        return answer
