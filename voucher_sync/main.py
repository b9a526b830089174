# voucher_sync/main.py
from __future__ import annotations
import sys

from voucher_sync.core.app import SyncDriver
from voucher_sync.core.config import load_config
from voucher_sync.errors import (
    ConfigError,
    InvoiceSourceError,
    LedgerReadError,
    LedgerWriteError,
)
from voucher_sync.modules.resolver import ConfigResolver
from voucher_sync.utils.logger import get_logger, set_package_level


# Códigos de salida
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_SOURCE_ERROR = 2
EXIT_LEDGER_READ_ERROR = 3
EXIT_LEDGER_WRITE_ERROR = 4
EXIT_UNKNOWN_ERROR = 99


def main() -> int:

    logger = None

    try:
        # PASO 1: Cargar configuración y credenciales
        try:
            cfg = load_config()
            logger = get_logger("Main", cfg.LOG_LEVEL)
            set_package_level(cfg.LOG_LEVEL)
            logger.info("=" * 70)
            logger.info("INICIANDO SINCRONIZACIÓN DE FACTURAS")
            logger.info("=" * 70)

            resolver = ConfigResolver(cfg.RESOLVER_CONFIG_PATH)
            resolver.credentials()
            logger.info("Configuración cargada exitosamente")
        except ConfigError as exc:
            if logger:
                logger.error("No se pudo cargar la configuración: %s", exc)
            else:
                print(f"ERROR CRÍTICO: No se pudo cargar la configuración: {exc}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

        # PASO 2: Sincronizar
        driver = SyncDriver.from_settings(cfg, resolver=resolver)
        try:
            summary = driver.run()
        except InvoiceSourceError as exc:
            logger.error("No se pudieron leer las facturas: %s", exc)
            return EXIT_SOURCE_ERROR
        except LedgerReadError as exc:
            logger.error("Ledger corrupto, no se sube nada: %s", exc)
            return EXIT_LEDGER_READ_ERROR
        except LedgerWriteError as exc:
            logger.critical("!" * 70)
            logger.critical("NO SE PUDO GUARDAR EL LEDGER: %s", exc)
            logger.critical(
                "Los vouchers de esta ejecución YA están en el servicio remoto; "
                "la próxima ejecución podría duplicarlos. Revisa %s antes de volver a ejecutar.",
                cfg.LEDGER_PATH,
            )
            logger.critical("!" * 70)
            return EXIT_LEDGER_WRITE_ERROR

        logger.info("=" * 70)
        logger.info(
            "SINCRONIZACIÓN FINALIZADA: %d exitosas, %d fallidas",
            summary.succeeded, summary.failed,
        )
        logger.info("=" * 70)
        return EXIT_SUCCESS

    except KeyboardInterrupt:
        if logger:
            logger.warning("Sincronización interrumpida por el usuario (Ctrl+C)")
        else:
            print("\nSincronización interrumpida por el usuario", file=sys.stderr)
        return EXIT_UNKNOWN_ERROR

    except Exception as exc:
        if logger:
            logger.critical("Error inesperado en main(): %s", exc, exc_info=True)
        else:
            print(f"ERROR CRÍTICO inesperado: {exc}", file=sys.stderr)
        return EXIT_UNKNOWN_ERROR


def print_usage():
    usage = "Uso: voucher-sync [-h|--help]  (configuración por variables de entorno / .env)"
    print(usage)


def run() -> None:
    # Verificar argumentos de ayuda
    if len(sys.argv) > 1 and sys.argv[1] in ('-h', '--help'):
        print_usage()
        sys.exit(EXIT_SUCCESS)

    sys.exit(main())


if __name__ == "__main__":
    run()
