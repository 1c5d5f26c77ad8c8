"""
barcoderender
=============

Оркестрация рендеринга штрихкодов / barcode rendering orchestration layer.

Пакет предоставляет:
    - Нормализацию опций (масштаб, отступы, CMYK -> RGB фона)
    - Конвейер рендеринга поверх подключаемого движка кодирования
    - Бэкенды отрисовки: PNG-буфер, canvas-поверхность, null (для raw)
    - Извлечение сырых данных кодирования (sbs/bhs/bbs/pixs ...)
    - HTTP-адаптер (WSGI) для выдачи PNG по query-параметрам

Example:
    >>> from barcoderender import to_buffer, raw
    >>> png = to_buffer({"bcid": "code128", "text": "12345"}).result()
    >>> png[:4]
    b'\\x89PNG'
    >>> raw("code128", "12345", {})[0].keys()
    dict_keys(['sbs', 'bhs', 'bbs', 'width', 'height'])

Configuration:
    >>> import os
    >>> os.environ["BARCODERENDER_LOG_LEVEL"] = "DEBUG"
    >>> from barcoderender import load_config
    >>> load_config()["server_port"]
    3030

Version: 0.1.0
License: MIT
Python: 3.11+
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "barcode-render contributors"
__description__ = "Barcode rendering orchestration with raster, canvas and raw backends"
__license__ = "MIT"
__python_requires__ = ">=3.11"

VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

if sys.version_info < (3, 11):
    raise RuntimeError(
        f"barcoderender requires Python 3.11 or newer. "
        f"Current version: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

LOGGER_NAMESPACE = "barcoderender"


def _setup_logging() -> None:
    """
    Initialize package-wide logging.

    - stderr handler for WARNING and above
    - rotating file handler (all levels) when BARCODERENDER_LOG_FILE is set
    - level from BARCODERENDER_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Idempotent: a second call is a no-op once handlers are attached.
    """
    log_level_str = os.environ.get("BARCODERENDER_LOG_LEVEL", "INFO").upper()
    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    log_level = log_level_map.get(log_level_str, logging.INFO)

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    if root_logger.handlers:
        return

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = os.environ.get("BARCODERENDER_LOG_FILE")
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_path,
                maxBytes=10 * 1024 * 1024,  # 10 МБ
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(
                "Could not initialize file logging (%s): %s. Using console only.",
                log_file,
                e,
            )


def get_logger(module_name: str) -> logging.Logger:
    """
    Return a logger inside the ``barcoderender`` namespace.

    Args:
        module_name: Usually ``__name__``. Names outside the package are
            re-rooted under ``barcoderender.``; ``__main__`` maps to
            ``barcoderender.main``.

    Example:
        >>> get_logger("myplugin").name
        'barcoderender.myplugin'
    """
    if module_name.startswith(LOGGER_NAMESPACE):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{LOGGER_NAMESPACE}.main")
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{module_name.lstrip('.')}")


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

_DEFAULT_CONFIG: Dict[str, Any] = {
    "log_level": "INFO",
    "server_host": "127.0.0.1",
    "server_port": 3030,
    "server_overrides": {},
    "png_compress_level": 6,
}


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file merged over the defaults.

    Lookup order for the file: ``config_path`` argument, the
    ``BARCODERENDER_CONFIG`` environment variable, ``barcoderender.json``
    in the current directory. A missing, unreadable or malformed file is
    logged and the defaults are returned.

    Keys:
        - log_level: str
        - server_host: str - HTTP adapter bind address
        - server_port: int - HTTP adapter port
        - server_overrides: dict - options layered over every request
        - png_compress_level: int - zlib level for PNG output (0-9)
    """
    logger = get_logger(__name__)

    if config_path is None:
        config_path = os.environ.get("BARCODERENDER_CONFIG", "barcoderender.json")
    config_path = Path(config_path)

    config = dict(_DEFAULT_CONFIG)
    config["server_overrides"] = {}

    if not config_path.exists():
        logger.debug("Config file %s not found, using defaults", config_path)
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = json.load(f)
        if not isinstance(user_config, dict):
            raise ValueError(
                f"config file must hold a JSON object, got {type(user_config).__name__}"
            )
        config.update(user_config)
        logger.info("Configuration loaded from %s", config_path)
    except json.JSONDecodeError as e:
        logger.warning(
            "Could not parse %s: invalid JSON at line %d, column %d. Using defaults.",
            config_path,
            e.lineno,
            e.colno,
        )
    except OSError as e:
        logger.warning("Could not read %s: %s. Using defaults.", config_path, e)
    except ValueError as e:
        logger.warning("Invalid configuration format: %s. Using defaults.", e)

    return config


def get_config() -> Dict[str, Any]:
    """Return a copy of the configuration loaded at import time."""
    return dict(_config)


def check_dependencies() -> Dict[str, bool]:
    """
    Report which runtime libraries are importable.

    Returns:
        Mapping of distribution name to availability. Never raises.
    """
    dependencies: Dict[str, bool] = {}

    try:
        import PIL  # noqa: F401

        dependencies["pillow"] = True
    except ImportError:
        dependencies["pillow"] = False

    try:
        import barcode  # noqa: F401

        dependencies["python-barcode"] = True
    except ImportError:
        dependencies["python-barcode"] = False

    try:
        import qrcode  # noqa: F401

        dependencies["qrcode"] = True
    except ImportError:
        dependencies["qrcode"] = False

    try:
        import pdf417gen  # noqa: F401

        dependencies["pdf417gen"] = True
    except ImportError:
        dependencies["pdf417gen"] = False

    return dependencies


# =============================================================================
# ИНИЦИАЛИЗАЦИЯ ПАКЕТА
# =============================================================================

_setup_logging()
_logger = get_logger(__name__)

_config: Dict[str, Any] = load_config()

from .api import (  # noqa: E402
    RenderResult,
    fixup_options,
    raw,
    render,
    to_buffer,
    to_buffer_async,
    to_canvas,
)
from .drawing import Canvas, CanvasSink, DrawingSink, NullSink, RasterSink, SurfaceRegistry  # noqa: E402
from .engine import ArrayView, EncodingEngine, SymbologyEngine  # noqa: E402
from .enums import Rotation, Symbology  # noqa: E402
from .exceptions import (  # noqa: E402
    BarcodeRenderError,
    EncodingError,
    InvalidSurfaceReferenceError,
    MissingFieldError,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "__license__",
    "__python_requires__",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    # Утилиты
    "get_logger",
    "load_config",
    "get_config",
    "check_dependencies",
    # Точки входа
    "fixup_options",
    "render",
    "to_buffer",
    "to_buffer_async",
    "to_canvas",
    "raw",
    "RenderResult",
    # Отрисовка
    "DrawingSink",
    "RasterSink",
    "CanvasSink",
    "NullSink",
    "Canvas",
    "SurfaceRegistry",
    # Движок
    "EncodingEngine",
    "SymbologyEngine",
    "ArrayView",
    "Symbology",
    "Rotation",
    # Ошибки
    "BarcodeRenderError",
    "MissingFieldError",
    "InvalidSurfaceReferenceError",
    "EncodingError",
]

_logger.debug("barcoderender v%s initialized", __version__)
