from __future__ import annotations

"""Central logging configuration for treepatch.

Import and call :func:`setup_logging` at application start-up. The library
itself never configures logging on import; it only logs through
``logging.getLogger(__name__)``.
"""

import logging
import logging.config
import os
from typing import List

from treepatch.config import ConfigManager

__all__ = ["setup_logging"]

_ENGINE_LOGGERS = (
    "treepatch.core.engine",
    "treepatch.core.registry",
)


def setup_logging() -> None:
    """Configure logging for the application using configuration from YAML files."""
    log_dir = os.environ.get("TREEPATCH_LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "treepatch.log")

    try:
        logging_config = ConfigManager().get_logging_config()

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Copy so the cached config keeps its packaged filename
            logging_config = dict(logging_config)
            handlers = dict(logging_config.get("handlers", {}) or {})
            if "file" in handlers:
                handlers["file"] = dict(handlers["file"], filename=log_file)
                logging_config["handlers"] = handlers

            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports every configuration problem through these
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up minimal console-only logging when config is unavailable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
        # Provide the engine logger entry so it can be flipped via env even in minimal mode
        'loggers': {
            'treepatch.core.engine': {
                'handlers': ['console'],
                'level': 'INFO',
                'propagate': False,
            }
        }
    }

    logging.config.dictConfig(minimal_config)
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _debug_targets() -> List[str]:
    debug_engine = os.environ.get('TREEPATCH_DEBUG_ENGINE', '').strip().lower() in {'1', 'true', 'yes', 'on'}
    extra_modules = os.environ.get('TREEPATCH_DEBUG_MODULES', '').strip()
    targets: List[str] = []
    if debug_engine:
        targets.extend(_ENGINE_LOGGERS)
    if extra_modules:
        targets.extend([m.strip() for m in extra_modules.split(',') if m.strip()])
    return targets


def _apply_debug_overrides() -> None:
    """Apply environment-driven module-specific debug overrides.

    Supports:
    - TREEPATCH_DEBUG_ENGINE=true  -> DEBUG for the engine and the registry
    - TREEPATCH_DEBUG_MODULES=comma,separated,logger,names -> DEBUG for listed loggers
    """
    for name in _debug_targets():
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(
            h.level == logging.NOTSET or h.level <= logging.DEBUG for h in logger.handlers
        )
        if not has_debug_handler:
            h = logging.StreamHandler()
            h.setLevel(logging.DEBUG)
            fmt = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            h.setFormatter(fmt)
            logger.addHandler(h)
        logger.info("Debug override active for logger '%s'", name)
