"""Services package.

Keep this module lightweight: importing `services` should only pull in the
logging helpers. Persistence is imported from `services.persistence` directly.
"""

from __future__ import annotations

from .logger import cleanup_logging, get_logger, setup_logging

__all__ = ["cleanup_logging", "get_logger", "setup_logging"]
