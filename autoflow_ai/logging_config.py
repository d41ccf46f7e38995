"""Process-wide logging setup."""

import logging
from typing import Optional

from autoflow_ai.config import Settings, get_settings


_configured = False


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the root handler once; later calls only adjust the level."""
    global _configured
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)

    if not _configured:
        logging.basicConfig(level=level, format=settings.log_format)
        _configured = True
    logging.getLogger().setLevel(level)
    # The OpenAI SDK logs every request at INFO through httpx
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
