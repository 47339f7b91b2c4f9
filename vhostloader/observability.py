from __future__ import annotations

import logging


def configure_structured_logging(level: int = logging.INFO) -> bool:
    root = logging.getLogger()
    if getattr(root, "_json_logging_configured", False):
        return False

    handler = logging.StreamHandler()
    try:
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(
            JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    except ImportError:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )

    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, "_json_logging_configured", True)
    return True
