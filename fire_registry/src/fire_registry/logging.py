from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO", *, verbose: bool = False) -> None:
    effective = "DEBUG" if verbose else level.upper()
    logging.basicConfig(level=effective, format=LOG_FORMAT)
