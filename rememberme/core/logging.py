"""
Logging setup shared by the remember-me API and the token sweep script.

Token values are never logged; records name the identity only.
"""

import logging
import sys

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging and keep AWS client chatter at WARNING."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
