"""Security helpers for coldstore."""

from .dsns import DSNConfig, parse_dsn
from .redaction import REDACTED_VALUE, redact_state

__all__ = ["DSNConfig", "parse_dsn", "REDACTED_VALUE", "redact_state"]
