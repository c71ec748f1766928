"""CLI helpers for BULKPAY.

Utilities used by the command-line interface: URL sanitization for safe
display, NAME=LEVEL parsing for logger options, and message emitters that
write to stderr with emoji to ASCII fallbacks.
"""

from .db_url import sanitize_url
from .messages import error, success, warn

__all__ = ["sanitize_url", "error", "success", "warn"]
