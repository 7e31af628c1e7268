"""Human-facing order numbers: ``<PREFIX>-<ms timestamp>-<random>``.

Both parts use Crockford's base32 alphabet, which has no I, L, O or U, so
a number copied by hand into a bank transfer reference cannot mix up 0/O or
1/I/L. The timestamp keeps numbers roughly sortable; the random suffix comes
from ``secrets`` so two orders placed in the same millisecond on different
workers still differ.
"""

import secrets
import time

ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_SUFFIX_LENGTH = 8


def _encode(value: int) -> str:
    if value == 0:
        return ALPHABET[0]
    digits = []
    while value:
        value, remainder = divmod(value, len(ALPHABET))
        digits.append(ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_order_number(prefix: str = "ALN", now_ms: int | None = None) -> str:
    timestamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}-{_encode(timestamp)}-{suffix}"
