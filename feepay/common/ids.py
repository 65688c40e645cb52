"""Opaque record identifiers that sort by creation time."""

import secrets
import time


def new_id() -> str:
    """Return a 24-char hex id: 8 hex digits of UNIX seconds + 16 random."""

    return f"{int(time.time()):08x}{secrets.token_hex(8)}"
