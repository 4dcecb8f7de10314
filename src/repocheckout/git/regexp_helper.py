from __future__ import annotations

import re

_SPECIAL = re.compile(r"([^a-zA-Z0-9_])")


def escape(value: str) -> str:
    """Backslash-escape everything but ASCII letters, digits and underscore."""
    return _SPECIAL.sub(r"\\\1", value)
