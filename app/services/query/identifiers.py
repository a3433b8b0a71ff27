from __future__ import annotations

import re

# Only this class of identifier is ever interpolated into SQL text;
# every user-supplied value travels as a bound parameter.
SAFE_IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_.]+")


def is_safe_identifier(value: str | None) -> bool:
    if not isinstance(value, str):
        return False
    return SAFE_IDENTIFIER_RE.fullmatch(value) is not None
