from __future__ import annotations

import re
import uuid
from typing import Iterable

from hrdraw.entities import Candidate

_SEPARATORS = re.compile(r"[\n,]+")


def split_names(text: str) -> list[str]:
    """Split on newlines and commas, trim, and drop empty tokens."""
    if not text:
        return []
    tokens = (token.strip() for token in _SEPARATORS.split(text))
    return [token for token in tokens if token]


def parse_names(text: str) -> list[Candidate]:
    # ids are regenerated on every parse
    return [Candidate(id=str(uuid.uuid4()), name=name) for name in split_names(text)]


def join_names(names: Iterable[str]) -> str:
    return "\n".join(names)
