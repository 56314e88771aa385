"""Tolerant parsing of JSON content that is still being streamed."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PartialParse:
    """Longest parsable prefix of the content plus whatever follows it."""

    parsed: Any
    remainder: str

    @property
    def is_parsed(self) -> bool:
        return self.parsed is not None


def parse_partial_json(text: str) -> PartialParse:
    """Parse ``text`` fully, else the longest prefix ending in ``}`` that parses.

    Returns ``PartialParse(None, text)`` when nothing parses, which callers
    should render as plain text. Not incremental: run it again on every update.
    """
    if not text:
        return PartialParse(None, "")

    try:
        return PartialParse(json.loads(text), "")
    except ValueError:
        pass

    end = text.rfind("}")
    while end > 0:
        try:
            return PartialParse(json.loads(text[: end + 1]), text[end + 1 :])
        except ValueError:
            end = text.rfind("}", 0, end)

    return PartialParse(None, text)
