"""Whitespace normalisation that keeps paragraph structure intact."""

from __future__ import annotations

import re

_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_HORIZONTAL_RUNS = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE = re.compile(r"[ \t]*\n[ \t]*")


def normalize_text(text: str) -> str:
    """Canonicalise line endings and whitespace in *text*.

    CRLF (and stray CR) become LF, horizontal whitespace hugging a newline is
    stripped, runs of spaces/tabs collapse to one space, 3+ newlines collapse
    to a single blank line, and the result is trimmed.

    The blank-line collapse runs after the newline clean-up so that lines
    holding only spaces cannot leave a run of 3+ newlines behind; this keeps
    the function idempotent.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _HORIZONTAL_RUNS.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()
