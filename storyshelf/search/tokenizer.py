"""
Text normalisation shared by the index builder, the query engine and
the suggestion engine.

Terms are lowercased and folded to ASCII so that ``"Tiên"``, ``"tien"``
and ``"TIÊN"`` all produce the same term. Folding also covers letters
without a canonical decomposition (``đ`` → ``d``, ``æ`` → ``ae``,
``ß`` → ``ss``).
"""

from __future__ import annotations

import re
from typing import List

import unidecode

# Runs of letters/digits; underscore is treated as a separator.
_WORD_RE = re.compile(r"[^\W_]+")


def normalize(text: str) -> str:
    """Lowercase ``text`` and fold it to ASCII."""
    if not text:
        return ""
    # Some transliterations contain capitals (e.g. "ℌ" -> "H").
    return unidecode.unidecode(text.lower()).lower()


def tokenize(text: str) -> List[str]:
    """Split ``text`` into normalised terms, preserving their order."""
    return _WORD_RE.findall(normalize(text))
