"""
Word tokenizer shared by the valence scorer and the domain lexicon.
"""
from __future__ import annotations

import re
from typing import List

# Anything that is not an ASCII word character, whitespace or an apostrophe
# becomes a separator. Apostrophes survive so contractions stay whole.
_STRIP_RE = re.compile(r"[^\w\s']", flags=re.ASCII)


def tokenize(text: str, lowercase: bool = True) -> List[str]:
    """
    Split text into word tokens.

    Args:
        text: Raw text (may be empty)
        lowercase: Lowercase the tokens; pass False to keep the original
            casing (token boundaries are identical either way)

    Returns:
        Ordered list of non-empty tokens
    """
    if not text:
        return []
    if lowercase:
        text = text.lower()
    return _STRIP_RE.sub(" ", text).split()
