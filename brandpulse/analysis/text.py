"""Name normalization shared by the classifier, scorer and catalog code."""

import re

_PUNCT_RE = re.compile(r"[^\w\s]", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace.

    >>> normalize_name("  Acme, Inc. ")
    'acme inc'
    """
    if not name:
        return ""
    text = _PUNCT_RE.sub(" ", name.lower())
    text = text.replace("_", " ")
    return _SPACE_RE.sub(" ", text).strip()


def contains_phrase(haystack: str, needle: str) -> bool:
    """Word-boundary containment of two already-normalized names."""
    if not needle or not haystack:
        return False
    return f" {needle} " in f" {haystack} "
