import re
import unicodedata
from typing import List

# \s covers tabs, form feeds, NBSP and the Unicode line/paragraph separators
_WHITESPACE_RE = re.compile(r"\s+", re.UNICODE)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WORD_RE = re.compile(r"\b[\w']+(?:-[\w']+)*\b", re.UNICODE)


def _strip_control(text: str) -> str:
    out = []
    for ch in text:
        category = unicodedata.category(ch)
        if category == "Cc":
            out.append(" ")
        elif category == "Cf":
            # zero-width joiners, BOMs, soft hyphens
            continue
        else:
            out.append(ch)
    return "".join(out)


def normalize(raw) -> str:
    """
    Canonicalize raw text: drop control/format characters, collapse every
    whitespace run to one space, trim the ends.

    Never raises; non-string input yields "". Idempotent.
    """
    if not isinstance(raw, str):
        return ""
    text = _strip_control(raw)
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_into_sentences(text: str) -> List[str]:
    """Split on runs of sentence punctuation, dropping empty fragments."""
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def split_into_words(text: str) -> List[str]:
    """Whitespace split with empty fragments dropped."""
    return text.split()


def extract_words(text: str) -> List[str]:
    """Lowercased words, keeping apostrophes and hyphenated compounds together."""
    return _WORD_RE.findall(text.lower())
