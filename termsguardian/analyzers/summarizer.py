import logging
import re
from typing import List, Optional, Sequence, Tuple

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from .base import SectionSummary, SummaryResult
from .normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_MAX_SENTENCES = 3
MAX_HEADING_LENGTH = 80
FALLBACK_HEADING = "Document"

_NUMBERED_HEADING_RE = re.compile(
    r"^(?:\d+(?:\.\d+)*\.?|section\s+\d+[.:]?|article\s+[\divxlc]+[.:]?)\s+\S",
    re.IGNORECASE,
)
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+")


def _is_heading(line: str) -> bool:
    if not line or len(line) > MAX_HEADING_LENGTH:
        return False
    if _NUMBERED_HEADING_RE.match(line) and not line.endswith((".", ";", ",")):
        return True
    letters = [c for c in line if c.isalpha()]
    return len(letters) >= 3 and all(c.isupper() for c in letters)


def split_sections(text: str) -> List[Tuple[str, str]]:
    """Split raw text into (heading, content) pairs on heading lines.

    Text with no headings comes back as a single section.
    """
    sections: List[Tuple[str, List[str]]] = []
    preamble: List[str] = []
    for raw_line in text.splitlines():
        line = normalize(raw_line)
        if not line:
            continue
        if _is_heading(line):
            sections.append((line, []))
        elif sections:
            sections[-1][1].append(line)
        else:
            preamble.append(line)

    result = [(h, " ".join(body)) for h, body in sections if body]
    if not result:
        whole = normalize(text)
        return [(FALLBACK_HEADING, whole)] if whole else []
    if preamble:
        result.insert(0, (FALLBACK_HEADING, " ".join(preamble)))
    return result


class SectionSummarizer:
    """
    Heuristic extractive summary per section: the first and last sentence plus
    the highest TF-IDF sentences that mention legal vocabulary, kept in
    document order.
    """

    def __init__(
        self,
        legal_terms: Optional[Sequence[str]] = None,
        max_sentences: int = DEFAULT_MAX_SENTENCES,
    ):
        self.legal_terms = [t.lower() for t in (legal_terms or [])]
        self.max_sentences = max(2, max_sentences)

    def _mentions_legal_term(self, sentence: str) -> bool:
        lowered = sentence.lower()
        return any(t in lowered for t in self.legal_terms)

    @staticmethod
    def _tfidf_scores(sentences: List[str]) -> List[float]:
        try:
            matrix = TfidfVectorizer(stop_words="english").fit_transform(sentences)
            return np.asarray(matrix.sum(axis=1)).ravel().tolist()
        except ValueError:
            # only stop words
            return [0.0] * len(sentences)

    def summarize_section(self, text: str) -> str:
        sentences = [s.strip() for s in _SENTENCE_RE.split(normalize(text)) if s.strip()]
        if len(sentences) <= self.max_sentences:
            return " ".join(sentences)

        keep = {0, len(sentences) - 1}
        slots = self.max_sentences - len(keep)
        if slots > 0:
            scores = self._tfidf_scores(sentences)
            middle = range(1, len(sentences) - 1)
            legal = [i for i in middle if self._mentions_legal_term(sentences[i])]
            pool = legal or list(middle)
            ranked = sorted(pool, key=lambda i: (-scores[i], i))
            keep.update(ranked[:slots])

        return " ".join(sentences[i] for i in sorted(keep))

    def summarize(self, text: str) -> SummaryResult:
        try:
            logger.info("Starting section summarization")
            if not isinstance(text, str) or not text.strip():
                return SummaryResult()

            sections = []
            for heading, content in split_sections(text):
                sections.append(
                    SectionSummary(
                        heading=heading,
                        summary=self.summarize_section(content) or "No summary available.",
                        original_text=content,
                    )
                )

            overall = "\n\n".join(f"## {s.heading}\n{s.summary}" for s in sections)
            logger.debug(f"Summarized {len(sections)} sections")
            return SummaryResult(overall=overall, sections=sections)
        except Exception as e:
            logger.error(f"Error summarizing text: {e}")
            return SummaryResult(error=str(e))
