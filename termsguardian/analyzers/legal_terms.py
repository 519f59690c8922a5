import logging
import re
import string
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .base import GateDecision, MatchKind, TermMatch
from .normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_PROXIMITY_RADIUS = 5
DEFAULT_AUTO_GRADE_THRESHOLD = 30
DEFAULT_NOTIFY_THRESHOLD = 10
DEFAULT_SECTION_THRESHOLD = 10

_EDGE_PUNCTUATION = string.punctuation + "“”‘’"


def _tokenize(text: str) -> List[str]:
    """Lowercase whitespace tokens with surrounding punctuation stripped."""
    tokens = []
    for raw in text.lower().split():
        tok = raw.strip(_EDGE_PUNCTUATION)
        if tok:
            tokens.append(tok)
    return tokens


class LegalTermDetector:
    """
    Detects legal vocabulary in normalized text.

    Three independent signals are offered: exact substring containment,
    a single alternation regex over the vocabulary, and proximity of two
    distinct vocabulary phrases within a word window. The term count feeds
    the gating decision made by the orchestrator.
    """

    def __init__(
        self,
        legal_terms: Sequence[str],
        proximity_radius: int = DEFAULT_PROXIMITY_RADIUS,
        auto_grade_threshold: int = DEFAULT_AUTO_GRADE_THRESHOLD,
        notify_threshold: int = DEFAULT_NOTIFY_THRESHOLD,
        section_threshold: int = DEFAULT_SECTION_THRESHOLD,
    ):
        seen = set()
        self.terms: List[str] = []
        for term in legal_terms:
            key = normalize(term).lower()
            if key and key not in seen:
                seen.add(key)
                self.terms.append(key)

        self.proximity_radius = proximity_radius
        self.auto_grade_threshold = auto_grade_threshold
        self.notify_threshold = notify_threshold
        self.section_threshold = section_threshold

        self._term_words: List[Tuple[str, List[str]]] = [
            (t, _tokenize(t)) for t in self.terms if _tokenize(t)
        ]
        self._words_of = dict(self._term_words)
        # longest first so counting prefers "terms of service" over "terms"
        self._by_length = sorted(self._term_words, key=lambda tw: -len(tw[1]))
        self._max_len = len(self._by_length[0][1]) if self._by_length else 1
        self._pattern = self._compile_pattern()

    def _compile_pattern(self) -> Optional["re.Pattern"]:
        if not self.terms:
            return None
        alternation = "|".join(
            re.escape(t) for t in sorted(self.terms, key=len, reverse=True)
        )
        try:
            return re.compile(alternation, re.IGNORECASE)
        except re.error as e:
            logger.error(f"Could not compile legal-term pattern: {e}")
            return None

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def contains_legal_term(self, text: str) -> bool:
        """Any vocabulary phrase appears verbatim (case-insensitive)."""
        if not text or not isinstance(text, str):
            return False
        lowered = text.lower()
        return any(term in lowered for term in self.terms)

    def contains_partial_match(self, text: str) -> bool:
        """The vocabulary alternation regex matches anywhere."""
        if not text or not isinstance(text, str) or self._pattern is None:
            return False
        try:
            return self._pattern.search(text) is not None
        except Exception as e:
            logger.error(f"Error in partial match check: {e}")
            return False

    def contains_proximity_match(self, text: str) -> bool:
        """Two distinct phrases occur within the proximity window, one of them multi-word."""
        try:
            if not text or not isinstance(text, str):
                return False
            words = _tokenize(text)
            for i in range(len(words)):
                for term, term_words in self._term_words:
                    if len(term_words) < 2 or not self._matches_at(words, i, term_words):
                        continue
                    partner = self._proximity_partner(words, i, term)
                    if partner is not None:
                        logger.debug(
                            f'Proximity match found between "{term}" and "{partner[0]}"'
                        )
                        return True
            logger.debug("No proximity match found")
            return False
        except Exception as e:
            logger.error(f"Error in proximity match check: {e}")
            return False

    def contains_any(self, text: str) -> bool:
        return (
            self.contains_legal_term(text)
            or self.contains_partial_match(text)
            or self.contains_proximity_match(text)
        )

    # ------------------------------------------------------------------
    # Proximity helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _matches_at(words: List[str], i: int, term_words: List[str]) -> bool:
        if i + len(term_words) > len(words):
            return False
        return all(words[i + k] == w for k, w in enumerate(term_words))

    def _proximity_partner(
        self, words: List[str], i: int, term: str
    ) -> Optional[Tuple[str, int]]:
        """
        Find another phrase whose span lies within `proximity_radius` words of
        the span starting at i. Spans may not overlap, so the distance is the
        number of words strictly between them in either direction.
        """
        length = len(self._words_of[term])
        radius = self.proximity_radius
        start = max(0, i - radius - self._max_len)
        end = min(len(words), i + length + radius + 1)

        for j in range(start, end):
            for other, other_words in self._term_words:
                if other == term or not self._matches_at(words, j, other_words):
                    continue
                other_end = j + len(other_words)
                if j < i + length and i < other_end:
                    continue
                gap = j - (i + length) if j >= i + length else i - other_end
                if gap <= radius:
                    return other, j
        return None

    # ------------------------------------------------------------------
    # Counting and gating
    # ------------------------------------------------------------------

    def count_legal_terms(self, text: Union[str, Iterable[str]]) -> int:
        """
        Count vocabulary occurrences at token boundaries. Overlapping phrases
        are counted once, preferring the longest. An iterable of element
        texts is summed.
        """
        if text is None:
            return 0
        if not isinstance(text, str):
            return sum(self.count_legal_terms(t) for t in text if isinstance(t, str))

        words = _tokenize(text)
        count = 0
        i = 0
        while i < len(words):
            step = 1
            for _, term_words in self._by_length:
                if self._matches_at(words, i, term_words):
                    count += 1
                    step = len(term_words)
                    break
            i += step
        return count

    def legal_term_density(self, text: str) -> float:
        words = _tokenize(text or "")
        if not words:
            return 0.0
        return self.count_legal_terms(text) / len(words)

    def is_legal_text(self, text: str) -> bool:
        """Whether a section carries enough vocabulary hits to be treated as legal text."""
        try:
            count = self.count_legal_terms(text)
            is_legal = count >= self.section_threshold
            logger.debug(
                f"Legal text analysis: count={count} threshold={self.section_threshold} legal={is_legal}"
            )
            return is_legal
        except Exception as e:
            logger.error(f"Error analyzing legal text: {e}")
            return False

    def gate(self, count: int) -> GateDecision:
        """Both thresholds are inclusive lower bounds."""
        if count >= self.auto_grade_threshold:
            return GateDecision.AUTO_GRADE
        if count >= self.notify_threshold:
            return GateDecision.NOTIFY
        return GateDecision.NONE

    # ------------------------------------------------------------------
    # Match listing
    # ------------------------------------------------------------------

    def find_matches(self, text: str) -> List[TermMatch]:
        """
        List every match of each signal. Exact and partial positions are
        character offsets; proximity positions are word indexes of the anchor
        phrase.
        """
        if not text or not isinstance(text, str):
            return []

        matches: List[TermMatch] = []
        lowered = text.lower()

        for term in self.terms:
            start = lowered.find(term)
            while start != -1:
                matches.append(TermMatch(term=term, kind=MatchKind.EXACT, position=start))
                start = lowered.find(term, start + 1)

        if self._pattern is not None:
            for m in self._pattern.finditer(text):
                matches.append(
                    TermMatch(term=m.group(0).lower(), kind=MatchKind.PARTIAL, position=m.start())
                )

        words = _tokenize(text)
        for i in range(len(words)):
            for term, term_words in self._term_words:
                if len(term_words) < 2 or not self._matches_at(words, i, term_words):
                    continue
                if self._proximity_partner(words, i, term) is not None:
                    matches.append(TermMatch(term=term, kind=MatchKind.PROXIMITY, position=i))

        return matches
