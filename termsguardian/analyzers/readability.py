import logging
import math
import re
from typing import List, Tuple

from .base import Grade, ReadabilityResult
from .normalizer import extract_words, split_into_sentences, split_into_words
from ..errors import ComputationError, InputError

logger = logging.getLogger(__name__)

# Heuristic corrections applied on top of the vowel-group count. Subtractive
# patterns undo vowel pairs that are pronounced as one syllable; additive
# patterns split pairs that are pronounced as two.
SUBTRACTIVE_PATTERNS: Tuple["re.Pattern", ...] = tuple(
    re.compile(p)
    for p in (
        r"cial", r"tia", r"cius", r"cious", r"giu", r"ion", r"iou",
        r"sia$", r".ely$", r"sed$",
    )
)

ADDITIVE_PATTERNS: Tuple["re.Pattern", ...] = tuple(
    re.compile(p)
    for p in (
        r"ia", r"riet", r"dien", r"iu", r"io", r"ii", r"[aeiouym]bl$",
        r"[aeiou]{3}", r"^mc", r"ism$", r"([^aeiouy])\1l$", r"[^l]lien",
        r"^coa[dglx].", r"[^gq]ua[^auieo]", r"dnt$",
    )
)

_SILENT_ENDING_RE = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_LEADING_Y_RE = re.compile(r"^y")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]{1,2}")
_NON_LETTER_RE = re.compile(r"[^a-z]")

# (upper bound inclusive, grade) over the 0-100 composite difficulty score
GRADE_BREAKPOINTS: Tuple[Tuple[float, Grade], ...] = (
    (30, Grade.A),
    (50, Grade.B),
    (70, Grade.C),
    (90, Grade.D),
)
_GRADE_ORDER = [Grade.A, Grade.B, Grade.C, Grade.D, Grade.F]

FINE_TUNE_LIMIT = 12
CONFIDENT_WORD_COUNT = 100


def count_syllables(word: str) -> int:
    """Estimate syllables in one word. Never below 1."""
    lowered = _NON_LETTER_RE.sub("", (word or "").lower())
    if len(lowered) <= 3:
        return 1

    stem = _SILENT_ENDING_RE.sub("", lowered)
    stem = _LEADING_Y_RE.sub("", stem)
    count = len(_VOWEL_GROUP_RE.findall(stem))

    corrected = lowered[:-1] if lowered.endswith("e") else lowered
    count -= sum(len(p.findall(corrected)) for p in SUBTRACTIVE_PATTERNS)
    count += sum(len(p.findall(corrected)) for p in ADDITIVE_PATTERNS)

    return max(1, count)


def grade_for_score(composite: float, kincaid: float, fog: float) -> Grade:
    """Map a composite score to a letter, downgrading once for dense prose."""
    grade = Grade.F
    for limit, letter in GRADE_BREAKPOINTS:
        if composite <= limit:
            grade = letter
            break

    if kincaid > FINE_TUNE_LIMIT or fog > FINE_TUNE_LIMIT:
        idx = _GRADE_ORDER.index(grade)
        grade = _GRADE_ORDER[min(idx + 1, len(_GRADE_ORDER) - 1)]
    return grade


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class ReadabilityGrader:
    """
    Grades prose with Flesch Reading Ease, Flesch-Kincaid Grade Level and the
    Gunning Fog Index, folded into a single A-F letter.

    Each score is normalized to [0, 1] where 1 is hardest, then weighted
    0.4 / 0.3 / 0.3 into a 0-100 composite. Any failure yields the N/A result.
    """

    weights = (0.4, 0.3, 0.3)

    def grade(self, text: str) -> ReadabilityResult:
        try:
            if not isinstance(text, str) or not text.strip():
                raise InputError("Invalid input text for readability analysis.")
            if not extract_words(text):
                raise InputError("Text contains no valid words for readability analysis.")
            return self._grade(text)
        except Exception as e:
            logger.error(f"Error calculating readability grade: {e}")
            return ReadabilityResult(error=str(e))

    def _grade(self, text: str) -> ReadabilityResult:
        sentences = split_into_sentences(text)
        words = split_into_words(text)
        syllables = [count_syllables(w) for w in words]

        flesch, kincaid, fog = self.scores(
            len(sentences), len(words), sum(syllables), sum(1 for s in syllables if s >= 3)
        )

        logger.debug(
            f"Readability counts: words={len(words)} sentences={len(sentences)} "
            f"syllables={sum(syllables)}"
        )
        logger.debug(f"Flesch={flesch:.2f} Kincaid={kincaid:.2f} Fog={fog:.2f}")

        composite = self.composite(flesch, kincaid, fog)
        grade = grade_for_score(composite, kincaid, fog)
        logger.info(f"Readability grade {grade.value} (composite {composite:.1f})")

        return ReadabilityResult(
            flesch=flesch,
            kincaid=kincaid,
            fog_index=fog,
            average_grade=grade,
            confidence=round(min(1.0, len(words) / CONFIDENT_WORD_COUNT), 3),
        )

    @staticmethod
    def scores(
        sentence_count: int, word_count: int, syllable_count: int, complex_count: int
    ) -> Tuple[float, float, float]:
        """Return (flesch, kincaid, fog); all zero when there are no sentences or words."""
        if sentence_count == 0 or word_count == 0:
            return 0.0, 0.0, 0.0

        words_per_sentence = word_count / sentence_count
        syllables_per_word = syllable_count / word_count

        flesch = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
        kincaid = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59
        fog = 0.4 * (words_per_sentence + 100 * (complex_count / word_count))

        values: List[float] = [flesch, kincaid, fog]
        if not all(math.isfinite(v) for v in values):
            raise ComputationError(f"Non-finite readability scores: {values}")
        return flesch, kincaid, fog

    def composite(self, flesch: float, kincaid: float, fog: float) -> float:
        """0 (easiest) to 100 (hardest)."""
        n_flesch = _clamp((120 - flesch) / 120)
        n_kincaid = _clamp(kincaid / 18)
        n_fog = _clamp(fog / 18)
        w_flesch, w_kincaid, w_fog = self.weights
        return 100 * (w_flesch * n_flesch + w_kincaid * n_kincaid + w_fog * n_fog)
