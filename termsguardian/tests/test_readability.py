import math

import pytest
from termsguardian.analyzers.base import Grade
from termsguardian.analyzers.readability import (
    ReadabilityGrader,
    count_syllables,
    grade_for_score,
)

SIMPLE_TEXT = "I like cats. Cats are fun. Cats play with toys."
DENSE_TEXT = (
    "Notwithstanding the aforementioned indemnification obligations, the licensee "
    "irrevocably acknowledges comprehensive responsibility for consequential liabilities."
)


class TestSyllables:
    @pytest.mark.parametrize("word", ["a", "cat", "the", "", "123"])
    def test_short_words_count_one(self, word):
        assert count_syllables(word) == 1

    def test_multi_syllable_word(self):
        assert count_syllables("agreement") == 3

    def test_never_below_one(self):
        for word in ["rhythm", "shh", "bye", "queue", "ed"]:
            assert count_syllables(word) >= 1

    def test_punctuation_ignored(self):
        assert count_syllables("cats.") == count_syllables("cats")


class TestGradeMapping:
    def test_breakpoints_are_inclusive(self):
        assert grade_for_score(30, 0, 0) == Grade.A
        assert grade_for_score(30.01, 0, 0) == Grade.B
        assert grade_for_score(90, 0, 0) == Grade.D
        assert grade_for_score(95, 0, 0) == Grade.F

    def test_dense_prose_downgrades_one_step(self):
        assert grade_for_score(10, 13, 0) == Grade.B
        assert grade_for_score(10, 0, 12.5) == Grade.B
        assert grade_for_score(95, 13, 13) == Grade.F

    def test_monotonic_in_composite(self):
        order = [Grade.A, Grade.B, Grade.C, Grade.D, Grade.F]
        previous = 0
        for composite in range(0, 101, 5):
            idx = order.index(grade_for_score(composite, 5, 5))
            assert idx >= previous
            previous = idx

    def test_harder_kincaid_or_fog_never_improves_grade(self):
        order = [Grade.A, Grade.B, Grade.C, Grade.D, Grade.F]
        grader = ReadabilityGrader()
        for vary_kincaid in (True, False):
            previous = 0
            for value in range(0, 25):
                kincaid, fog = (value, 8) if vary_kincaid else (8, value)
                composite = grader.composite(60, kincaid, fog)
                idx = order.index(grade_for_score(composite, kincaid, fog))
                assert idx >= previous
                previous = idx


class TestReadabilityGrader:
    def test_empty_text_yields_na(self):
        result = ReadabilityGrader().grade("")
        assert result.average_grade == Grade.NA
        assert result.flesch == 0
        assert result.kincaid == 0
        assert result.fog_index == 0
        assert result.error

    def test_punctuation_only_yields_na(self):
        result = ReadabilityGrader().grade("... !!! ???")
        assert result.average_grade == Grade.NA

    def test_simple_prose_grades_a(self):
        result = ReadabilityGrader().grade(SIMPLE_TEXT)
        assert result.average_grade == Grade.A
        assert result.error is None

    def test_dense_prose_grades_low(self):
        result = ReadabilityGrader().grade(DENSE_TEXT)
        assert result.average_grade in (Grade.D, Grade.F)

    def test_scores_are_finite(self):
        for text in [SIMPLE_TEXT, DENSE_TEXT, "word", "a. b. c."]:
            result = ReadabilityGrader().grade(text)
            for value in (result.flesch, result.kincaid, result.fog_index):
                assert math.isfinite(value)

    def test_confidence_scales_with_length(self):
        short = ReadabilityGrader().grade(SIMPLE_TEXT)
        long = ReadabilityGrader().grade(" ".join([SIMPLE_TEXT] * 20))
        assert short.confidence == pytest.approx(0.1)
        assert long.confidence == 1.0

    def test_scores_without_sentences_are_zero(self):
        assert ReadabilityGrader.scores(0, 10, 12, 1) == (0.0, 0.0, 0.0)
        assert ReadabilityGrader.scores(2, 0, 0, 0) == (0.0, 0.0, 0.0)

    def test_composite_bounds(self):
        grader = ReadabilityGrader()
        assert grader.composite(200, -10, 0) == 0
        assert grader.composite(-50, 40, 40) == pytest.approx(100)
