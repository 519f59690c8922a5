from .base import (
    AnalysisResult,
    AnalysisState,
    AnalysisStatus,
    DefinitionSource,
    Document,
    GateDecision,
    Grade,
    MatchKind,
    ReadabilityResult,
    RightsResult,
    SummaryResult,
    TermMatch,
    UncommonTermEntry,
)
from .normalizer import normalize
from .legal_terms import LegalTermDetector
from .readability import ReadabilityGrader, count_syllables
from .rights import RightsAssessor
from .summarizer import SectionSummarizer
from .uncommon import UncommonTermIdentifier

__all__ = [
    "AnalysisResult",
    "AnalysisState",
    "AnalysisStatus",
    "DefinitionSource",
    "Document",
    "GateDecision",
    "Grade",
    "MatchKind",
    "ReadabilityResult",
    "RightsResult",
    "SummaryResult",
    "TermMatch",
    "UncommonTermEntry",
    "normalize",
    "LegalTermDetector",
    "ReadabilityGrader",
    "count_syllables",
    "RightsAssessor",
    "SectionSummarizer",
    "UncommonTermIdentifier",
]
