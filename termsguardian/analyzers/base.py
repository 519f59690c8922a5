from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Any


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"
    NA = "N/A"


class MatchKind(str, Enum):
    EXACT = "Exact"
    PARTIAL = "Partial"
    PROXIMITY = "Proximity"


class DefinitionSource(str, Enum):
    LEGAL_DEFINITIONS = "LegalDefinitions"
    DICTIONARY = "Dictionary"
    REMOTE_API = "RemoteAPI"


class GateDecision(str, Enum):
    NONE = "none"
    NOTIFY = "notify"
    AUTO_GRADE = "auto_grade"


class AnalysisStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"
    GATED = "gated"


class AnalysisState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    GATING = "gating"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class Document:
    text: str
    url: Optional[str] = None
    title: Optional[str] = None

    @property
    def identifier(self) -> str:
        """Key used for the in-flight lock: URL when known, else title, else a text hash."""
        if self.url:
            return self.url
        if self.title:
            return self.title
        return f"text:{hash(self.text)}"


@dataclass(frozen=True)
class TermMatch:
    term: str
    kind: MatchKind
    position: int


@dataclass(frozen=True)
class ReadabilityResult:
    flesch: float = 0.0
    kincaid: float = 0.0
    fog_index: float = 0.0
    average_grade: Grade = Grade.NA
    confidence: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "flesch": self.flesch,
            "kincaid": self.kincaid,
            "fog_index": self.fog_index,
            "average_grade": self.average_grade.value,
            "confidence": self.confidence,
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class RightsResult:
    score: float = 0.5
    chunk_count: int = 0
    confidence: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "score": self.score,
            "chunk_count": self.chunk_count,
            "confidence": self.confidence,
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class UncommonTermEntry:
    word: str
    definition: str
    source: DefinitionSource

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "definition": self.definition,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class SectionSummary:
    heading: str
    summary: str
    original_text: str


@dataclass(frozen=True)
class SummaryResult:
    overall: str = ""
    sections: List[SectionSummary] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "overall": self.overall,
            "sections": [
                {"heading": s.heading, "summary": s.summary} for s in self.sections
            ],
            "section_count": len(self.sections),
        }
        if self.error:
            d["error"] = self.error
        return d


@dataclass(frozen=True)
class AnalysisResult:
    document: Document
    status: AnalysisStatus
    readability: Optional[ReadabilityResult] = None
    rights: Optional[RightsResult] = None
    uncommon_terms: List[UncommonTermEntry] = field(default_factory=list)
    summary: Optional[SummaryResult] = None
    legal_term_count: int = 0
    gate: GateDecision = GateDecision.NONE
    errors: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        return {
            "document": {"url": self.document.url, "title": self.document.title},
            "status": self.status.value,
            "gate": self.gate.value,
            "legal_term_count": self.legal_term_count,
            "readability": self.readability.to_dict() if self.readability else None,
            "rights": self.rights.to_dict() if self.rights else None,
            "uncommon_terms": [t.to_dict() for t in self.uncommon_terms],
            "summary": self.summary.to_dict() if self.summary else None,
            "errors": dict(self.errors),
            "error": self.error,
            "timestamp": self.timestamp,
        }
