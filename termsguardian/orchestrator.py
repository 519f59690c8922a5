import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from .analyzers.base import (
    AnalysisResult,
    AnalysisState,
    AnalysisStatus,
    Document,
    GateDecision,
)
from .analyzers.legal_terms import LegalTermDetector
from .analyzers.normalizer import normalize
from .analyzers.readability import ReadabilityGrader
from .analyzers.rights import RightsAssessor
from .analyzers.summarizer import SectionSummarizer
from .analyzers.uncommon import UncommonTermIdentifier
from .config import AnalysisConfig
from .data import load_common_words, load_legal_terms
from .dictionary.service import DictionaryService
from .errors import ConcurrencyError, InputError
from .utils.logger import setup_logger

logger = setup_logger(__name__)

FAILED_MESSAGE = "Analysis failed, please retry."

PartialCallback = Callable[[str, Any], None]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


class AnalysisOrchestrator:
    """
    Runs the analysis pipeline for one document at a time per identifier.

    States per document: Idle -> Extracting -> Gating -> (Idle | Analyzing)
    -> (Complete | Failed) -> Idle.

    Stages:
      1. Extract  - normalize the raw text
      2. Gate     - count legal terms and compare with the thresholds
      3. Analyze  - readability, rights, uncommon terms and the section
                    summary run concurrently and are joined
      4. Emit     - an immutable AnalysisResult

    A second request for a document already being analyzed is a no-op and
    returns None. Automatic detection is rate limited per document; manual
    requests skip the interval and the threshold gate but not the in-flight
    lock.
    """

    def __init__(
        self,
        legal_terms: Optional[Sequence[str]] = None,
        common_words: Optional[Sequence[str]] = None,
        config: Optional[AnalysisConfig] = None,
        dictionary: Optional[DictionaryService] = None,
        clock: Optional[Callable[[], float]] = None,
        summarize: bool = True,
    ):
        self.config = config or AnalysisConfig()
        legal_terms = list(legal_terms) if legal_terms is not None else load_legal_terms()
        common_words = list(common_words) if common_words is not None else load_common_words()

        self.detector = LegalTermDetector(
            legal_terms,
            proximity_radius=self.config.proximity_radius,
            auto_grade_threshold=self.config.auto_grade_threshold,
            notify_threshold=self.config.notify_threshold,
            section_threshold=self.config.section_threshold,
        )
        self.grader = ReadabilityGrader()
        self.assessor = RightsAssessor(chunk_size=self.config.chunk_size)
        self.dictionary = dictionary or DictionaryService.from_config(self.config)
        self.identifier = UncommonTermIdentifier(
            self.dictionary,
            legal_terms,
            common_words,
            min_word_length=self.config.min_word_length,
            batch_size=self.config.dictionary_batch_size,
            compound_terms=self.config.compound_terms,
        )
        self.summarizer = SectionSummarizer(legal_terms) if summarize else None

        self._clock = clock or _monotonic_ms
        self._in_flight: Set[str] = set()
        self._states: Dict[str, AnalysisState] = {}
        self._last_detection: Dict[str, float] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def state(self, document_id: str) -> AnalysisState:
        return self._states.get(document_id, AnalysisState.IDLE)

    def is_analyzing(self, document_id: str) -> bool:
        return document_id in self._in_flight

    def close(self) -> None:
        """Release the dictionary service's worker threads."""
        self.dictionary.close()

    async def __aenter__(self) -> "AnalysisOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _acquire(self, document_id: str) -> None:
        if document_id in self._in_flight:
            raise ConcurrencyError(f"Analysis already in progress for {document_id}")
        self._in_flight.add(document_id)

    def _set_state(self, document_id: str, state: AnalysisState) -> None:
        logger.debug(f"{document_id}: {self.state(document_id).value} -> {state.value}")
        self._states[document_id] = state

    def _prune_detections(self, now: float) -> None:
        expired = [
            doc_id
            for doc_id, last in self._last_detection.items()
            if now - last >= self.config.detection_interval_ms
        ]
        for doc_id in expired:
            del self._last_detection[doc_id]

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def detect(
        self,
        document: Union[str, Document],
        manual: bool = False,
        on_partial: Optional[PartialCallback] = None,
    ) -> Optional[AnalysisResult]:
        """
        One detection cycle for a (possibly mutating) source. Returns None when
        skipped by the interval gate or the in-flight lock.
        """
        document = self._as_document(document)
        doc_id = document.identifier

        if not manual:
            now = self._clock()
            self._prune_detections(now)
            last = self._last_detection.get(doc_id)
            if last is not None and now - last < self.config.detection_interval_ms:
                logger.debug(f"Detection for {doc_id} skipped by interval gate")
                return None
            self._last_detection[doc_id] = now

        return await self.analyze(document, force=manual, on_partial=on_partial)

    async def analyze(
        self,
        document: Union[str, Document],
        force: bool = False,
        on_partial: Optional[PartialCallback] = None,
    ) -> Optional[AnalysisResult]:
        document = self._as_document(document)
        doc_id = document.identifier

        try:
            self._acquire(doc_id)
        except ConcurrencyError as e:
            logger.info(str(e))
            return None

        try:
            return await self._run(document, force, on_partial)
        finally:
            self._in_flight.discard(doc_id)
            self._set_state(doc_id, AnalysisState.IDLE)
            # idle is the default, so finished documents leave no entry behind
            self._states.pop(doc_id, None)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(
        self, document: Document, force: bool, on_partial: Optional[PartialCallback]
    ) -> AnalysisResult:
        doc_id = document.identifier
        count = 0
        decision = GateDecision.NONE

        try:
            self._set_state(doc_id, AnalysisState.EXTRACTING)
            text = normalize(document.text)
            if not text:
                raise InputError("Invalid or empty text provided")

            self._set_state(doc_id, AnalysisState.GATING)
            count = self.detector.count_legal_terms(text)
            decision = self.detector.gate(count)
            logger.info(f"{doc_id}: {count} legal terms, gate={decision.value}")

            if decision != GateDecision.AUTO_GRADE and not force:
                return AnalysisResult(
                    document=document,
                    status=AnalysisStatus.GATED,
                    legal_term_count=count,
                    gate=decision,
                    timestamp=_timestamp(),
                )
        except Exception as e:
            logger.error(f"Extraction/gating failed for {doc_id}: {e}")
            self._set_state(doc_id, AnalysisState.FAILED)
            return AnalysisResult(
                document=document,
                status=AnalysisStatus.FAILED,
                legal_term_count=count,
                gate=decision,
                errors={"pipeline": str(e)},
                error=FAILED_MESSAGE,
                timestamp=_timestamp(),
            )

        self._set_state(doc_id, AnalysisState.ANALYZING)
        results, errors = await self._fan_out(document.text, text, on_partial)

        status = AnalysisStatus.PARTIAL if errors else AnalysisStatus.COMPLETE
        self._set_state(
            doc_id,
            AnalysisState.COMPLETE if status == AnalysisStatus.COMPLETE else AnalysisState.FAILED,
        )
        if errors:
            logger.warning(f"{doc_id}: partial analysis, failed parts: {sorted(errors)}")
        else:
            logger.info(f"{doc_id}: analysis complete")

        return AnalysisResult(
            document=document,
            status=status,
            readability=results.get("readability"),
            rights=results.get("rights"),
            uncommon_terms=results.get("terms") or [],
            summary=results.get("summary"),
            legal_term_count=count,
            gate=decision,
            errors=errors,
            timestamp=_timestamp(),
        )

    async def _fan_out(self, raw_text: str, text: str, on_partial: Optional[PartialCallback]):
        async def readability():
            return self.grader.grade(text)

        async def rights():
            return self.assessor.assess(text)

        async def terms():
            return await self.identifier.identify(text)

        async def summary():
            # section headings need the original line breaks
            return self.summarizer.summarize(raw_text)

        jobs = {"readability": readability, "rights": rights, "terms": terms}
        if self.summarizer is not None:
            jobs["summary"] = summary

        async def run(name, job):
            result = await job()
            if on_partial is not None:
                try:
                    on_partial(name, result)
                except Exception as e:
                    logger.warning(f"Partial-result callback failed for {name}: {e}")
            return result

        names = list(jobs)
        outcomes = await asyncio.gather(
            *(run(name, jobs[name]) for name in names), return_exceptions=True
        )

        results: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"{name} analysis failed: {outcome}")
                errors[name] = str(outcome)
                continue
            results[name] = outcome
            error = getattr(outcome, "error", None)
            if error:
                errors[name] = error
        return results, errors

    @staticmethod
    def _as_document(document: Union[str, Document]) -> Document:
        if isinstance(document, Document):
            return document
        return Document(text=document if isinstance(document, str) else "")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def analyze(
    document_text: str,
    legal_vocabulary: Optional[List[str]] = None,
    common_words: Optional[List[str]] = None,
    config: Union[AnalysisConfig, Dict[str, Any], None] = None,
    force: bool = False,
) -> AnalysisResult:
    """Analyze one text with a fresh orchestrator."""
    if not isinstance(config, AnalysisConfig):
        config = AnalysisConfig.from_dict(config)
    async with AnalysisOrchestrator(
        legal_terms=legal_vocabulary, common_words=common_words, config=config
    ) as orchestrator:
        return await orchestrator.analyze(document_text, force=force)
