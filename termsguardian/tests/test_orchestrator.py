import asyncio
import json
from unittest.mock import patch

import pytest
from termsguardian.analyzers.base import (
    AnalysisState,
    AnalysisStatus,
    Document,
    GateDecision,
    Grade,
)
from termsguardian.config import REMOTE_URL_ENV, AnalysisConfig
from termsguardian.dictionary import DictionaryService, StaticDefinitionSource
from termsguardian.orchestrator import FAILED_MESSAGE, AnalysisOrchestrator, analyze

LEGAL_TERMS = ["terms of service", "liability", "arbitration"]
COMMON_WORDS = ["you", "agree", "to", "the", "our", "is", "may", "any", "time"]
TEXT = (
    "You agree to the terms of service. Our liability is limited. "
    "Arbitration is required. You may cancel at any time."
)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(autouse=True)
def no_remote_env(monkeypatch):
    monkeypatch.delenv(REMOTE_URL_ENV, raising=False)


def make_orchestrator(auto=3, notify=1, clock=None, summarize=True):
    dictionary = DictionaryService(
        StaticDefinitionSource({"liability": "Legal responsibility."})
    )
    return AnalysisOrchestrator(
        legal_terms=LEGAL_TERMS,
        common_words=COMMON_WORDS,
        config=AnalysisConfig(auto_grade_threshold=auto, notify_threshold=notify),
        dictionary=dictionary,
        clock=clock,
        summarize=summarize,
    )


class TestAnalyze:
    def test_full_analysis_at_threshold(self):
        orch = make_orchestrator(auto=3)
        result = asyncio.run(orch.analyze(TEXT))

        assert result.status == AnalysisStatus.COMPLETE
        assert result.legal_term_count == 3
        assert result.gate == GateDecision.AUTO_GRADE
        assert result.readability.average_grade != Grade.NA
        assert 0.0 <= result.rights.score <= 1.0
        assert [t.word for t in result.uncommon_terms] == ["liability"]
        assert result.summary is not None
        assert result.errors == {}
        assert result.error is None

    def test_below_threshold_is_gated(self):
        orch = make_orchestrator(auto=10, notify=2)
        result = asyncio.run(orch.analyze(TEXT))

        assert result.status == AnalysisStatus.GATED
        assert result.gate == GateDecision.NOTIFY
        assert result.readability is None
        assert result.rights is None

    def test_force_skips_gate(self):
        orch = make_orchestrator(auto=10)
        result = asyncio.run(orch.analyze(TEXT, force=True))
        assert result.status == AnalysisStatus.COMPLETE
        assert result.gate == GateDecision.NOTIFY

    def test_empty_text_fails(self):
        orch = make_orchestrator()
        result = asyncio.run(orch.analyze("   \n\t "))
        assert result.status == AnalysisStatus.FAILED
        assert result.error == FAILED_MESSAGE
        assert "pipeline" in result.errors

    def test_failing_analyzer_gives_partial(self):
        orch = make_orchestrator()
        with patch.object(orch.grader, "grade", side_effect=RuntimeError("boom")):
            result = asyncio.run(orch.analyze(TEXT))

        assert result.status == AnalysisStatus.PARTIAL
        assert "readability" in result.errors
        assert result.readability is None
        assert result.rights is not None
        assert result.error is None

    def test_degraded_analyzer_result_gives_partial(self):
        from termsguardian.analyzers.base import RightsResult

        orch = make_orchestrator()
        degraded = RightsResult(error="chunking failed")
        with patch.object(orch.assessor, "assess", return_value=degraded):
            result = asyncio.run(orch.analyze(TEXT))

        assert result.status == AnalysisStatus.PARTIAL
        assert result.errors == {"rights": "chunking failed"}

    def test_summary_can_be_disabled(self):
        orch = make_orchestrator(summarize=False)
        result = asyncio.run(orch.analyze(TEXT))
        assert result.summary is None
        assert result.status == AnalysisStatus.COMPLETE

    def test_result_serializes_to_json(self):
        orch = make_orchestrator()
        doc = Document(text=TEXT, url="https://example.com/tos", title="ToS")
        result = asyncio.run(orch.analyze(doc))
        data = json.loads(json.dumps(result.to_dict()))
        assert data["status"] == "complete"
        assert data["document"]["url"] == "https://example.com/tos"
        assert data["uncommon_terms"][0]["source"] == "LegalDefinitions"


class TestPartialResults:
    def test_callback_receives_each_part(self):
        orch = make_orchestrator()
        seen = []
        asyncio.run(orch.analyze(TEXT, on_partial=lambda name, res: seen.append(name)))
        assert sorted(seen) == ["readability", "rights", "summary", "terms"]

    def test_callback_errors_do_not_abort(self):
        orch = make_orchestrator()

        def explode(name, result):
            raise ValueError("ui gone")

        result = asyncio.run(orch.analyze(TEXT, on_partial=explode))
        assert result.status == AnalysisStatus.COMPLETE


class TestConcurrency:
    def test_second_request_for_same_document_is_noop(self):
        orch = make_orchestrator()

        async def both():
            return await asyncio.gather(orch.analyze(TEXT), orch.analyze(TEXT))

        results = asyncio.run(both())
        assert sum(r is None for r in results) == 1
        assert sum(r is not None for r in results) == 1

    def test_different_documents_run_together(self):
        orch = make_orchestrator()
        a = Document(text=TEXT, url="a")
        b = Document(text=TEXT, url="b")

        async def both():
            return await asyncio.gather(orch.analyze(a), orch.analyze(b))

        results = asyncio.run(both())
        assert all(r is not None for r in results)

    def test_state_returns_to_idle(self):
        orch = make_orchestrator()
        doc = Document(text=TEXT, url="doc")
        asyncio.run(orch.analyze(doc))
        assert orch.state("doc") == AnalysisState.IDLE
        assert not orch.is_analyzing("doc")
        assert "doc" not in orch._states

    def test_lock_released_after_failure(self):
        orch = make_orchestrator()
        doc = Document(text="", url="doc")
        asyncio.run(orch.analyze(doc))
        assert not orch.is_analyzing("doc")


class TestDetect:
    def test_interval_gate(self):
        clock = FakeClock(0)
        orch = make_orchestrator(clock=clock)
        doc = Document(text=TEXT, url="page")

        assert asyncio.run(orch.detect(doc)) is not None
        clock.now = 1000
        assert asyncio.run(orch.detect(doc)) is None
        clock.now = 5000
        assert asyncio.run(orch.detect(doc)) is not None

    def test_manual_bypasses_interval_and_gate(self):
        clock = FakeClock(0)
        orch = make_orchestrator(auto=100, clock=clock)
        doc = Document(text=TEXT, url="page")

        assert asyncio.run(orch.detect(doc)).status == AnalysisStatus.GATED
        clock.now = 10
        result = asyncio.run(orch.detect(doc, manual=True))
        assert result.status == AnalysisStatus.COMPLETE

    def test_manual_request_respects_in_flight_lock(self):
        orch = make_orchestrator()
        doc = Document(text=TEXT, url="page")

        async def both():
            return await asyncio.gather(orch.analyze(doc), orch.detect(doc, manual=True))

        running, manual = asyncio.run(both())
        assert running is not None
        assert manual is None

    def test_expired_detection_times_are_dropped(self):
        clock = FakeClock(0)
        orch = make_orchestrator(clock=clock)

        asyncio.run(orch.detect(Document(text=TEXT, url="a")))
        asyncio.run(orch.detect(Document(text=TEXT, url="b")))
        assert set(orch._last_detection) == {"a", "b"}

        clock.now = 6000
        asyncio.run(orch.detect(Document(text=TEXT, url="c")))
        assert orch._last_detection == {"c": 6000}


class TestClose:
    def test_close_releases_dictionary(self):
        orch = make_orchestrator()
        with patch.object(orch.dictionary, "close") as close:
            orch.close()
        close.assert_called_once_with()

    def test_async_context_manager_closes(self):
        orch = make_orchestrator()

        async def run():
            async with orch as entered:
                assert entered is orch
                return await orch.analyze(TEXT)

        with patch.object(orch.dictionary, "close") as close:
            result = asyncio.run(run())
        assert result.status == AnalysisStatus.COMPLETE
        close.assert_called_once_with()

    def test_async_context_manager_closes_on_error(self):
        orch = make_orchestrator()

        async def run():
            async with orch:
                raise RuntimeError("stop")

        with patch.object(orch.dictionary, "close") as close:
            with pytest.raises(RuntimeError):
                asyncio.run(run())
        close.assert_called_once_with()

    def test_module_analyze_closes_orchestrator(self):
        with patch.object(AnalysisOrchestrator, "close") as close:
            asyncio.run(analyze(TEXT, legal_vocabulary=LEGAL_TERMS, common_words=COMMON_WORDS))
        close.assert_called_once_with()


class TestModuleAnalyze:
    def test_analyze_with_dict_config(self):
        result = asyncio.run(
            analyze(
                TEXT,
                legal_vocabulary=LEGAL_TERMS,
                common_words=COMMON_WORDS,
                config={"autoGradeThreshold": 1},
            )
        )
        assert result.status == AnalysisStatus.COMPLETE
        assert result.legal_term_count == 3

    def test_analyze_with_bundled_vocabulary(self):
        result = asyncio.run(analyze(TEXT, force=True))
        assert result.status in (AnalysisStatus.COMPLETE, AnalysisStatus.PARTIAL)
        assert result.legal_term_count >= 3
