from termsguardian.analyzers.summarizer import SectionSummarizer, split_sections

DOCUMENT = """1. Introduction
These terms govern your use of the service.
2. Termination
We may end your access at any time. Termination takes effect immediately.
"""

LONG_SECTION = (
    "This agreement starts today. The weather is pleasant. "
    "Our liability is limited to fees paid. Lunch is served at noon. "
    "Arbitration resolves every dispute. Thank you for reading."
)


class TestSplitSections:
    def test_numbered_headings(self):
        sections = split_sections(DOCUMENT)
        assert [h for h, _ in sections] == ["1. Introduction", "2. Termination"]
        assert sections[0][1] == "These terms govern your use of the service."

    def test_all_caps_heading(self):
        sections = split_sections("LIMITATION OF LIABILITY\nWe are not liable.")
        assert sections == [("LIMITATION OF LIABILITY", "We are not liable.")]

    def test_no_headings_is_one_section(self):
        sections = split_sections("Just a paragraph.\nAnd another line.")
        assert sections == [("Document", "Just a paragraph. And another line.")]

    def test_preamble_kept(self):
        sections = split_sections("Welcome aboard.\nSECTION ONE\nBody text.")
        assert sections[0] == ("Document", "Welcome aboard.")
        assert sections[1][0] == "SECTION ONE"

    def test_empty_text(self):
        assert split_sections("") == []


class TestSectionSummarizer:
    def test_short_section_kept_whole(self):
        summarizer = SectionSummarizer(["liability"])
        assert summarizer.summarize_section("One. Two.") == "One. Two."

    def test_first_and_last_sentences_kept(self):
        summary = SectionSummarizer(["liability", "arbitration"]).summarize_section(
            LONG_SECTION
        )
        assert summary.startswith("This agreement starts today.")
        assert summary.endswith("Thank you for reading.")

    def test_prefers_sentences_with_legal_terms(self):
        summary = SectionSummarizer(
            ["liability", "arbitration"], max_sentences=3
        ).summarize_section(LONG_SECTION)
        assert "weather" not in summary
        assert "Lunch" not in summary
        assert ("liability" in summary) or ("Arbitration" in summary)

    def test_minimum_two_sentences(self):
        summarizer = SectionSummarizer(max_sentences=0)
        assert summarizer.max_sentences == 2

    def test_summarize_document(self):
        result = SectionSummarizer(["termination"]).summarize(DOCUMENT)
        assert result.error is None
        assert len(result.sections) == 2
        assert "## 1. Introduction" in result.overall
        assert "## 2. Termination" in result.overall

    def test_summarize_empty(self):
        result = SectionSummarizer().summarize("")
        assert result.overall == ""
        assert result.sections == []

    def test_to_dict(self):
        data = SectionSummarizer().summarize(DOCUMENT).to_dict()
        assert data["section_count"] == 2
        assert data["sections"][0]["heading"] == "1. Introduction"
