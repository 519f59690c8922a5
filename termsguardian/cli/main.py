import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import chardet
from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="termsguardian",
        description="Terms Guardian - readability and rights analysis for legal text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="YAML config file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    _add_analyze_subparser(subparsers)
    _add_detect_subparser(subparsers)
    _add_define_subparser(subparsers)
    _add_summarize_subparser(subparsers)

    return parser


def _add_analyze_subparser(subparsers):
    """Add the analyze subcommand."""
    analyze_parser = subparsers.add_parser(
        "analyze", help="Grade readability, rights and vocabulary of text files"
    )
    analyze_parser.add_argument(
        "-i", "--input", type=Path, required=True, help="Input text file or directory"
    )
    analyze_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("output"),
        help="Output directory (default: output)",
    )
    analyze_parser.add_argument(
        "--force",
        action="store_true",
        help="Analyze even when too few legal terms are found",
    )


def _add_detect_subparser(subparsers):
    """Add the detect subcommand."""
    detect_parser = subparsers.add_parser(
        "detect", help="Count legal terms and report the gating decision"
    )
    detect_parser.add_argument(
        "-i", "--input", type=Path, required=True, help="Input text file or directory"
    )


def _add_define_subparser(subparsers):
    """Add the define subcommand."""
    define_parser = subparsers.add_parser("define", help="Look up legal definitions")
    define_parser.add_argument("words", nargs="+", help="Words or phrases to define")


def _add_summarize_subparser(subparsers):
    """Add the summarize subcommand."""
    summarize_parser = subparsers.add_parser(
        "summarize", help="Summarize a document section by section"
    )
    summarize_parser.add_argument(
        "-i", "--input", type=Path, required=True, help="Input text file"
    )
    summarize_parser.add_argument(
        "--sentences",
        type=int,
        default=3,
        help="Maximum sentences per section (default: 3)",
    )


def read_text(path: Path) -> str:
    """Read a text file, detecting the encoding when it is not UTF-8."""
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        detected = chardet.detect(raw)
        encoding = detected.get("encoding") or "latin-1"
        logger.debug(f"Decoding {path} as {encoding} (confidence {detected.get('confidence')})")
        return raw.decode(encoding, errors="replace")


def cmd_analyze(args) -> int:
    """Execute the analyze command."""
    from rich.progress import Progress, SpinnerColumn

    from ..analyzers.base import AnalysisStatus, Document
    from ..config import load_config
    from ..orchestrator import AnalysisOrchestrator

    text_files = _collect_text_files(args.input)
    if not text_files:
        print(f"No text files found in {args.input}")
        return 1

    output_dir = args.output
    output_dir.mkdir(parents=True, exist_ok=True)

    orchestrator = AnalysisOrchestrator(config=load_config(args.config))

    table = Table(title="Analysis results")
    table.add_column("Document")
    table.add_column("Status")
    table.add_column("Legal terms", justify="right")
    table.add_column("Grade")
    table.add_column("Rights", justify="right")
    table.add_column("Terms", justify="right")

    failed = 0
    with Progress(
        SpinnerColumn(), *Progress.get_default_columns(), transient=True
    ) as progress:
        task = progress.add_task("Analyzing...", total=len(text_files))
        for path in text_files:
            document = Document(text=read_text(path), url=str(path), title=path.stem)
            result = asyncio.run(orchestrator.analyze(document, force=args.force))
            progress.update(task, advance=1)
            if result is None:
                continue
            if result.status == AnalysisStatus.FAILED:
                failed += 1

            out_file = output_dir / f"{path.stem}.json"
            out_file.write_text(
                json.dumps(result.to_dict(), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )

            table.add_row(
                path.name,
                result.error or result.status.value,
                str(result.legal_term_count),
                result.readability.average_grade.value if result.readability else "-",
                f"{result.rights.score:.2f}" if result.rights else "-",
                str(len(result.uncommon_terms)),
            )

    orchestrator.close()
    console.print(table)
    print(f"Analyzed {len(text_files) - failed}/{len(text_files)} documents")
    return 0


def cmd_detect(args) -> int:
    """Execute the detect command."""
    from ..analyzers.legal_terms import LegalTermDetector
    from ..analyzers.normalizer import normalize
    from ..config import load_config
    from ..data import load_legal_terms

    text_files = _collect_text_files(args.input)
    if not text_files:
        print(f"No text files found in {args.input}")
        return 1

    config = load_config(args.config)
    detector = LegalTermDetector(
        load_legal_terms(),
        proximity_radius=config.proximity_radius,
        auto_grade_threshold=config.auto_grade_threshold,
        notify_threshold=config.notify_threshold,
        section_threshold=config.section_threshold,
    )

    table = Table(title="Legal term detection")
    table.add_column("Document")
    table.add_column("Count", justify="right")
    table.add_column("Density", justify="right")
    table.add_column("Proximity")
    table.add_column("Decision")

    for path in text_files:
        text = normalize(read_text(path))
        count = detector.count_legal_terms(text)
        table.add_row(
            path.name,
            str(count),
            f"{detector.legal_term_density(text):.3f}",
            "yes" if detector.contains_proximity_match(text) else "no",
            detector.gate(count).value,
        )

    console.print(table)
    return 0


def cmd_define(args) -> int:
    """Execute the define command."""
    from ..config import load_config
    from ..dictionary.service import DictionaryService

    service = DictionaryService.from_config(load_config(args.config))

    async def _lookup_all():
        return [await service.lookup(w) for w in args.words]

    try:
        entries = asyncio.run(_lookup_all())
    finally:
        service.close()

    missing = 0
    for word, entry in zip(args.words, entries):
        if entry is None:
            missing += 1
            console.print(f"[bold]{word}[/bold]: no definition found")
        else:
            console.print(f"[bold]{word}[/bold] ({entry.source.value}): {entry.definition}")

    return 0 if missing < len(args.words) else 1


def cmd_summarize(args) -> int:
    """Execute the summarize command."""
    from ..analyzers.summarizer import SectionSummarizer
    from ..data import load_legal_terms

    if not args.input.is_file():
        print(f"No text file found at {args.input}")
        return 1

    summarizer = SectionSummarizer(load_legal_terms(), max_sentences=args.sentences)
    result = summarizer.summarize(read_text(args.input))
    if result.error:
        print(f"Summarization failed: {result.error}")
        return 1

    print(result.overall or "No summary available.")
    return 0


def _collect_text_files(path: Path) -> List[Path]:
    """Collect text files from a path."""
    if path.is_file():
        return [path]
    if not path.exists():
        return []
    return sorted(list(path.glob("*.txt")) + list(path.glob("*.md")))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "analyze": cmd_analyze,
        "detect": cmd_detect,
        "define": cmd_define,
        "summarize": cmd_summarize,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
