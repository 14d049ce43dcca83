#!/usr/bin/env python3
"""
pdf_pipelines.py - Overlay, reverse and compress pipelines

Each pipeline:
1. Validates its input paths (before the PDF engine is touched)
2. Creates the output's parent directory
3. Works inside a private temp directory that is always removed
4. Writes the final file to a staging path and copies it to the output

The page-order logic (build_overlay_sequence, build_reverse_sequence) and the
best-of-N fold (select_best) are plain functions over paths, so they can be
tested without real PDFs.
"""

import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from pdf_config import (
    COMPRESS_TEMP_PREFIX,
    OVERLAY_TEMP_PREFIX,
    REVERSE_TEMP_PREFIX,
    RunConfig,
)
from pdf_errors import (
    OutputWriteError,
    PageCombineError,
    PdfToolError,
    SourceReadError,
    StrategyFailure,
)
from pdf_utils import (
    PdfEngine,
    copy_file,
    ensure_parent_dir,
    file_size,
    format_mb,
    list_split_files,
    validate_file,
)


@dataclass
class PipelineResult:
    output: str
    page_count: int


@dataclass
class Candidate:
    """One compression attempt: a file and its size in bytes."""
    path: str
    size: int


@dataclass
class CompressionResult:
    output: str
    page_count: int
    original_size: int
    best_size: int
    best_path: str
    failures: List[StrategyFailure] = field(default_factory=list)

    @property
    def ratio(self) -> float:
        return (self.original_size - self.best_size) / self.original_size

    @property
    def reduced(self) -> bool:
        return self.ratio > 0

    def summary_lines(self) -> List[str]:
        lines = [
            f"Original size: {format_mb(self.original_size)}",
            f"Compressed size: {format_mb(self.best_size)}",
        ]
        if self.reduced:
            lines.append(f"Size reduction: {self.ratio * 100:.1f}%")
        else:
            lines.append("No size reduction achieved - PDF may already be optimized")
        return lines


class _Reporter:
    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def __call__(self, message: str):
        if not self.quiet:
            print(message)

    def warn(self, message: str):
        print(f"⚠️  {message}")


# ============================================================================
# WORKING AREA
# ============================================================================

@contextmanager
def working_area(prefix: str, base_dir: Optional[str] = None) -> Iterator[Path]:
    """Temp directory for one pipeline run, removed on every exit path."""
    try:
        if base_dir:
            Path(base_dir).mkdir(parents=True, exist_ok=True)
        area = tempfile.TemporaryDirectory(prefix=prefix, dir=base_dir)
    except OSError as e:
        raise OutputWriteError(f"failed to create working directory: {e}", path=base_dir, stage="workdir") from e
    with area as tmp:
        yield Path(tmp)


# ============================================================================
# PAGE-SET BUILDERS
# ============================================================================

def build_overlay_sequence(pages_a: List[str], pages_b: List[str],
                           combine: Callable[[int, str, str], str]) -> List[str]:
    """
    Pairwise-then-tail merge of two page lists.

    Pages at matching positions go through combine(index, page_a, page_b).
    Whatever is left of the longer list is appended unchanged, so the result
    always has max(len(pages_a), len(pages_b)) entries.
    """
    n = min(len(pages_a), len(pages_b))
    sequence = []

    for i in range(n):
        try:
            sequence.append(combine(i, pages_a[i], pages_b[i]))
        except PdfToolError:
            raise
        except Exception as e:
            raise PageCombineError(f"failed to overlay page {i + 1}: {e}", page=i + 1,
                                   path=str(pages_a[i])) from e

    if len(pages_a) > n:
        sequence.extend(pages_a[n:])
    elif len(pages_b) > n:
        sequence.extend(pages_b[n:])

    return sequence


def build_reverse_sequence(pages: List[str]) -> List[str]:
    if not pages:
        raise SourceReadError("document has no pages", stage="reverse")
    return list(reversed(pages))


# ============================================================================
# SHARED STEPS
# ============================================================================

def _prepare_output(output: str):
    try:
        ensure_parent_dir(output)
    except OSError as e:
        raise OutputWriteError(f"failed to create output directory: {e}", path=output, stage="output") from e


def _read_page_count(engine, path: str, label: str) -> int:
    try:
        return engine.page_count(path)
    except Exception as e:
        raise SourceReadError(f"failed to get page count: {e}", path=path, stage=label) from e


def _split_pages(engine, path: str, pages_dir: Path, label: str) -> List[str]:
    try:
        pages_dir.mkdir(parents=True, exist_ok=True)
        engine.split(path, str(pages_dir))
        # Engines name their split files differently; trust the directory
        return list_split_files(str(pages_dir))
    except Exception as e:
        raise SourceReadError(f"failed to split: {e}", path=path, stage=label) from e


def _write_sequence(engine, pages: List[str], area: Path, output: str):
    """Merge pages into a staging file, then copy it over the output."""
    staging = area / "final.pdf"
    try:
        engine.merge(pages, str(staging))
    except Exception as e:
        raise OutputWriteError(f"failed to merge final PDF: {e}", path=output, stage="merge") from e
    try:
        copy_file(str(staging), output)
    except OSError as e:
        raise OutputWriteError(f"failed to write output: {e}", path=output, stage="output") from e


# ============================================================================
# OVERLAY
# ============================================================================

def run_overlay(config: RunConfig, engine: Optional[PdfEngine] = None) -> PipelineResult:
    """Overlay config.file2 onto config.file1, page by page."""
    config.validate()
    validate_file(config.file1, "file1")
    validate_file(config.file2, "file2")
    engine = engine or PdfEngine()
    say = _Reporter(config.quiet)

    _prepare_output(config.output)

    say("📄 Loading PDF files...")
    count1 = _read_page_count(engine, config.file1, "file1")
    count2 = _read_page_count(engine, config.file2, "file2")
    say(f"   File1: {count1} pages, File2: {count2} pages")

    with working_area(OVERLAY_TEMP_PREFIX, config.temp_dir) as area:
        say("✂️  Splitting PDFs into individual pages...")
        pages1 = _split_pages(engine, config.file1, area / "pages1", "file1")
        pages2 = _split_pages(engine, config.file2, area / "pages2", "file2")
        say(f"   Found {len(pages1)} files in pages1, {len(pages2)} files in pages2")

        if not pages1 and not pages2:
            raise SourceReadError("both documents have no pages", stage="overlay")

        overlay_dir = area / "overlaid"
        overlay_dir.mkdir()

        def combine(i, page_a, page_b):
            say(f"   Processing page {i + 1} (overlay)...")
            out = overlay_dir / f"overlaid_page_{i + 1}.pdf"
            engine.overlay(page_a, page_b, str(out), config.overlay_mode)
            return str(out)

        say(f"🎨 Creating overlaid pages ({config.overlay_mode})...")
        final_pages = build_overlay_sequence(pages1, pages2, combine)

        if len(pages1) > len(pages2):
            say(f"   Added {len(pages1) - len(pages2)} remaining pages from file1")
        elif len(pages2) > len(pages1):
            say(f"   Added {len(pages2) - len(pages1)} remaining pages from file2")

        say("🔀 Merging pages into final PDF...")
        _write_sequence(engine, final_pages, area, config.output)

    say(f"✅ Created overlaid PDF from {len(final_pages)} page sources: {config.output}")
    return PipelineResult(output=config.output, page_count=len(final_pages))


# ============================================================================
# REVERSE
# ============================================================================

def run_reverse(config: RunConfig, engine: Optional[PdfEngine] = None) -> PipelineResult:
    config.validate()
    validate_file(config.file1, "file")
    engine = engine or PdfEngine()
    say = _Reporter(config.quiet)

    _prepare_output(config.output)

    say("📄 Loading PDF file...")
    count = _read_page_count(engine, config.file1, "file")
    say(f"   PDF has {count} pages")

    with working_area(REVERSE_TEMP_PREFIX, config.temp_dir) as area:
        say("✂️  Splitting PDF into individual pages...")
        pages = _split_pages(engine, config.file1, area / "pages", "file")
        say(f"   Found {len(pages)} page files")

        say("🔃 Reversing page order...")
        reversed_pages = build_reverse_sequence(pages)

        say("🔀 Merging pages into final PDF...")
        _write_sequence(engine, reversed_pages, area, config.output)

    say(f"✅ Created reversed PDF with {len(reversed_pages)} pages: {config.output}")
    return PipelineResult(output=config.output, page_count=len(reversed_pages))


# ============================================================================
# COMPRESS
# ============================================================================

@dataclass
class StrategyContext:
    engine: PdfEngine
    area: Path
    passes: int


def direct_optimize(best: Candidate, ctx: StrategyContext) -> Iterator[Candidate]:
    out = ctx.area / "optimized.pdf"
    ctx.engine.optimize(best.path, str(out))
    yield Candidate(str(out), file_size(out))


def split_remerge(best: Candidate, ctx: StrategyContext) -> Iterator[Candidate]:
    # Some files shrink just from being re-serialized page by page
    pages_dir = ctx.area / "pages"
    pages_dir.mkdir(parents=True, exist_ok=True)
    ctx.engine.split(best.path, str(pages_dir))
    pages = list_split_files(str(pages_dir))
    if not pages:
        raise ValueError("split produced no pages")

    out = ctx.area / "merged.pdf"
    ctx.engine.merge(pages, str(out))
    yield Candidate(str(out), file_size(out))


def iterative_optimize(best: Candidate, ctx: StrategyContext) -> Iterator[Candidate]:
    """Optimize the previous pass's output, up to ctx.passes times."""
    current = best.path
    for i in range(1, ctx.passes + 1):
        out = ctx.area / f"pass{i}.pdf"
        ctx.engine.optimize(current, str(out))
        yield Candidate(str(out), file_size(out))
        # select_best stops consuming after a non-improving pass
        current = str(out)


STRATEGY_LABELS = {
    "direct_optimize": "Basic optimization",
    "split_remerge": "Split-merge compression",
    "iterative_optimize": "Multiple optimization passes",
}

DEFAULT_STRATEGIES = [direct_optimize, split_remerge, iterative_optimize]


def select_best(original: Candidate, strategies, ctx: StrategyContext,
                say: Optional[Callable[[str], None]] = None,
                failures: Optional[List[StrategyFailure]] = None) -> Candidate:
    """
    Fold the strategies over a running best candidate.

    Each strategy is fed the current best. A candidate is adopted only if it
    is strictly smaller; the first candidate that isn't ends that strategy.
    A strategy that raises is recorded in failures and skipped.
    """
    say = say or _Reporter(quiet=True)
    best = original

    for strategy in strategies:
        name = getattr(strategy, "__name__", str(strategy))
        say(f"🔧 Trying {STRATEGY_LABELS.get(name, name).lower()}...")
        try:
            for candidate in strategy(best, ctx):
                if candidate.size >= best.size:
                    break
                best = candidate
                say(f"   {Path(candidate.path).name}: {format_mb(best.size)} "
                    f"({(original.size - best.size) / original.size * 100:.1f}% reduction)")
        except Exception as e:
            failure = StrategyFailure(str(e) or type(e).__name__, strategy=name, path=best.path)
            failure.__cause__ = e
            if failures is not None:
                failures.append(failure)
            if hasattr(say, "warn"):
                say.warn(f"{failure} - skipping")
            else:
                print(f"⚠️  {failure} - skipping")

    return best


def run_compress(config: RunConfig, engine: Optional[PdfEngine] = None,
                 strategies=None) -> CompressionResult:
    """Try each strategy in turn and keep the smallest file."""
    config.validate()
    validate_file(config.file1, "file")
    engine = engine or PdfEngine()
    strategies = DEFAULT_STRATEGIES if strategies is None else strategies
    say = _Reporter(config.quiet)

    _prepare_output(config.output)

    say(f"📄 Loading PDF file: {config.file1}")
    original_size = file_size(config.file1)
    page_count = _read_page_count(engine, config.file1, "file")
    say(f"   Original PDF: {page_count} pages, {format_mb(original_size)}")

    original = Candidate(str(config.file1), original_size)
    failures: List[StrategyFailure] = []

    with working_area(COMPRESS_TEMP_PREFIX, config.temp_dir) as area:
        ctx = StrategyContext(engine=engine, area=area, passes=config.optimize_passes)
        best = select_best(original, strategies, ctx, say=say, failures=failures)

        say("📦 Finalizing compression...")
        try:
            # Compressing in place with no gain: the output already holds the original
            if Path(best.path).resolve() != Path(config.output).resolve():
                copy_file(best.path, config.output)
        except OSError as e:
            raise OutputWriteError(f"failed to copy file: {e}", path=config.output, stage="output") from e

    result = CompressionResult(
        output=config.output,
        page_count=page_count,
        original_size=original_size,
        best_size=best.size,
        best_path=best.path,
        failures=failures,
    )

    say("✅ Compression completed!")
    for line in result.summary_lines():
        say(f"   {line}")
    say(f"   Output saved to: {config.output}")
    return result
