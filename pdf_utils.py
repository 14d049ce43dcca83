#!/usr/bin/env python3
"""
pdf_utils.py - PDF engine adapter and file helpers

Everything that actually touches PDF internals lives here:
- Page counting, splitting and merging (PyPDF2)
- Page-over-page compositing (PyPDF2 merge_page)
- Size optimization (PyMuPDF garbage-collecting re-save)
- Path validation and file safety helpers

The pipelines in pdf_pipelines.py only see the PdfEngine methods, so tests can
swap in a fake engine.
"""

import re
import shutil
from pathlib import Path
from typing import Dict, List, Optional

try:
    import fitz  # PyMuPDF
    FITZ_AVAILABLE = True
except ImportError:
    FITZ_AVAILABLE = False
    fitz = None

try:
    from PyPDF2 import PdfReader, PdfWriter
    PYPDF2_AVAILABLE = True
except ImportError:
    PYPDF2_AVAILABLE = False
    PdfReader = None
    PdfWriter = None

from pdf_config import OPTIMIZE_SAVE_OPTIONS, SPLIT_PREFIX
from pdf_errors import ValidationError

MB = 1024 * 1024


def _require_pypdf2():
    if not PYPDF2_AVAILABLE:
        raise RuntimeError("PyPDF2 not available (pip install PyPDF2)")


def _require_fitz():
    if not FITZ_AVAILABLE:
        raise RuntimeError("PyMuPDF not available (pip install pymupdf)")


# ============================================================================
# PDF ENGINE
# ============================================================================

class PdfEngine:
    """
    Thin wrapper over PyPDF2 and PyMuPDF.

    Methods raise whatever the underlying library raises; callers decide
    which error category a failure belongs to.
    """

    def __init__(self, split_prefix: str = SPLIT_PREFIX, save_options: Optional[Dict] = None):
        self.split_prefix = split_prefix
        self.save_options = dict(save_options or OPTIMIZE_SAVE_OPTIONS)

    def page_count(self, path: str) -> int:
        _require_pypdf2()
        reader = PdfReader(str(path))
        return len(reader.pages)

    def split(self, path: str, out_dir: str) -> List[str]:
        """
        Split PDF into one file per page.

        Args:
            path: PDF to split
            out_dir: Directory for the page files (created if missing)

        Returns:
            Page file paths in page order
        """
        _require_pypdf2()
        output_path = Path(out_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        reader = PdfReader(str(path))
        written = []
        for i, page in enumerate(reader.pages, start=1):
            writer = PdfWriter()
            writer.add_page(page)

            output_file = output_path / f"{self.split_prefix}-{i:03d}.pdf"
            with open(output_file, 'wb') as f:
                writer.write(f)
            written.append(str(output_file))

        return written

    def merge(self, pdf_paths: List[str], output_path: str):
        """
        Merge PDFs into one, in the order given.

        Args:
            pdf_paths: PDF paths to merge (in order)
            output_path: Path for merged output PDF
        """
        _require_pypdf2()
        writer = PdfWriter()

        for pdf_path in pdf_paths:
            reader = PdfReader(str(pdf_path))
            for page in reader.pages:
                writer.add_page(page)

        with open(output_path, 'wb') as output_file:
            writer.write(output_file)

    def optimize(self, input_path: str, output_path: str):
        """Re-save with garbage collection and stream compression."""
        _require_fitz()
        doc = fitz.open(str(input_path))
        try:
            doc.save(str(output_path), **self.save_options)
        finally:
            doc.close()

    def overlay(self, base_path: str, overlay_path: str, output_path: str, mode: str = "stamp"):
        """
        Combine the first page of two single-page PDFs.

        stamp: the overlay page is drawn on top of the base page. The base
               page keeps its mediabox and /Rotate.
        concat: the two pages are written one after the other.
        """
        if mode == "concat":
            self.merge([base_path, overlay_path], output_path)
            return
        if mode != "stamp":
            raise ValueError(f"Unknown overlay mode: {mode}")

        _require_pypdf2()
        base_page = PdfReader(str(base_path)).pages[0]
        top_page = PdfReader(str(overlay_path)).pages[0]

        writer = PdfWriter()
        writer.add_page(base_page)
        writer.pages[0].merge_page(top_page)
        with open(output_path, 'wb') as output_file:
            writer.write(output_file)


# ============================================================================
# SPLIT FILE DISCOVERY
# ============================================================================

def _natural_key(name: str):
    return [int(part) if part.isdigit() else part.lower() for part in re.split(r'(\d+)', name)]


def list_split_files(directory: str) -> List[str]:
    """
    List the PDF page files in a split directory, in page order.

    Numbers in names are compared numerically, so page-10 sorts after page-9
    whatever naming the engine used.
    """
    dir_path = Path(directory)
    files = [p for p in dir_path.iterdir() if p.is_file() and p.suffix.lower() == '.pdf']
    return [str(p) for p in sorted(files, key=lambda p: _natural_key(p.name))]


# ============================================================================
# FILE SAFETY UTILITIES
# ============================================================================

def validate_file(path: str, label: str = "file") -> Path:
    """
    Check that path names an existing, non-empty regular file.

    Raises:
        ValidationError: with label as the stage
    """
    if not path or not str(path).strip():
        raise ValidationError("file path cannot be empty", stage=label)

    p = Path(path)
    if not p.exists():
        raise ValidationError("file does not exist", path=str(path), stage=label)
    if not p.is_file():
        raise ValidationError("not a regular file", path=str(path), stage=label)
    if p.stat().st_size == 0:
        raise ValidationError("file is empty", path=str(path), stage=label)
    return p


def ensure_parent_dir(path: str) -> Path:
    """Create the parent directory of path if it doesn't exist."""
    parent = Path(path).parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent


def copy_file(src: str, dst: str):
    shutil.copyfile(src, dst)


def file_size(path: str) -> int:
    return Path(path).stat().st_size


def format_mb(size: int) -> str:
    return f"{size / MB:.2f} MB"


# ============================================================================
# DEPENDENCY CHECK
# ============================================================================

def check_dependencies() -> Dict[str, bool]:
    """
    Check which PDF libraries are available.

    Returns:
        Dictionary of library availability
    """
    return {
        'pypdf2': PYPDF2_AVAILABLE,
        'pymupdf': FITZ_AVAILABLE,
    }


def print_dependencies():
    """Print status of all dependencies."""
    deps = check_dependencies()
    print("\n📦 PDF Utils Dependencies:")
    for name, available in deps.items():
        status = "✅" if available else "❌"
        print(f"  {status} {name}")
    print()


if __name__ == '__main__':
    print_dependencies()
