# PDF Tools Configuration
# Defaults for the pdf-tools command group. Command-line flags override these
# per run through RunConfig.

import os
from dataclasses import dataclass
from typing import Optional

from pdf_errors import ValidationError

# ======================
# OVERLAY
# ======================
# stamp  = draw the file2 page on top of the file1 page (one output page)
# concat = put the two pages one after the other (two output pages)
OVERLAY_MODES = ("stamp", "concat")
DEFAULT_OVERLAY_MODE = "stamp"

# ======================
# COMPRESSION
# ======================
OPTIMIZE_PASSES = 3  # Extra optimize passes after direct optimize + split-remerge

# Passed to PyMuPDF's Document.save()
OPTIMIZE_SAVE_OPTIONS = {
    "garbage": 4,   # Drop unused objects and merge duplicates
    "deflate": True,
    "clean": True,
}

# ======================
# WORKING AREAS
# ======================
SPLIT_PREFIX = "page"  # Split files are named page-001.pdf, page-002.pdf, ...
OVERLAY_TEMP_PREFIX = "pdf_overlay_"
REVERSE_TEMP_PREFIX = "pdf_reverse_"
COMPRESS_TEMP_PREFIX = "pdf_compress_"

# Where working areas are created (default: system temp dir)
TEMP_DIR_ENV = "PDF_TOOLS_TMPDIR"


@dataclass
class RunConfig:
    """Settings for one command invocation."""
    file1: str = ""
    file2: str = ""
    output: str = ""
    overlay_mode: str = DEFAULT_OVERLAY_MODE
    optimize_passes: int = OPTIMIZE_PASSES
    quiet: bool = False
    temp_dir: Optional[str] = None

    @classmethod
    def from_args(cls, args) -> "RunConfig":
        # reverse/compress use --file, overlay uses --file1/--file2
        file1 = getattr(args, "file1", None) or getattr(args, "file", None) or ""
        return cls(
            file1=file1,
            file2=getattr(args, "file2", None) or "",
            output=getattr(args, "output", None) or "",
            overlay_mode=getattr(args, "mode", None) or DEFAULT_OVERLAY_MODE,
            optimize_passes=getattr(args, "passes", None) if getattr(args, "passes", None) is not None else OPTIMIZE_PASSES,
            quiet=bool(getattr(args, "quiet", False)),
            temp_dir=getattr(args, "temp_dir", None) or os.environ.get(TEMP_DIR_ENV) or None,
        )

    def validate(self):
        if self.overlay_mode not in OVERLAY_MODES:
            raise ValidationError(
                f"unknown overlay mode '{self.overlay_mode}' (choose from {', '.join(OVERLAY_MODES)})",
                stage="config",
            )
        if self.optimize_passes < 0:
            raise ValidationError("optimize passes cannot be negative", stage="config")
        if not self.output:
            raise ValidationError("output path cannot be empty", stage="config")
        return self
