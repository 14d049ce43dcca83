from pathlib import Path

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


def make_pdf(path: Path, labels, y: float = 700) -> Path:
    """Write a PDF with one page per label; each page shows its label."""
    can = canvas.Canvas(str(path), pagesize=A4)
    for label in labels:
        can.setFont("Helvetica", 24)
        can.drawString(72, y, label)
        can.showPage()
    can.save()
    return path


class FakeEngine:
    """
    Stand-in for PdfEngine that works on small text files.

    split() writes one file per page containing "<stem>:<n>", merge() joins
    the inputs with newlines and overlay() writes "<a>+<b>". optimize()
    writes a file of the next scripted size (or a copy when the script runs
    out). Every call is recorded in self.calls.
    """

    def __init__(self, page_counts=None, optimize_sizes=None, fail=(), fail_overlay_at=None):
        self.page_counts = {str(k): v for k, v in (page_counts or {}).items()}
        self.optimize_sizes = list(optimize_sizes or [])
        self.fail = set(fail)
        self.fail_overlay_at = fail_overlay_at
        self.calls = []
        self._overlays = 0

    def _record(self, name, *args):
        self.calls.append((name,) + tuple(str(a) for a in args))
        if name in self.fail:
            raise RuntimeError(f"{name} exploded")

    def calls_to(self, name):
        return [c for c in self.calls if c[0] == name]

    def page_count(self, path):
        self._record("page_count", path)
        return self.page_counts.get(str(path), 1)

    def split(self, path, out_dir):
        self._record("split", path, out_dir)
        stem = Path(path).stem
        count = self.page_counts.get(str(path), 1)
        written = []
        for i in range(1, count + 1):
            # Unpadded numbers on purpose: discovery must not rely on lexical order
            page = Path(out_dir) / f"{stem}_{i}.pdf"
            if str(path) in self.page_counts:
                page.write_text(f"{stem}:{i}")
            else:
                page.write_bytes(Path(path).read_bytes())
            written.append(str(page))
        return written

    def merge(self, paths, output_path):
        self._record("merge", output_path)
        parts = [Path(p).read_bytes() for p in paths]
        Path(output_path).write_bytes(b"\n".join(parts))

    def overlay(self, base_path, overlay_path, output_path, mode="stamp"):
        self._record("overlay", base_path, overlay_path, output_path, mode)
        self._overlays += 1
        if self.fail_overlay_at == self._overlays:
            raise RuntimeError("bad page")
        base = Path(base_path).read_text()
        top = Path(overlay_path).read_text()
        Path(output_path).write_text(f"{base}+{top}")

    def optimize(self, input_path, output_path):
        self._record("optimize", input_path, output_path)
        if self.optimize_sizes:
            Path(output_path).write_bytes(b"x" * self.optimize_sizes.pop(0))
        else:
            Path(output_path).write_bytes(Path(input_path).read_bytes())


@pytest.fixture
def fake_engine():
    return FakeEngine


@pytest.fixture
def pdf_factory(tmp_path):
    def _make(name, labels, y=700):
        return make_pdf(tmp_path / name, labels, y=y)
    return _make
