import pytest
from PyPDF2 import PdfReader

from pdf_config import RunConfig
from pdf_tools import build_parser, main


def page_texts(path):
    return [(page.extract_text() or "").strip() for page in PdfReader(str(path)).pages]


def test_overlay_command_stamps_and_keeps_tail(pdf_factory, tmp_path, capsys):
    base = pdf_factory("base.pdf", [f"A{i}" for i in range(1, 6)], y=700)
    top = pdf_factory("top.pdf", [f"B{i}" for i in range(1, 4)], y=400)
    out = tmp_path / "out" / "overlaid.pdf"

    code = main(['pdf', 'overlay', '--file1', str(base), '--file2', str(top), '--output', str(out)])

    assert code == 0
    texts = page_texts(out)
    assert len(texts) == 5
    for i in range(3):
        assert f"A{i + 1}" in texts[i] and f"B{i + 1}" in texts[i]
    assert texts[3:] == ["A4", "A5"]
    assert "File1: 5 pages, File2: 3 pages" in capsys.readouterr().out


def test_overlay_command_concat_mode(pdf_factory, tmp_path):
    base = pdf_factory("base.pdf", ["A1", "A2"])
    top = pdf_factory("top.pdf", ["B1"])
    out = tmp_path / "concat.pdf"

    code = main(['pdf', 'overlay', '--file1', str(base), '--file2', str(top),
                 '--output', str(out), '--mode', 'concat'])

    assert code == 0
    assert page_texts(out) == ["A1", "B1", "A2"]


def test_reverse_command(pdf_factory, tmp_path):
    doc = pdf_factory("doc.pdf", ["R1", "R2", "R3"])
    out = tmp_path / "reversed.pdf"

    assert main(['--quiet', 'pdf', 'reverse', '--file', str(doc), '--output', str(out)]) == 0
    assert page_texts(out) == ["R3", "R2", "R1"]


def test_compress_command(pdf_factory, tmp_path, capsys):
    doc = pdf_factory("doc.pdf", [f"C{i}" for i in range(1, 5)])
    out = tmp_path / "small.pdf"

    code = main(['pdf', 'compress', '--file', str(doc), '--output', str(out)])

    assert code == 0
    assert out.stat().st_size <= doc.stat().st_size
    assert page_texts(out) == ["C1", "C2", "C3", "C4"]
    stdout = capsys.readouterr().out
    assert "Compression completed!" in stdout
    assert "Original size:" in stdout


def test_quiet_suppresses_progress(pdf_factory, tmp_path, capsys):
    doc = pdf_factory("doc.pdf", ["Q1"])
    out = tmp_path / "q.pdf"

    assert main(['--quiet', 'pdf', 'reverse', '--file', str(doc), '--output', str(out)]) == 0
    assert capsys.readouterr().out == ""


def test_missing_file_exits_non_zero(tmp_path, capsys):
    missing = tmp_path / "missing.pdf"

    code = main(['pdf', 'reverse', '--file', str(missing), '--output', str(tmp_path / "o.pdf")])

    assert code == 1
    err = capsys.readouterr().err
    assert "file does not exist" in err
    assert str(missing) in err


def test_unreadable_pdf_exits_non_zero(tmp_path, capsys):
    bad = tmp_path / "bad.pdf"
    bad.write_bytes(b"not a pdf")
    out = tmp_path / "o.pdf"

    code = main(['pdf', 'reverse', '--file', str(bad), '--output', str(out)])

    assert code == 1
    assert "failed to get page count" in capsys.readouterr().err
    assert not out.exists()


def test_required_flags_are_enforced():
    with pytest.raises(SystemExit) as exc:
        main(['pdf', 'overlay', '--file1', 'a.pdf', '--output', 'o.pdf'])
    assert exc.value.code == 2


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out


def test_run_config_from_args(monkeypatch):
    monkeypatch.setenv("PDF_TOOLS_TMPDIR", "/tmp/pdf-work")
    args = build_parser().parse_args(['pdf', 'compress', '--file', 'in.pdf', '--output', 'out.pdf', '--passes', '5'])

    config = RunConfig.from_args(args)

    assert config.file1 == "in.pdf"
    assert config.file2 == ""
    assert config.output == "out.pdf"
    assert config.optimize_passes == 5
    assert config.overlay_mode == "stamp"
    assert config.temp_dir == "/tmp/pdf-work"


def test_unusable_temp_dir_exits_non_zero(pdf_factory, tmp_path, capsys):
    doc = pdf_factory("doc.pdf", ["T1"])
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    out = tmp_path / "o.pdf"

    code = main(['--temp-dir', str(blocker), 'pdf', 'reverse', '--file', str(doc), '--output', str(out)])

    assert code == 1
    assert "failed to create working directory" in capsys.readouterr().err
    assert not out.exists()
