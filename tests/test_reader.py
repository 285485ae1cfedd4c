import struct
from datetime import datetime, timezone

from photoferry.quicktime import EPOCH_OFFSET
from photoferry.reader import main, run


def _write_clip(tmp_path):
    data = b"\x00" * 16 + b"mvhd" + b"\x00" * 4 + struct.pack(">II", 0, EPOCH_OFFSET + 1658697056)
    path = tmp_path / "clip.mp4"
    path.write_bytes(data)
    return path


def test_run_returns_metadata(tmp_path, capsys):
    md = run(str(_write_clip(tmp_path)))
    assert md.date_taken == datetime(2022, 7, 24, 21, 10, 56, tzinfo=timezone.utc)
    assert "Metadata" in capsys.readouterr().err


def test_main_usage(capsys):
    assert main([]) == 0
    assert capsys.readouterr().out.strip() == "Usage: reader <file>"


def test_main_reads_file(tmp_path, capsys):
    assert main([str(_write_clip(tmp_path))]) == 0
    captured = capsys.readouterr()
    assert "Metadata" in captured.err
    assert captured.out == ""


def test_main_reports_errors(tmp_path, capsys):
    missing = tmp_path / "missing.jpg"
    assert main([str(missing)]) == 0
    assert "missing.jpg" in capsys.readouterr().out


def test_main_unsupported_format(tmp_path, capsys):
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello")
    main([str(path)])
    assert "can't read metadata for this format '.txt'" in capsys.readouterr().out