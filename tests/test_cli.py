from __future__ import annotations

import contextlib
from pathlib import Path

import pytest

from conftest import write_placeholder
from lazywebp import cli


def test_help(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    assert "lazywebp" in out
    assert "--quality" in out


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])

    assert excinfo.value.code == 0
    assert capsys.readouterr().out.strip() == cli.get_version()


def test_no_inputs(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == cli.EXIT_FAILURE
    assert "no input" in capsys.readouterr().err


def test_unknown_option() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--badopt"])

    assert excinfo.value.code != 0


def test_converts_single_file(tmp_path: Path, make_image, capsys: pytest.CaptureFixture[str]) -> None:
    source = make_image(tmp_path / "cli-test.png")

    assert cli.main([str(source), "--quiet"]) == cli.EXIT_OK

    out = capsys.readouterr().out
    assert "Processed:   1" in out
    assert (tmp_path / "cli-test.webp").stat().st_size > 0


def test_converts_directory_with_options(tmp_path: Path, make_image, capsys: pytest.CaptureFixture[str]) -> None:
    make_image(tmp_path / "in" / "a.png")
    make_image(tmp_path / "in" / "sub" / "b.png")
    out_dir = tmp_path / "out"

    code = cli.main(["-r", "-q", "75", "-j", "2", "-o", str(out_dir), str(tmp_path / "in"), "--quiet"])

    assert code == cli.EXIT_OK
    assert (out_dir / "sub" / "b.webp").exists()
    assert "Total files: 2" in capsys.readouterr().out


def test_failed_file_sets_exit_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    write_placeholder(tmp_path / "corrupt.png")

    assert cli.main([str(tmp_path), "--quiet"]) == cli.EXIT_FAILURE

    out = capsys.readouterr().out
    assert "Failed conversions:" in out
    assert "corrupt.png" in out


def test_missing_input_is_reported(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([str(tmp_path / "missing"), "--quiet"]) == cli.EXIT_FAILURE
    assert "Error:" in capsys.readouterr().err


def test_log_file_receives_records(tmp_path: Path, make_image) -> None:
    source = make_image(tmp_path / "logged.png")
    log_file = tmp_path / "run.log"

    assert cli.main([str(source), "--verbose", "--log-file", str(log_file)]) == cli.EXIT_OK

    assert "Run finished" in log_file.read_text(encoding="utf-8")


def test_logging_is_redirected_around_progress_bar(tmp_path: Path, make_image, monkeypatch: pytest.MonkeyPatch) -> None:
    source = make_image(tmp_path / "bar.png")
    entered: list[str] = []

    @contextlib.contextmanager
    def recording_redirect():
        entered.append("enter")
        yield
        entered.append("exit")

    monkeypatch.setattr(cli, "logging_redirect_tqdm", recording_redirect)

    assert cli.main([str(source)]) == cli.EXIT_OK
    assert entered == ["enter", "exit"]
