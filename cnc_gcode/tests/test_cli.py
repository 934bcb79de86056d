"""Tests for the ``cnc-gcode`` command-line entry point."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from cnc_gcode.scripts.generate import build_parser, main
from cnc_gcode.utils import logging_config

POCKET_JOB = Path(__file__).resolve().parents[1] / "jobs" / "pocket.yaml"


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    root = logging.getLogger()
    for handler in logging_config._installed:
        root.removeHandler(handler)
        handler.close()
    logging_config._installed.clear()
    logging_config.pop_context()


def _write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


class TestGenerateCommand:
    def test_stdout_listing(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--job", str(POCKET_JOB)]) == 0
        out = capsys.readouterr().out
        lines = out.rstrip("\n").split("\n")
        assert lines[0] == "%" and lines[1] == "O123" and lines[-1] == "%"
        assert "N008 G01 X0 Y655 F500" in lines

    def test_output_file(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "pocket.nc"
        assert main(["-j", str(POCKET_JOB), "-o", str(target)]) == 0
        text = target.read_text()
        assert text.startswith("%\nO123\n")
        assert text.endswith("%\n")
        assert not (tmp_path / "out" / "pocket.nc.tmp").exists()

    def test_config_used_without_program_section(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(tmp_path / "job.yaml", "directives:\n  - op: start_spindle\n")
        cfg = _write(
            tmp_path / "program.yaml",
            "program:\n  name: cfg\n  unit: mm\n  line_numbering: false\n",
        )
        assert main(["-j", str(job), "-c", str(cfg)]) == 0
        lines = capsys.readouterr().out.split("\n")
        assert lines[:3] == ["%", "OCFG", "G21"]
        assert "M03" in lines

    def test_seeded_name_reproducible(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(tmp_path / "job.yaml", "program:\n  unit: mm\n")
        main(["-j", str(job), "--seed", "5"])
        first = capsys.readouterr().out
        main(["-j", str(job), "--seed", "5"])
        assert capsys.readouterr().out == first

    def test_strict_rejects_unknown_unit(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(tmp_path / "job.yaml", "program:\n  unit: furlong\n")
        assert main(["-j", str(job), "--strict"]) == 1
        assert "Unknown unit" in capsys.readouterr().err

    def test_permissive_accepts_unknown_unit(self, tmp_path: Path) -> None:
        job = _write(tmp_path / "job.yaml", "program:\n  unit: furlong\n")
        assert main(["-j", str(job), "-o", str(tmp_path / "o.nc")]) == 0

    def test_missing_job(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["-j", str(tmp_path / "nope.yaml")]) == 1
        assert "Job file not found" in capsys.readouterr().err

    def test_directive_after_terminate(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(
            tmp_path / "job.yaml",
            "directives:\n  - op: terminate\n  - op: stop_coolant\n",
        )
        assert main(["-j", str(job)]) == 1
        assert "directives require an open program" in capsys.readouterr().err

    def test_job_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_strict_rejects_unknown_positioning(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(tmp_path / "job.yaml", "program:\n  positioning: sideways\n")
        assert main(["-j", str(job), "--strict"]) == 1
        err = capsys.readouterr().err
        assert "positioning must be" in err
        assert "falling back" not in err

    def test_config_ignored_when_job_has_program(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        job = _write(tmp_path / "job.yaml", "program:\n  name: own\n")
        assert main(["-j", str(job), "-c", str(tmp_path / "missing.yaml")]) == 0
        assert capsys.readouterr().out.split("\n")[1] == "OOWN"

    def test_missing_config_without_program(self, tmp_path: Path) -> None:
        job = _write(tmp_path / "job.yaml", "directives: []\n")
        assert main(["-j", str(job), "-c", str(tmp_path / "missing.yaml")]) == 1


class TestLogOptions:
    def test_json_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "gen.log"
        rc = main([
            "-j", str(POCKET_JOB), "-o", str(tmp_path / "pocket.nc"),
            "--log-level", "INFO", "--log-file", str(log_file), "--log-json",
        ])
        assert rc == 0
        for handler in logging_config._installed:
            handler.flush()
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        wrote = [r for r in records if r["msg"].startswith("Wrote 19 lines")]
        assert wrote and wrote[0]["job"] == "pocket.yaml"
        assert wrote[0]["program"] == "O123"

    def test_human_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "gen.log"
        job = _write(tmp_path / "job.yaml", "program:\n  unit: furlong\n")
        assert main(["-j", str(job), "--strict", "--log-file", str(log_file)]) == 1
        for handler in logging_config._installed:
            handler.flush()
        assert "| ERROR    | job=job.yaml | Unknown unit" in log_file.read_text()
