"""Tests for the Job IR generator and job file schema.

Validates operation dispatch, early termination, unsupported operations,
and job.v1 loading/validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from cnc_gcode.configs.loader import ConfigError, ProgramConfig
from cnc_gcode.configs.schema import DirectiveV1, JobV1, load_job
from cnc_gcode.gcode.generator import GCodeGenerator
from cnc_gcode.gcode.naming import sequential_names
from cnc_gcode.gcode.program import ProgramStateError
from cnc_gcode.job_ir.operations import (
    DropMill,
    LinearMove,
    Operation,
    RaiseMill,
    RapidMove,
    RawLine,
    SetPositioning,
    StartCoolant,
    StartSpindle,
    StopCoolant,
    StopSpindle,
    Terminate,
    polyline,
)

POCKET_JOB = Path(__file__).resolve().parents[1] / "jobs" / "pocket.yaml"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> ProgramConfig:
    return ProgramConfig(name="42", unit="mm", feedrate=100, clearance=5, start=(0, 0))


@pytest.fixture()
def gen(config: ProgramConfig) -> GCodeGenerator:
    return GCodeGenerator(config)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_every_operation_emitted(self, gen: GCodeGenerator) -> None:
        ops: list[Operation] = [
            SetPositioning(positioning="relative"),
            StartSpindle(clockwise=False),
            StartCoolant(flood=True),
            DropMill(depth=-1),
            LinearMove(position=(10, 0), feedrate=20),
            RapidMove(position={"y": 3}),
            RawLine(text="G04 P250"),
            RaiseMill(depth=2),
            StopCoolant(),
            StopSpindle(),
        ]
        lines = gen.generate(ops).split("\n")
        assert lines[6:16] == [
            "N005 G91",
            "N006 M04",
            "N007 M08",
            "N008 G00 Z-1 F100",
            "N009 G01 X10 Y0 F20",
            "N010 G00 Y3 F100",
            "N011 G04 P250",
            "N012 G00 Z2 F100",
            "N013 M09",
            "N014 M05",
        ]
        assert lines[-2:] == ["N018 M30", "%"]

    def test_polyline_helper(self, gen: GCodeGenerator) -> None:
        gcode = gen.generate(polyline([(1, 1), (2, 2)]))
        assert "N005 G01 X1 Y1 F100" in gcode
        assert "N006 G01 X2 Y2 F100" in gcode

    def test_forced_terminate(self, gen: GCodeGenerator) -> None:
        lines = gen.generate([StartSpindle(), Terminate(force=True)]).split("\n")
        assert lines[-3:] == ["N005 M03", "N006 M00", "%"]

    def test_operation_after_terminate(self, gen: GCodeGenerator) -> None:
        with pytest.raises(ProgramStateError):
            gen.generate([Terminate(), StartSpindle()])

    def test_fresh_program_per_call(self, gen: GCodeGenerator) -> None:
        assert gen.generate([StartSpindle()]) == gen.generate([StartSpindle()])

    def test_build_leaves_program_open(self, gen: GCodeGenerator) -> None:
        program = gen.build([StartSpindle()])
        assert program.is_running

    def test_unsupported_operation_skipped(
        self, gen: GCodeGenerator, caplog: pytest.LogCaptureFixture,
    ) -> None:
        @dataclass(frozen=True)
        class Engrave(Operation):
            text: str = "hi"

        with caplog.at_level("WARNING"):
            gcode = gen.generate([Engrave()])
        assert "Unsupported operation: Engrave" in caplog.text
        assert "hi" not in gcode

    def test_name_factory_per_program(self) -> None:
        gen = GCodeGenerator(ProgramConfig(), name_factory=sequential_names(7))
        first = gen.generate([]).split("\n")[1]
        second = gen.generate([]).split("\n")[1]
        assert (first, second) == ("O007", "O008")

    def test_default_config(self) -> None:
        assert GCodeGenerator().config == ProgramConfig()


# ---------------------------------------------------------------------------
# Job schema
# ---------------------------------------------------------------------------


class TestDirectiveSchema:
    def test_move_requires_position(self) -> None:
        with pytest.raises(ValueError, match="requires 'position'"):
            DirectiveV1(op="feed_linear")

    def test_unknown_op(self) -> None:
        with pytest.raises(ValueError):
            DirectiveV1(op="plasma_cut")

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValueError):
            DirectiveV1(op="stop_spindle", speed=3)

    def test_bad_position_key(self) -> None:
        with pytest.raises(ValueError, match="position keys"):
            DirectiveV1(op="feed_rapid", position={"w": 1})

    def test_raw_requires_text(self) -> None:
        with pytest.raises(ValueError, match="requires 'text'"):
            DirectiveV1(op="raw")

    def test_drop_mill_default_depth(self) -> None:
        assert DirectiveV1(op="drop_mill").to_operation() == DropMill(depth=0)

    def test_position_with_gaps(self) -> None:
        op = DirectiveV1(op="feed_linear", position=[None, 4]).to_operation()
        assert op == LinearMove(position=(None, 4.0))

    def test_set_positioning_invalid_token(self) -> None:
        job = JobV1(directives=[{"op": "set_positioning", "positioning": "sideways"}])
        with pytest.raises(ConfigError, match="Invalid directive"):
            job.to_operations()


class TestJobSchema:
    def test_wrong_schema_version(self) -> None:
        with pytest.raises(ValueError, match="job.v1"):
            JobV1(schema="job.v0")

    def test_program_fallback(self) -> None:
        fallback = ProgramConfig(unit="mm")
        assert JobV1().to_program_config(fallback) is fallback
        assert JobV1().to_program_config() == ProgramConfig()

    def test_overrides_merged_before_normalizing(self) -> None:
        job = JobV1(program={"positioning": "sideways"})
        with pytest.raises(ConfigError, match="positioning must be"):
            job.to_program_config(strict=True)

    def test_overrides_applied_to_fallback(self) -> None:
        config = JobV1().to_program_config(ProgramConfig(unit="mm"), strict=True)
        assert config.strict and config.unit == "mm"

    def test_load_packaged_job(self) -> None:
        job = load_job(POCKET_JOB)
        config = job.to_program_config()
        assert config.name == "123"
        gcode = GCodeGenerator(config).generate(job.to_operations())
        assert "N010 G01 X128 Y327.5 F500" in gcode
        assert gcode.endswith("N016 M30\n%")

    def test_load_invalid_job(self, tmp_path: Path) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("directives:\n  - op: feed_linear\n")
        with pytest.raises(ConfigError, match="Job validation failed"):
            load_job(path)

    def test_load_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "job.yaml"
        path.write_text("- op: stop_spindle\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_job(path)

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_job(tmp_path / "missing.yaml")
