# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path

import pytest

from cgplens.cli import main, replay
from cgplens.core.config import EngineConfig
from cgplens.test_helpers import FIXTURES_DIR, cargo_line, field_chain, load_fixture


def _expected(name: str) -> str:
	return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.mark.parametrize("name", ["base_area", "scaled_area"])
def test_golden_reports(name: str) -> None:
	reports = replay(load_fixture(f"{name}.jsonl"), EngineConfig())
	assert len(reports) == 1
	assert reports[0].text == _expected(f"{name}.expected")


def test_plain_stream_is_reproduced_byte_for_byte() -> None:
	lines = load_fixture("plain_mismatch.jsonl")
	rendered = [
		json.loads(line)["message"]["rendered"]
		for line in lines
		if json.loads(line).get("reason") == "compiler-message"
	]
	(report,) = replay(lines, EngineConfig())
	assert report.text == "".join(rendered)
	assert report.root_blocks() == []


def test_each_build_finished_closes_a_batch() -> None:
	lines = load_fixture("base_area.jsonl") + load_fixture("plain_mismatch.jsonl")
	reports = replay(lines, EngineConfig())
	assert [len(r.root_blocks()) for r in reports] == [1, 0]


def test_unterminated_stream_is_still_reported() -> None:
	reports = replay([cargo_line(field_chain("Rectangle", "height"))], EngineConfig())
	assert len(reports) == 1
	assert len(reports[0].root_blocks()) == 1


def test_main_prints_report(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = tmp_path / "check.jsonl"
	path.write_text((FIXTURES_DIR / "base_area.jsonl").read_text(encoding="utf-8"), encoding="utf-8")
	assert main([str(path)]) == 0
	out = capsys.readouterr().out
	assert out == _expected("base_area.expected")


def test_main_json_output(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = tmp_path / "check.jsonl"
	lines = load_fixture("scaled_area.jsonl") + load_fixture("plain_mismatch.jsonl")
	path.write_text("\n".join(lines) + "\n", encoding="utf-8")
	assert main(["--json", "--no-snippets", str(path)]) == 0
	data = json.loads(capsys.readouterr().out)
	assert len(data) == 2
	roots = [b for b in data[0]["blocks"] if b["kind"] == "root-cause"]
	assert len(roots) == 1
	assert roots[0]["folded_count"] == 1
	assert roots[0]["sites"] == ["src/scaled_area.rs:58:9"]
	assert "   |" not in roots[0]["text"]
	assert all(b["kind"] == "verbatim" for b in data[1]["blocks"])


def test_full_paths_flag_keeps_module_paths(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = tmp_path / "check.jsonl"
	path.write_text(cargo_line(field_chain("shapes::Rectangle", "height")) + "\n", encoding="utf-8")
	assert main(["--full-paths", str(path)]) == 0
	assert "missing field `height` in context `shapes::Rectangle`" in capsys.readouterr().out
	assert main([str(path)]) == 0
	assert "missing field `height` in context `Rectangle`" in capsys.readouterr().out


def test_missing_input_file_exits_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main([str(tmp_path / "absent.jsonl")]) == 2
	assert "cannot read" in capsys.readouterr().err
