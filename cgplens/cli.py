# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, TextIO

from cgplens.core.config import EngineConfig
from cgplens.ingest import IngestKind
from cgplens.render import RenderedReport
from cgplens.session import Engine, EngineState


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(
		prog="cgplens",
		description="Replay a captured cargo/rustc JSON diagnostic stream and print root-cause reports",
	)
	p.add_argument(
		"input",
		nargs="?",
		type=Path,
		default=None,
		help="Line-delimited JSON captured from `cargo check --message-format=json` (default: stdin)",
	)
	p.add_argument("--cgp-only", action="store_true", help="Only reconstruct diagnostics that mention CGP constructs")
	p.add_argument("--full-paths", action="store_true", help="Keep module paths in displayed type names")
	p.add_argument("--no-snippets", action="store_true", help="Omit source excerpts under call sites")
	p.add_argument("--json", action="store_true", help="Emit machine-readable JSON report blocks")
	p.add_argument("-v", "--verbose", action="store_true", help="Log engine decisions to stderr")
	return p


def replay(lines: Iterable[str], config: EngineConfig) -> List[RenderedReport]:
	"""Run a captured stream through the engine; every `build-finished` closes a batch."""
	engine = Engine(config)
	reports: List[RenderedReport] = []
	for line in lines:
		event = engine.feed(line)
		if event.kind is IngestKind.BUILD_FINISHED:
			reports.append(engine.finish_batch())
	if engine.state is EngineState.INGESTING:
		reports.append(engine.finish_batch())
	return reports


def _emit(reports: List[RenderedReport], *, as_json: bool, stream: TextIO) -> None:
	if as_json:
		print(json.dumps([r.to_dict() for r in reports], indent=2, sort_keys=True), file=stream)
		return
	for report in reports:
		stream.write(report.text)


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)
	logging.basicConfig(
		level=logging.DEBUG if args.verbose else logging.WARNING,
		format="%(levelname)s %(name)s: %(message)s",
		stream=sys.stderr,
	)
	config = EngineConfig(
		cgp_only=bool(args.cgp_only),
		short_paths=not args.full_paths,
		show_snippets=not args.no_snippets,
	)

	if args.input is None:
		reports = replay(sys.stdin, config)
	else:
		try:
			with args.input.open("r", encoding="utf-8", errors="replace") as fh:
				reports = replay(fh, config)
		except OSError as err:
			print(f"cgplens: cannot read {args.input}: {err.strerror or err}", file=sys.stderr)
			return 2
	_emit(reports, as_json=bool(args.json), stream=sys.stdout)
	return 0


__all__ = ["main", "replay"]
