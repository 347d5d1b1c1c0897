# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Batch sessions and the engine state machine.

All per-batch state (records, extractions, the graph builder, the unparsed
counter) lives on a BatchSession value, never in module globals, so several
logical sessions can run side by side without interfering.

Engine states:

  AWAITING_BATCH -> INGESTING -> ANALYZING -> RENDERED -> AWAITING_BATCH

`abort_batch()` is the only other way out of INGESTING: it returns what was
ingested, verbatim, and goes straight back to AWAITING_BATCH.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum, auto
from typing import Iterable, List, Optional, Union

from cgplens.cascade import deduplicate
from cgplens.core.config import EngineConfig
from cgplens.core.diagnostics import DiagnosticRecord
from cgplens.core.errors import EngineStateError, ReconstructionError
from cgplens.extract import Extraction, extract
from cgplens.graph import GraphBuilder, ObligationGraph, analyze
from cgplens.ingest import IngestEvent, IngestKind, parse_line
from cgplens.render import PassthroughEntry, RenderedReport, render_fallback, render_report

logger = logging.getLogger(__name__)


class EngineState(Enum):
	AWAITING_BATCH = auto()
	INGESTING = auto()
	ANALYZING = auto()
	RENDERED = auto()


class BatchSession:
	"""Everything one compilation batch accumulates before analysis."""

	def __init__(self, config: Optional[EngineConfig] = None) -> None:
		self.config = config or EngineConfig()
		self.unparsed_lines = 0
		# Arrival order: an Extraction per record, raw text per unparsed line.
		self._entries: List[Union[Extraction, str]] = []
		self._builder = GraphBuilder()
		self._next_seq = 0
		self._lines = 0
		self._finished = False

	@property
	def extractions(self) -> List[Extraction]:
		return [e for e in self._entries if isinstance(e, Extraction)]

	@property
	def records(self) -> List[DiagnosticRecord]:
		return [e.record for e in self.extractions]

	def _check_open(self) -> None:
		if self._finished:
			raise EngineStateError("batch session already finished")

	def feed_line(self, line: str) -> IngestEvent:
		"""Ingest one line of the check stream. Malformed lines are counted, never raised."""
		self._check_open()
		self._lines += 1
		event = parse_line(line, seq=self._lines)
		if event.kind is IngestKind.DIAGNOSTIC and event.record is not None:
			self.add_record(event.record)
		elif event.kind is IngestKind.UNPARSED:
			self.unparsed_lines += 1
			self._entries.append(event.raw)
		return event

	def add_record(self, record: DiagnosticRecord) -> Extraction:
		self._check_open()
		record = replace(record, seq=self._next_seq)
		self._next_seq += 1
		extraction = extract(record, self.config)
		self._entries.append(extraction)
		self._builder.add(extraction)
		return extraction

	def _all_entries(self) -> List[PassthroughEntry]:
		return [e.record if isinstance(e, Extraction) else e for e in self._entries]

	def _passthrough(self) -> List[PassthroughEntry]:
		return [
			e.record if isinstance(e, Extraction) else e
			for e in self._entries
			if not (isinstance(e, Extraction) and e.recognized)
		]

	def verbatim(self) -> RenderedReport:
		"""What was ingested so far, untouched (used when a batch is abandoned)."""
		return render_fallback(self._all_entries(), notice=False, unparsed_lines=self.unparsed_lines)

	def _reconstruct(self) -> RenderedReport:
		recognized = [e for e in self.extractions if e.recognized]
		if not recognized:
			return render_report(
				self._passthrough(),
				[],
				ObligationGraph(),
				config=self.config,
				unparsed_lines=self.unparsed_lines,
			)
		graph = self._builder.build()
		analysis = analyze(graph, recognized)
		return render_report(
			self._passthrough(),
			deduplicate(analysis),
			graph,
			config=self.config,
			unparsed_lines=self.unparsed_lines,
		)

	def finish(self) -> RenderedReport:
		"""
		Analyze and render the batch.

		An internal invariant violation is the one fatal class: the whole batch
		is then shown verbatim behind a notice instead of a partial report.
		"""
		self._check_open()
		self._finished = True
		try:
			return self._reconstruct()
		except ReconstructionError as err:
			logger.warning("reconstruction failed, showing original diagnostics: %s", err.format_human())
			return render_fallback(self._all_entries(), unparsed_lines=self.unparsed_lines)


class Engine:
	"""Per-batch state machine over BatchSession for streaming callers."""

	def __init__(self, config: Optional[EngineConfig] = None) -> None:
		self.config = config or EngineConfig()
		self._state = EngineState.AWAITING_BATCH
		self._session: Optional[BatchSession] = None

	@property
	def state(self) -> EngineState:
		return self._state

	@property
	def session(self) -> Optional[BatchSession]:
		return self._session

	def begin_batch(self) -> BatchSession:
		if self._state in (EngineState.INGESTING, EngineState.ANALYZING):
			raise EngineStateError(f"cannot begin a batch while {self._state.name}")
		self._state = EngineState.AWAITING_BATCH
		self._session = BatchSession(self.config)
		self._state = EngineState.INGESTING
		return self._session

	def _open(self) -> BatchSession:
		if self._state is not EngineState.INGESTING or self._session is None:
			return self.begin_batch()
		return self._session

	def feed(self, line: str) -> IngestEvent:
		"""Ingest one line, beginning a batch first when none is open."""
		return self._open().feed_line(line)

	def add_record(self, record: DiagnosticRecord) -> Extraction:
		return self._open().add_record(record)

	def finish_batch(self) -> RenderedReport:
		if self._state is not EngineState.INGESTING or self._session is None:
			raise EngineStateError(f"cannot finish a batch while {self._state.name}")
		self._state = EngineState.ANALYZING
		session, self._session = self._session, None
		try:
			report = session.finish()
		except BaseException:
			self._state = EngineState.AWAITING_BATCH
			raise
		self._state = EngineState.RENDERED
		return report

	def abort_batch(self) -> RenderedReport:
		if self._state is not EngineState.INGESTING or self._session is None:
			raise EngineStateError(f"cannot abort a batch while {self._state.name}")
		session, self._session = self._session, None
		self._state = EngineState.AWAITING_BATCH
		return session.verbatim()


def reconstruct(records: Iterable[DiagnosticRecord], config: Optional[EngineConfig] = None) -> RenderedReport:
	"""Render one batch of diagnostics: the engine's pure outbound entry point."""
	session = BatchSession(config)
	for record in records:
		session.add_record(record)
	return session.finish()


__all__ = ["EngineState", "BatchSession", "Engine", "reconstruct"]
