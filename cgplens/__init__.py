# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
cgplens: root-cause reconstruction for rustc/cargo JSON diagnostics.

Pipeline placement:
  ingest (JSON line -> DiagnosticRecord) -> extract (phrase templates -> triples)
  -> graph (obligation graph, root causes) -> cascade (dedup) -> translate (CGP
  names) -> render (report text)

The outbound entry point is `cgplens.session.reconstruct`; `Engine` wraps the
same pipeline in the per-batch state machine used by streaming callers.
"""

from cgplens.core.config import EngineConfig
from cgplens.render import RenderedReport, ReportBlock, BlockKind
from cgplens.session import BatchSession, Engine, EngineState, reconstruct

__all__ = [
	"EngineConfig",
	"RenderedReport",
	"ReportBlock",
	"BlockKind",
	"BatchSession",
	"Engine",
	"EngineState",
	"reconstruct",
]
