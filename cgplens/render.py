# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Report renderer.

Block order within one report:
  1. passthrough blocks (unrecognized diagnostics verbatim, unparsed lines),
     in arrival order;
  2. one block per root cause, user-requested roots first, then by earliest
     call site, then by root key;
  3. build summaries ("aborting due to N previous errors", `failure-note`
     records), in arrival order. With no root blocks they stay where they
     arrived.

A passthrough block's text is exactly the toolchain's `rendered` field, so a
batch with nothing recognized reproduces the input byte for byte.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from cgplens.cascade import Cascade
from cgplens.core.config import EngineConfig
from cgplens.core.diagnostics import DiagnosticRecord, Level
from cgplens.core.span import DiagnosticSpan
from cgplens.graph.obligations import ObligationGraph, ObligationKey
from cgplens.translate import describe, field_help, root_statement, translate_type

# A record to show verbatim, or the raw text of a line that did not parse.
PassthroughEntry = Union[DiagnosticRecord, str]

FALLBACK_NOTICE = "note: reconstruction failed, showing original diagnostics\n"


class BlockKind(Enum):
	ROOT_CAUSE = "root-cause"
	VERBATIM = "verbatim"
	UNPARSED = "unparsed"
	NOTICE = "notice"


@dataclass(frozen=True)
class ReportBlock:
	kind: BlockKind
	text: str
	root_key: Optional[ObligationKey] = None
	trace: Tuple[str, ...] = ()
	folded_count: int = 0
	sites: Tuple[str, ...] = ()

	def to_dict(self) -> Dict[str, Any]:
		return {
			"kind": self.kind.value,
			"text": self.text,
			"root": str(self.root_key) if self.root_key is not None else None,
			"trace": list(self.trace),
			"folded_count": self.folded_count,
			"sites": list(self.sites),
		}


@dataclass(frozen=True)
class RenderedReport:
	blocks: Tuple[ReportBlock, ...] = ()
	unparsed_lines: int = 0
	fell_back: bool = False

	@property
	def text(self) -> str:
		return "".join(block.text for block in self.blocks)

	def root_blocks(self) -> List[ReportBlock]:
		return [b for b in self.blocks if b.kind is BlockKind.ROOT_CAUSE]

	def verbatim_blocks(self) -> List[ReportBlock]:
		return [b for b in self.blocks if b.kind is BlockKind.VERBATIM]

	def to_dict(self) -> Dict[str, Any]:
		return {
			"blocks": [b.to_dict() for b in self.blocks],
			"unparsed_lines": self.unparsed_lines,
			"fell_back": self.fell_back,
		}


def passthrough_block(entry: PassthroughEntry) -> ReportBlock:
	if isinstance(entry, DiagnosticRecord):
		return ReportBlock(kind=BlockKind.VERBATIM, text=entry.verbatim())
	text = entry if entry.endswith("\n") else entry + "\n"
	return ReportBlock(kind=BlockKind.UNPARSED, text=text)


def snippet_lines(span: DiagnosticSpan) -> List[str]:
	"""rustc-style source excerpt: gutter, source line, caret marker."""
	last = span.line_start + max(len(span.text) - 1, 0)
	width = len(str(last))
	pad = " " * width
	out = [f"{pad} |"]
	for offset, line in enumerate(span.text):
		out.append(f"{span.line_start + offset:>{width}} | {line.text}".rstrip())
		start = max(line.highlight_start, 1)
		end = max(line.highlight_end, start + 1)
		marker = " " * (start - 1) + "^" * (end - start)
		if offset == 0 and span.label:
			marker += " " + span.label
		out.append(f"{pad} | {marker}")
	return out


def _block_code(cascade: Cascade) -> str:
	codes = sorted({r.code for r in cascade.records() if r.code})
	return f"error[{codes[0]}]" if codes else "error"


def render_root(cascade: Cascade, graph: ObligationGraph, config: EngineConfig) -> ReportBlock:
	root = cascade.root
	short = config.short_paths
	anchor = graph.nodes[root.anchor]
	lines = [f"{_block_code(cascade)}: {root_statement(anchor, short_paths=short)}"]
	for site in cascade.sites:
		loc = f"  --> {site.location()}"
		if site.folded:
			loc += f" ({len(site.records)} diagnostics at this site)"
		lines.append(loc)
		if config.show_snippets and site.span is not None and site.span.text:
			lines.extend(snippet_lines(site.span))

	trace = tuple(describe(graph.nodes[i], short_paths=short) for i in root.trace)
	if len(trace) > 1:
		lines.append("   = trace: " + " -> ".join(trace))
	labels: List[str] = []
	for i in root.trace:
		for label in graph.nodes[i].bound_labels:
			if label not in labels:
				labels.append(label)
	for label in labels:
		lines.append(f"   = note: required by a bound in `{translate_type(label, short_paths=short)}`")
	if root.cyclic:
		lines.append(
			f"   = note: cyclic trait bound detected among {len(root.members)} obligations; "
			f"{describe(anchor, short_paths=short)} is shown as a best-effort anchor"
		)
	for line in field_help(anchor, root.has_other_field_impls, short_paths=short):
		lines.append("   = " + line)
	if cascade.folded_count:
		lines.append(f"   (+{cascade.folded_count} related failures suppressed)")
	return ReportBlock(
		kind=BlockKind.ROOT_CAUSE,
		text="\n".join(lines) + "\n\n",
		root_key=root.key,
		trace=trace,
		folded_count=cascade.folded_count,
		sites=tuple(site.location() for site in cascade.sites),
	)


def _root_order(cascade: Cascade) -> Tuple[bool, Tuple[str, int, int], ObligationKey]:
	first = cascade.sites[0].sort_key() if cascade.sites else ("", 0, 0)
	return (not cascade.root.from_user_request, first, cascade.key)


def is_build_summary(entry: PassthroughEntry) -> bool:
	"""rustc's closing lines: the error count and the `--explain` pointer."""
	if not isinstance(entry, DiagnosticRecord):
		return False
	if entry.level is Level.FAILURE_NOTE:
		return True
	return entry.level is Level.ERROR and not entry.spans and entry.message.startswith("aborting due to")


def render_report(
	passthrough: Sequence[PassthroughEntry],
	cascades: Sequence[Cascade],
	graph: ObligationGraph,
	*,
	config: Optional[EngineConfig] = None,
	unparsed_lines: int = 0,
) -> RenderedReport:
	config = config or EngineConfig()
	if not cascades:
		blocks = [passthrough_block(entry) for entry in passthrough]
		return RenderedReport(blocks=tuple(blocks), unparsed_lines=unparsed_lines)
	blocks = [passthrough_block(entry) for entry in passthrough if not is_build_summary(entry)]
	blocks.extend(render_root(c, graph, config) for c in sorted(cascades, key=_root_order))
	blocks.extend(passthrough_block(entry) for entry in passthrough if is_build_summary(entry))
	return RenderedReport(blocks=tuple(blocks), unparsed_lines=unparsed_lines)


def render_fallback(entries: Sequence[PassthroughEntry], *, notice: bool = True, unparsed_lines: int = 0) -> RenderedReport:
	"""Every entry verbatim, in arrival order; the notice marks a failed reconstruction."""
	blocks: List[ReportBlock] = []
	if notice:
		blocks.append(ReportBlock(kind=BlockKind.NOTICE, text=FALLBACK_NOTICE))
	blocks.extend(passthrough_block(entry) for entry in entries)
	return RenderedReport(blocks=tuple(blocks), unparsed_lines=unparsed_lines, fell_back=notice)


__all__ = [
	"PassthroughEntry",
	"FALLBACK_NOTICE",
	"BlockKind",
	"ReportBlock",
	"RenderedReport",
	"passthrough_block",
	"is_build_summary",
	"snippet_lines",
	"render_root",
	"render_report",
	"render_fallback",
]
