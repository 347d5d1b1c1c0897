# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Source span representation as carried by rustc JSON diagnostics.

Line and column numbers are 1-based in the wire format. The engine treats them
as opaque values: they are used for grouping and reproduced unchanged in the
report, never recomputed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class SpanLine:
	"""One line of source text covered by a span, with the highlighted columns."""

	text: str
	highlight_start: int = 1
	highlight_end: int = 1

	@classmethod
	def from_json(cls, obj: Mapping[str, Any]) -> "SpanLine":
		return cls(
			text=str(obj.get("text", "")),
			highlight_start=int(obj.get("highlight_start", 1)),
			highlight_end=int(obj.get("highlight_end", 1)),
		)


@dataclass(frozen=True)
class DiagnosticSpan:
	"""Represents a source span (file plus byte/line/column range) of a diagnostic."""

	file_name: str
	byte_start: int = 0
	byte_end: int = 0
	line_start: int = 0
	line_end: int = 0
	column_start: int = 0
	column_end: int = 0
	is_primary: bool = False
	label: Optional[str] = None
	text: Tuple[SpanLine, ...] = ()

	@classmethod
	def from_json(cls, obj: Mapping[str, Any]) -> "DiagnosticSpan":
		"""
		Build a span from the rustc JSON object.

		`file_name` and the line/column fields are required; a missing or
		non-integer field raises KeyError/ValueError/TypeError so the ingestor
		can count the whole line as unparsed.
		"""
		label = obj.get("label")
		return cls(
			file_name=str(obj["file_name"]),
			byte_start=int(obj.get("byte_start", 0)),
			byte_end=int(obj.get("byte_end", 0)),
			line_start=int(obj["line_start"]),
			line_end=int(obj["line_end"]),
			column_start=int(obj["column_start"]),
			column_end=int(obj["column_end"]),
			is_primary=bool(obj.get("is_primary", False)),
			label=str(label) if label is not None else None,
			text=tuple(SpanLine.from_json(t) for t in obj.get("text") or []),
		)

	def location(self) -> str:
		return f"{self.file_name}:{self.line_start}:{self.column_start}"

	def sort_key(self) -> Tuple[str, int, int]:
		return (self.file_name, self.line_start, self.column_start)


__all__ = ["SpanLine", "DiagnosticSpan"]
