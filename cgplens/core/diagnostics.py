# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Typed view of one rustc JSON diagnostic.

A DiagnosticRecord is immutable once parsed and owned by the batch that
produced it. Children (notes/helps) are records of the same shape, which is
where rustc puts the free-text obligation chain ("required for `A` to
implement `B`") the extractor works from.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Tuple

from .span import DiagnosticSpan


class Level(Enum):
	ERROR = "error"
	WARNING = "warning"
	NOTE = "note"
	HELP = "help"
	FAILURE_NOTE = "failure-note"
	ICE = "error: internal compiler error"

	@classmethod
	def from_wire(cls, value: str) -> "Level":
		if value == "ice":
			return cls.ICE
		return cls(value)


@dataclass(frozen=True)
class DiagnosticRecord:
	"""Represents one compiler diagnostic (error/warning/note/help) and its children."""

	level: Level
	message: str
	code: Optional[str] = None
	spans: Tuple[DiagnosticSpan, ...] = ()
	children: Tuple["DiagnosticRecord", ...] = ()
	# The toolchain's own rendering; this is what passthrough emits verbatim.
	rendered: Optional[str] = None
	# Arrival index within the batch (0 for children).
	seq: int = 0
	package_id: Optional[str] = None

	@classmethod
	def from_json(
		cls,
		obj: Mapping[str, Any],
		*,
		seq: int = 0,
		package_id: Optional[str] = None,
	) -> "DiagnosticRecord":
		"""
		Build a record from a rustc diagnostic object (recursively for children).

		Raises KeyError/ValueError/TypeError on shape errors; the ingestor turns
		those into a soft "unparsed line".
		"""
		message = obj["message"]
		if not isinstance(message, str):
			raise TypeError("diagnostic message must be a string")
		code_obj = obj.get("code")
		code = None
		if isinstance(code_obj, Mapping) and code_obj.get("code"):
			code = str(code_obj["code"])
		rendered = obj.get("rendered")
		return cls(
			level=Level.from_wire(str(obj["level"])),
			message=message,
			code=code,
			spans=tuple(DiagnosticSpan.from_json(s) for s in obj.get("spans") or []),
			children=tuple(cls.from_json(c) for c in obj.get("children") or []),
			rendered=rendered if isinstance(rendered, str) else None,
			seq=seq,
			package_id=package_id,
		)

	@property
	def is_error(self) -> bool:
		return self.level in (Level.ERROR, Level.ICE)

	def primary_span(self) -> Optional[DiagnosticSpan]:
		for span in self.spans:
			if span.is_primary:
				return span
		return None

	def iter_messages(self) -> Iterator[str]:
		"""Yield the record's own message followed by every child message (depth-first)."""
		yield self.message
		for child in self.children:
			yield from child.iter_messages()

	def sort_key(self) -> Tuple[str, int, int, str, str]:
		"""Order-independent key: primary location first, then message and code."""
		span = self.primary_span()
		if span is None:
			return ("", 0, 0, self.message, self.code or "")
		return (span.file_name, span.line_start, span.column_start, self.message, self.code or "")

	def verbatim(self) -> str:
		"""
		Text emitted on the passthrough path.

		cargo always attaches `rendered`; when a producer omits it we synthesize
		a minimal header rather than drop the diagnostic.
		"""
		if self.rendered is not None:
			return self.rendered
		return f"{self.level.value}: {self.message}\n"


__all__ = ["Level", "DiagnosticRecord"]
