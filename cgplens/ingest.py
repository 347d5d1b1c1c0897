# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Diagnostic ingestor: one line of cargo/rustc JSON in, one IngestEvent out.

Accepted shapes:
  - cargo envelope: {"reason": "compiler-message", "package_id": ..., "message": {<diagnostic>}}
  - bare rustc diagnostic: {"$message_type": "diagnostic", "message": ..., "level": ...}
    (or any object with string `message` and `level` and no `reason`)

Every other cargo record (compiler-artifact, build-script-executed, ...) is
reported as OTHER so the caller can forward it; `build-finished` is reported
separately because it is the collaborator's batch-end signal. A line that is
not valid JSON, or whose diagnostic does not have the expected shape, is
UNPARSED: the raw text is kept for fallback output and nothing is raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Mapping, Optional

from cgplens.core.diagnostics import DiagnosticRecord

logger = logging.getLogger(__name__)


class IngestKind(Enum):
	DIAGNOSTIC = auto()
	BUILD_FINISHED = auto()
	OTHER = auto()
	UNPARSED = auto()
	EMPTY = auto()


@dataclass(frozen=True)
class IngestEvent:
	kind: IngestKind
	raw: str
	record: Optional[DiagnosticRecord] = None
	reason: Optional[str] = None


def _diagnostic_payload(obj: Mapping[str, Any]) -> tuple[Optional[Mapping[str, Any]], Optional[str]]:
	"""Return (diagnostic object, cargo reason) for a decoded JSON object."""
	reason = obj.get("reason")
	if reason is not None:
		if reason != "compiler-message":
			return None, str(reason)
		payload = obj.get("message")
		if not isinstance(payload, Mapping):
			raise TypeError("compiler-message without a diagnostic object")
		return payload, str(reason)
	if obj.get("$message_type", "diagnostic") != "diagnostic":
		return None, str(obj["$message_type"])
	if "message" in obj and "level" in obj:
		return obj, None
	raise KeyError("object is neither a cargo message nor a rustc diagnostic")


def parse_line(line: str, *, seq: int = 0) -> IngestEvent:
	"""
	Classify and decode a single line of the check stream.

	Never raises for malformed input; shape errors become UNPARSED events.
	"""
	raw = line.rstrip("\r\n")
	if not raw.strip():
		return IngestEvent(kind=IngestKind.EMPTY, raw=raw)
	try:
		obj = json.loads(raw)
		if not isinstance(obj, Mapping):
			raise TypeError("top-level JSON value is not an object")
		payload, reason = _diagnostic_payload(obj)
		if payload is None:
			kind = IngestKind.BUILD_FINISHED if reason == "build-finished" else IngestKind.OTHER
			return IngestEvent(kind=kind, raw=raw, reason=reason)
		package_id = obj.get("package_id")
		record = DiagnosticRecord.from_json(
			payload,
			seq=seq,
			package_id=str(package_id) if package_id is not None else None,
		)
	except (ValueError, KeyError, TypeError, RecursionError) as err:
		logger.debug("unparsed line %d: %s", seq, err)
		return IngestEvent(kind=IngestKind.UNPARSED, raw=raw)
	return IngestEvent(kind=IngestKind.DIAGNOSTIC, raw=raw, record=record, reason=reason)


__all__ = ["IngestKind", "IngestEvent", "parse_line"]
