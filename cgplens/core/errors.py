# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ReconstructionError(Exception):
	"""
	An internal invariant violation detected while reconstructing a batch.

	This is the only error class that is fatal to a batch: the session catches
	it and renders every diagnostic of that batch verbatim instead of a report
	it cannot stand behind.
	"""

	reason_code: str
	message: str
	node: str | None = None
	record_seq: int | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"node": self.node,
			"record_seq": self.record_seq,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.node:
			parts.append(f"node={self.node}")
		if self.record_seq is not None:
			parts.append(f"record_seq={self.record_seq}")
		return " ".join(parts)


class TypeSyntaxError(ValueError):
	"""Raised when a type expression from diagnostic text cannot be parsed."""


class EngineStateError(RuntimeError):
	"""Raised for an engine state transition that does not exist."""


__all__ = ["ReconstructionError", "TypeSyntaxError", "EngineStateError"]
