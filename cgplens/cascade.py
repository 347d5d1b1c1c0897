# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Cascade deduplication: group the records of each root by call site.

Fingerprint is (root key, primary file, primary line). Records sharing a
fingerprint fold into one CallSite; different sites under the same root stay
separate entries so every location that needs fixing is still shown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from cgplens.core.diagnostics import DiagnosticRecord
from cgplens.core.span import DiagnosticSpan
from cgplens.graph.obligations import ObligationKey
from cgplens.graph.roots import Analysis, RootCause


@dataclass
class CallSite:
	file_name: str
	line: int
	column: int
	span: Optional[DiagnosticSpan]
	records: List[DiagnosticRecord] = field(default_factory=list)

	@property
	def folded(self) -> int:
		return len(self.records) - 1

	def location(self) -> str:
		if not self.file_name:
			return "<unknown>"
		return f"{self.file_name}:{self.line}:{self.column}"

	def sort_key(self) -> Tuple[str, int, int]:
		return (self.file_name, self.line, self.column)


@dataclass
class Cascade:
	root: RootCause
	sites: List[CallSite]

	@property
	def key(self) -> ObligationKey:
		return self.root.key

	@property
	def folded_count(self) -> int:
		return sum(site.folded for site in self.sites)

	def records(self) -> List[DiagnosticRecord]:
		return [r for site in self.sites for r in site.records]


def fingerprint(root: RootCause, record: DiagnosticRecord) -> Tuple[ObligationKey, str, int]:
	span = record.primary_span()
	if span is None:
		return (root.key, "", 0)
	return (root.key, span.file_name, span.line_start)


def cascade_for(root: RootCause) -> Cascade:
	sites: Dict[Tuple[ObligationKey, str, int], CallSite] = {}
	for record in sorted(root.records, key=lambda r: (r.sort_key(), r.seq)):
		fp = fingerprint(root, record)
		site = sites.get(fp)
		span = record.primary_span()
		if site is None:
			site = CallSite(
				file_name=fp[1],
				line=fp[2],
				column=span.column_start if span is not None else 0,
				span=span,
			)
			sites[fp] = site
		site.records.append(record)
	return Cascade(root=root, sites=sorted(sites.values(), key=CallSite.sort_key))


def deduplicate(analysis: Analysis) -> List[Cascade]:
	"""One Cascade per reported root, in root key order."""
	return [cascade_for(root) for root in analysis.roots]


__all__ = ["CallSite", "Cascade", "fingerprint", "cascade_for", "deduplicate"]
