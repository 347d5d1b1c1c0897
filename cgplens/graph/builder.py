# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Dependency graph builder: fold every recognized extraction of a batch into
one ObligationGraph.

Accumulation is keyed by ObligationKey only; nothing depends on arrival order
until `build()`, which sorts keys to assign arena indices.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Set, Tuple

from cgplens.typeexpr import TyPath, render_type, try_parse_type

from .obligations import (
	DependencyEdge,
	ObligationGraph,
	ObligationKey,
	ObligationKind,
	ObligationNode,
	Relation,
	merge_kind,
)
from .scc import component_index, strongly_connected

if TYPE_CHECKING:
	from cgplens.core.diagnostics import DiagnosticRecord
	from cgplens.extract.extractor import Extraction

logger = logging.getLogger(__name__)

PROVIDER_TRAIT = "IsProviderFor"
COMPONENT_SUFFIX = "Component"


def _provider_shape(key: ObligationKey) -> Optional[Tuple[str, str, str]]:
	"""(provider, component, context) for `P: IsProviderFor<C, Ctx, ..>`."""
	ty = try_parse_type(key.capability)
	if not isinstance(ty, TyPath) or ty.name != PROVIDER_TRAIT or len(ty.args) < 2:
		return None
	component = render_type(ty.args[0], short_paths=True)
	return key.subject, component, render_type(ty.args[1])


def _provider_trait_shape(key: ObligationKey) -> Optional[Tuple[str, str, str]]:
	"""(provider, component, context) for a provider-trait bound `P: X<Ctx, ..>`."""
	ty = try_parse_type(key.capability)
	if not isinstance(ty, TyPath) or ty.name == PROVIDER_TRAIT or not ty.args:
		return None
	return key.subject, ty.name + COMPONENT_SUFFIX, render_type(ty.args[0])


def provider_aliases(keys) -> Dict[ObligationKey, ObligationKey]:
	"""
	Map `P: X<Ctx>` onto `P: IsProviderFor<XComponent, Ctx>` when the batch has both.

	CGP generates the provider trait `X` from the component `XComponent`, and rustc
	reports the same unmet obligation under either name depending on which
	bound it was checking.
	"""
	providers: Dict[Tuple[str, str, str], ObligationKey] = {}
	for key in sorted(keys):
		shape = _provider_shape(key)
		if shape is not None:
			providers.setdefault(shape, key)
	aliases: Dict[ObligationKey, ObligationKey] = {}
	for key in sorted(keys):
		shape = _provider_trait_shape(key)
		if shape is None:
			continue
		target = providers.get(shape)
		if target is not None and target != key:
			aliases[key] = target
			logger.debug("provider alias: %s -> %s", key, target)
	return aliases


def _mark_top_level(graph: ObligationGraph, anchors: Set[int]) -> None:
	"""
	An anchor is top-level when nothing outside its own cycle requires it.

	Anchors of intermediate diagnostics (a provider bound that a consumer chain
	also passes through) are therefore not top-level.
	"""
	components = strongly_connected(graph)
	component_of = component_index(components)
	for idx in sorted(anchors):
		ci = component_of[idx]
		entered = any(
			component_of[p] != ci for m in components[ci] for p in graph.predecessors(m)
		)
		graph.nodes[idx].top_level = not entered


class GraphBuilder:
	"""Accumulates triples for one batch; `build()` produces the arena."""

	def __init__(self) -> None:
		self._kinds: Dict[ObligationKey, ObligationKind] = {}
		self._labels: Dict[ObligationKey, Set[str]] = {}
		self._provenance: Dict[ObligationKey, List["DiagnosticRecord"]] = {}
		self._edges: Dict[Tuple[ObligationKey, ObligationKey], Set[str]] = {}
		self._top: Set[ObligationKey] = set()

	def __len__(self) -> int:
		return len(self._kinds)

	def _touch(self, key: ObligationKey, kind: ObligationKind, record: "DiagnosticRecord") -> None:
		prev = self._kinds.get(key)
		self._kinds[key] = kind if prev is None else merge_kind(prev, kind)
		records = self._provenance.setdefault(key, [])
		if all(r is not record for r in records):
			records.append(record)

	def add(self, extraction: "Extraction") -> None:
		"""Fold one extraction in. Unrecognized extractions never reach the graph."""
		if not extraction.recognized:
			return
		record = extraction.record
		for triple in extraction.triples:
			subject = triple.subject
			self._touch(subject.key, subject.kind, record)
			if triple.relation is Relation.DEPENDS_ON and triple.target is not None:
				self._touch(triple.target.key, triple.target.kind, record)
				notes = self._edges.setdefault((subject.key, triple.target.key), set())
				if triple.note:
					notes.add(triple.note)
			elif triple.relation is Relation.BOUND_IN and triple.label:
				self._labels.setdefault(subject.key, set()).add(triple.label)
		if extraction.anchor is not None:
			self._top.add(extraction.anchor)

	def build(self) -> ObligationGraph:
		aliases = provider_aliases(self._kinds)

		def canon(key: ObligationKey) -> ObligationKey:
			return aliases.get(key, key)

		kinds: Dict[ObligationKey, ObligationKind] = {}
		labels: Dict[ObligationKey, Set[str]] = {}
		provenance: Dict[ObligationKey, List["DiagnosticRecord"]] = {}
		for key, kind in self._kinds.items():
			ck = canon(key)
			prev = kinds.get(ck)
			kinds[ck] = kind if prev is None else merge_kind(prev, kind)
			labels.setdefault(ck, set()).update(self._labels.get(key, ()))
			merged = provenance.setdefault(ck, [])
			for record in self._provenance.get(key, ()):
				if all(r is not record for r in merged):
					merged.append(record)

		edges: Dict[Tuple[ObligationKey, ObligationKey], Set[str]] = {}
		for (src, dst), notes in self._edges.items():
			cs, cd = canon(src), canon(dst)
			if cs == cd and src != dst:
				logger.debug("dropped alias self-loop on %s", cs)
				continue
			edges.setdefault((cs, cd), set()).update(notes)

		top = {canon(k) for k in self._top}
		ordered = sorted(kinds)
		index_by_key = {key: i for i, key in enumerate(ordered)}
		nodes = [
			ObligationNode(
				index=i,
				key=key,
				kind=kinds[key],
				bound_labels=tuple(sorted(labels.get(key, ()))),
				provenance=sorted(provenance[key], key=lambda r: (r.sort_key(), r.seq)),
			)
			for i, key in enumerate(ordered)
		]
		edge_list = [
			DependencyEdge(source=index_by_key[src], target=index_by_key[dst], notes=tuple(sorted(notes)))
			for (src, dst), notes in sorted(edges.items())
		]
		graph = ObligationGraph(nodes=nodes, edges=edge_list, index_by_key=index_by_key, aliases=aliases)
		_mark_top_level(graph, {index_by_key[k] for k in top})
		return graph


__all__ = ["GraphBuilder", "provider_aliases"]
