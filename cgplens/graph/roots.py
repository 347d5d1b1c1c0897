# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Root cause analysis over a finished ObligationGraph.

A root is a sink strongly connected component: nothing it depends on is a
separate failing obligation. Single-node sinks are ordinary roots; a sink with
more than one member is a cyclic bound, reported once at its smallest key with
an explicit caveat.

Roots unreachable from every top-level obligation are extraction noise and are
dropped. A recognized record is attributed to the roots its own dependency
links reach; two records that only share a consumer obligation never land
under each other's root.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Set, Tuple

from cgplens.core.errors import ReconstructionError

from .obligations import NodeTag, ObligationGraph, ObligationKey, Relation
from .scc import component_index, strongly_connected

if TYPE_CHECKING:
	from cgplens.core.diagnostics import DiagnosticRecord
	from cgplens.extract.extractor import Extraction

logger = logging.getLogger(__name__)


@dataclass
class RootCause:
	anchor: int
	key: ObligationKey
	members: Tuple[int, ...]
	cyclic: bool
	trace: Tuple[int, ...] = ()
	# Reachable from a top-level obligation that carries a "required by a bound in" label.
	from_user_request: bool = False
	records: List["DiagnosticRecord"] = field(default_factory=list)
	has_other_field_impls: bool = False


@dataclass
class Analysis:
	graph: ObligationGraph
	roots: List[RootCause]
	orphans: List[RootCause]
	# Record seq -> keys of the roots it is attributed to.
	attribution: Dict[int, Tuple[ObligationKey, ...]]

	def root(self, key: ObligationKey) -> Optional[RootCause]:
		for root in self.roots:
			if root.key == key:
				return root
		return None


def _reachable(graph: ObligationGraph, starts: Sequence[int]) -> Set[int]:
	seen: Set[int] = set(starts)
	queue = deque(starts)
	while queue:
		v = queue.popleft()
		for w in graph.successors(v):
			if w not in seen:
				seen.add(w)
				queue.append(w)
	return seen


def _own_reach(graph: ObligationGraph, extraction: "Extraction", anchor: int) -> Tuple[Set[int], List[int]]:
	"""
	Nodes the anchor reaches along the record's own links, plus the leaves of
	that walk (nodes with no outgoing link of their own).
	"""
	succ: Dict[int, Set[int]] = {}
	for triple in extraction.triples:
		if triple.relation is not Relation.DEPENDS_ON or triple.target is None:
			continue
		src = graph.index_of(triple.subject.key)
		dst = graph.index_of(triple.target.key)
		if src is not None and dst is not None and src != dst:
			succ.setdefault(src, set()).add(dst)
	seen: Set[int] = {anchor}
	queue = deque([anchor])
	while queue:
		v = queue.popleft()
		for w in sorted(succ.get(v, ())):
			if w not in seen:
				seen.add(w)
				queue.append(w)
	return seen, sorted(i for i in seen if not succ.get(i))


def _trace(graph: ObligationGraph, root: RootCause) -> Tuple[int, ...]:
	"""
	Shortest top-level -> root path.

	Ties prefer labeled top-level nodes, then key order; each forward step
	picks the smallest key among successors one step closer to the root.
	"""
	dist: Dict[int, int] = {m: 0 for m in root.members}
	queue = deque(root.members)
	while queue:
		v = queue.popleft()
		for u in graph.predecessors(v):
			if u not in dist:
				dist[u] = dist[v] + 1
				queue.append(u)
	candidates = [i for i in dist if graph.nodes[i].top_level]
	if not candidates:
		return ()
	start = min(
		candidates,
		key=lambda i: (dist[i], not graph.nodes[i].bound_labels, graph.nodes[i].key),
	)
	path = [start]
	while dist[path[-1]] > 0:
		here = path[-1]
		steps = [w for w in graph.successors(here) if dist.get(w) == dist[here] - 1]
		path.append(min(steps, key=lambda i: graph.nodes[i].key))
	if path[-1] != root.anchor:
		path.append(root.anchor)
	return tuple(path)


def analyze(graph: ObligationGraph, extractions: Sequence["Extraction"]) -> Analysis:
	"""
	Partition the graph into roots and transitive nodes and attribute records.

	Raises ReconstructionError when an internal invariant does not hold; the
	session turns that into the verbatim fallback for the batch.
	"""
	components = strongly_connected(graph)
	component_of = component_index(components)

	top = graph.top_level()
	from_top = _reachable(graph, top)
	from_labeled = _reachable(graph, [i for i in top if graph.nodes[i].bound_labels])

	roots: List[RootCause] = []
	orphans: List[RootCause] = []
	root_of_component: Dict[int, RootCause] = {}
	for ci, members in enumerate(components):
		is_sink = all(component_of[w] == ci for m in members for w in graph.successors(m))
		if not is_sink:
			continue
		anchor = min(members, key=lambda i: graph.nodes[i].key)
		cyclic = len(members) > 1 or anchor in graph.successors(anchor)
		root = RootCause(
			anchor=anchor,
			key=graph.nodes[anchor].key,
			members=tuple(members),
			cyclic=cyclic,
			from_user_request=any(m in from_labeled for m in members),
		)
		if not any(m in from_top for m in members):
			logger.debug("dropping orphaned obligation %s", root.key)
			orphans.append(root)
			for m in members:
				graph.nodes[m].tag = NodeTag.ORPHAN
			continue
		if cyclic:
			logger.debug("cyclic bound among %d obligations anchored at %s", len(members), root.key)
		for m in members:
			graph.nodes[m].tag = NodeTag.ROOT_CAUSE
		root_of_component[ci] = root
		roots.append(root)

	for node in graph.nodes:
		if node.tag is None:
			node.tag = NodeTag.TRANSITIVE

	attribution: Dict[int, Tuple[ObligationKey, ...]] = {}
	for extraction in extractions:
		if not extraction.recognized or extraction.anchor is None:
			continue
		record = extraction.record
		anchor_idx = graph.index_of(extraction.anchor)
		if anchor_idx is None:
			raise ReconstructionError(
				reason_code="UNATTRIBUTED_DIAGNOSTIC",
				message="recognized diagnostic has no node in the obligation graph",
				node=str(extraction.anchor),
				record_seq=record.seq,
			)
		own, leaves = _own_reach(graph, extraction, anchor_idx)
		hit = sorted({component_of[i] for i in own if component_of[i] in root_of_component})
		if not hit:
			# The record's chain stops at a node other records extend further.
			reach = _reachable(graph, leaves or [anchor_idx])
			hit = sorted({component_of[i] for i in reach if component_of[i] in root_of_component})
		if not hit:
			raise ReconstructionError(
				reason_code="UNATTRIBUTED_DIAGNOSTIC",
				message="recognized diagnostic reaches no root cause",
				node=str(extraction.anchor),
				record_seq=record.seq,
			)
		keys = []
		for ci in hit:
			root = root_of_component[ci]
			if all(r is not record for r in root.records):
				root.records.append(record)
			root.has_other_field_impls = root.has_other_field_impls or extraction.has_other_field_impls
			keys.append(root.key)
		attribution[record.seq] = tuple(sorted(keys))

	for root in roots:
		if not root.records:
			raise ReconstructionError(
				reason_code="ROOT_WITHOUT_PROVENANCE",
				message="root cause has no attributed diagnostic",
				node=str(root.key),
			)
		root.records.sort(key=lambda r: (r.sort_key(), r.seq))
		root.trace = _trace(graph, root)
		if not root.trace:
			raise ReconstructionError(
				reason_code="EMPTY_TRACE",
				message="root cause has no path from a top-level obligation",
				node=str(root.key),
			)

	roots.sort(key=lambda r: r.key)
	return Analysis(graph=graph, roots=roots, orphans=orphans, attribution=attribution)


__all__ = ["RootCause", "Analysis", "analyze"]
