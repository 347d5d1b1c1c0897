# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
	from cgplens.core.diagnostics import DiagnosticRecord


class ObligationKind(Enum):
	TRAIT_BOUND = auto()
	FIELD_PRESENCE = auto()
	ASSOC_TYPE_EQ = auto()
	UNSATISFIED = auto()

	@property
	def rank(self) -> int:
		"""Specificity used when two extractions disagree on the kind of one obligation."""
		return _KIND_RANK[self]


_KIND_RANK = {
	ObligationKind.UNSATISFIED: 0,
	ObligationKind.TRAIT_BOUND: 1,
	ObligationKind.ASSOC_TYPE_EQ: 2,
	ObligationKind.FIELD_PRESENCE: 3,
}


def merge_kind(a: ObligationKind, b: ObligationKind) -> ObligationKind:
	return a if (a.rank, a.name) >= (b.rank, b.name) else b


@dataclass(frozen=True, order=True)
class ObligationKey:
	"""Node identity: normalized subject and capability text."""

	subject: str
	capability: str

	def __str__(self) -> str:
		return f"{self.subject}: {self.capability}"


@dataclass(frozen=True)
class Obligation:
	kind: ObligationKind
	key: ObligationKey

	@property
	def subject(self) -> str:
		return self.key.subject

	@property
	def capability(self) -> str:
		return self.key.capability


class Relation(Enum):
	DEPENDS_ON = auto()  # subject requires target
	UNSATISFIED = auto()  # subject is stated as failing
	BOUND_IN = auto()  # subject is required by the user-facing bound named in `label`


@dataclass(frozen=True)
class Triple:
	subject: Obligation
	relation: Relation
	target: Optional[Obligation] = None
	label: Optional[str] = None
	template: str = ""
	note: str = ""


class NodeTag(Enum):
	ROOT_CAUSE = auto()
	TRANSITIVE = auto()
	ORPHAN = auto()


@dataclass
class ObligationNode:
	"""
	One obligation in a batch's graph, addressed by its arena index.

	Only `tag` changes after the graph is built (set by the analyzer).
	"""

	index: int
	key: ObligationKey
	kind: ObligationKind
	satisfied: bool = False
	top_level: bool = False
	bound_labels: Tuple[str, ...] = ()
	provenance: List["DiagnosticRecord"] = field(default_factory=list)
	tag: Optional[NodeTag] = None


@dataclass(frozen=True)
class DependencyEdge:
	source: int
	target: int
	notes: Tuple[str, ...] = ()


@dataclass
class ObligationGraph:
	"""
	Node/edge arena for one batch.

	Nodes are addressed by index; indices follow key order, so two graphs built
	from the same diagnostics in any order are identical.
	"""

	nodes: List[ObligationNode] = field(default_factory=list)
	edges: List[DependencyEdge] = field(default_factory=list)
	index_by_key: Dict[ObligationKey, int] = field(default_factory=dict)
	# Keys folded into another node by provider aliasing.
	aliases: Dict[ObligationKey, ObligationKey] = field(default_factory=dict)
	_succ: List[List[int]] = field(default_factory=list, init=False, repr=False)
	_pred: List[List[int]] = field(default_factory=list, init=False, repr=False)

	def __post_init__(self) -> None:
		self._succ = [[] for _ in self.nodes]
		self._pred = [[] for _ in self.nodes]
		for edge in self.edges:
			self._succ[edge.source].append(edge.target)
			self._pred[edge.target].append(edge.source)
		for adj in self._succ + self._pred:
			adj.sort()

	def __len__(self) -> int:
		return len(self.nodes)

	def index_of(self, key: ObligationKey) -> Optional[int]:
		return self.index_by_key.get(self.aliases.get(key, key))

	def node(self, key: ObligationKey) -> Optional[ObligationNode]:
		idx = self.index_of(key)
		return self.nodes[idx] if idx is not None else None

	def successors(self, index: int) -> List[int]:
		return self._succ[index]

	def predecessors(self, index: int) -> List[int]:
		return self._pred[index]

	def top_level(self) -> List[int]:
		return [n.index for n in self.nodes if n.top_level]

	def signature(self) -> Tuple[object, ...]:
		"""Structural summary for equality checks (records compared by content, not arrival)."""
		nodes = tuple(
			(
				n.key,
				n.kind,
				n.top_level,
				n.bound_labels,
				tuple(r.sort_key() for r in n.provenance),
			)
			for n in self.nodes
		)
		edges = tuple(
			sorted((self.nodes[e.source].key, self.nodes[e.target].key, e.notes) for e in self.edges)
		)
		return (nodes, edges)


__all__ = [
	"ObligationKind",
	"merge_kind",
	"ObligationKey",
	"Obligation",
	"Relation",
	"Triple",
	"NodeTag",
	"ObligationNode",
	"DependencyEdge",
	"ObligationGraph",
]
