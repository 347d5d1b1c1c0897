"""
cgplens.graph: obligation graph for one batch.

Modules:
  - obligations: keys, kinds, triples, nodes/edges and the index arena
  - builder: GraphBuilder (order-independent accumulation, provider aliases)
  - scc: Tarjan strongly connected components over the arena
  - roots: SCC-based root cause analysis and record attribution
"""

from .builder import GraphBuilder, provider_aliases
from .obligations import (
	DependencyEdge,
	NodeTag,
	Obligation,
	ObligationGraph,
	ObligationKey,
	ObligationKind,
	ObligationNode,
	Relation,
	Triple,
)
from .roots import Analysis, RootCause, analyze
from .scc import component_index, strongly_connected

__all__ = [
	"GraphBuilder",
	"provider_aliases",
	"DependencyEdge",
	"NodeTag",
	"Obligation",
	"ObligationGraph",
	"ObligationKey",
	"ObligationKind",
	"ObligationNode",
	"Relation",
	"Triple",
	"Analysis",
	"RootCause",
	"analyze",
	"component_index",
	"strongly_connected",
]
