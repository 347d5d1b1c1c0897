# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from typing import Dict, List, Set, Tuple

from .obligations import ObligationGraph


def strongly_connected(graph: ObligationGraph) -> List[List[int]]:
	"""Tarjan's algorithm, iterative; components come out in reverse topological order."""
	index: Dict[int, int] = {}
	low: Dict[int, int] = {}
	on_stack: Set[int] = set()
	stack: List[int] = []
	out: List[List[int]] = []
	counter = 0
	for start in range(len(graph)):
		if start in index:
			continue
		work: List[Tuple[int, int]] = [(start, 0)]
		while work:
			v, pos = work.pop()
			if pos == 0:
				index[v] = low[v] = counter
				counter += 1
				stack.append(v)
				on_stack.add(v)
			succ = graph.successors(v)
			descended = False
			while pos < len(succ):
				w = succ[pos]
				pos += 1
				if w not in index:
					work.append((v, pos))
					work.append((w, 0))
					descended = True
					break
				if w in on_stack:
					low[v] = min(low[v], index[w])
			if descended:
				continue
			if low[v] == index[v]:
				component: List[int] = []
				while True:
					w = stack.pop()
					on_stack.discard(w)
					component.append(w)
					if w == v:
						break
				out.append(sorted(component))
			if work:
				parent = work[-1][0]
				low[parent] = min(low[parent], low[v])
	return out


def component_index(components: List[List[int]]) -> Dict[int, int]:
	"""Node index -> position of its component in `components`."""
	return {m: ci for ci, members in enumerate(components) for m in members}


__all__ = ["strongly_connected", "component_index"]
