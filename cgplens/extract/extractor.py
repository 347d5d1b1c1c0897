# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Text pattern extraction: one DiagnosticRecord -> obligation triples.

rustc prints an E0277 chain as a leaf restatement followed by a stack of
notes, innermost first:

  error: the trait bound `Rectangle: CanUseComponent<AreaCalculatorComponent>` is not satisfied
  help: the trait `HasField<Symbol<6, Chars<'h', ...>>>` is not implemented for `Rectangle`
  note: required for `RectangleArea` to implement `IsProviderFor<AreaCalculatorComponent, Rectangle>`
  note: required for `Rectangle` to implement `CanUseComponent<AreaCalculatorComponent>`
  note: required by a bound in `CanUseRectangle`

Each "required for" note depends on the obligation below it; the last one
reached is the record's anchor (its user-facing top-level obligation).

Extraction is a pure function of one record. Nothing here guesses: a line
that does not match a template contributes nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Set, Tuple

from cgplens.core.config import EngineConfig
from cgplens.core.diagnostics import DiagnosticRecord
from cgplens.graph.builder import provider_aliases
from cgplens.graph.obligations import Obligation, ObligationKey, Relation, Triple

from .templates import (
	BOUND_LIST_ROLES,
	CHAIN_ROLES,
	TemplateMatch,
	TemplateRole,
	capability_head_name,
	match_line,
	resolve,
)

CGP_MARKERS = (
	"CanUseComponent",
	"IsProviderFor",
	"HasField",
	"DelegateComponent",
	"cgp_impl",
	"cgp_component",
	"cgp_auto_getter",
	"delegate_components",
	"check_components",
)


@dataclass(frozen=True)
class Extraction:
	record: DiagnosticRecord
	triples: Tuple[Triple, ...]
	is_cgp_pattern: bool
	anchor: Optional[ObligationKey]
	has_other_field_impls: bool = False
	ambiguities: int = 0
	# Gate for the reconstruction path; False routes the record to passthrough.
	recognized: bool = False

	def has_dependencies(self) -> bool:
		return any(t.relation is Relation.DEPENDS_ON for t in self.triples)


def mentions_cgp(record: DiagnosticRecord) -> bool:
	return any(marker in text for text in record.iter_messages() for marker in CGP_MARKERS)


def _iter_children(record: DiagnosticRecord) -> Iterator[DiagnosticRecord]:
	for child in record.children:
		yield child
		yield from _iter_children(child)


class _Scanner:
	"""Line matcher that counts template ambiguities for one record."""

	def __init__(self) -> None:
		self.ambiguities = 0

	def pick(self, line: str, roles) -> Optional[TemplateMatch]:
		best, ambiguous = resolve(match_line(line, roles))
		if ambiguous:
			self.ambiguities += 1
		return best

	def message_leaf(self, record: DiagnosticRecord) -> Optional[TemplateMatch]:
		for line in record.message.splitlines():
			m = self.pick(line, (TemplateRole.UNSATISFIED,))
			if m is not None and m.obligation is not None:
				return m
		return None

	def child_events(self, record: DiagnosticRecord) -> List[TemplateMatch]:
		events: List[TemplateMatch] = []
		for child in _iter_children(record):
			in_list = False
			for line in child.message.splitlines():
				if in_list:
					m = self.pick(line, BOUND_LIST_ROLES)
					if m is not None:
						events.append(m)
						continue
					in_list = False
				m = self.pick(line, CHAIN_ROLES)
				if m is None:
					continue
				if m.template.role is TemplateRole.BOUND_LIST:
					in_list = True
				events.append(m)
		return events


def _unsatisfied(m: TemplateMatch, ob: Obligation) -> Triple:
	return Triple(subject=ob, relation=Relation.UNSATISFIED, template=m.template.name, note=m.text)


def _depends(m: TemplateMatch, source: Obligation, target: Obligation) -> Triple:
	return Triple(
		subject=source,
		relation=Relation.DEPENDS_ON,
		target=target,
		template=m.template.name,
		note=m.text,
	)


def extract(record: DiagnosticRecord, config: Optional[EngineConfig] = None) -> Extraction:
	"""
	Turn one record into triples plus its anchor obligation.

	Chain construction:
	  - the leaf is the first child restatement ("the trait `X` is not
	    implemented for `T`"), else the bound named by the message;
	  - each "required for" note depends on the current chain top and becomes
	    the new top; a note restating the top only refines its kind;
	  - "required by a bound in `X`" labels the current top;
	  - a message bound that is not already on the chain (directly or as the
	    provider-trait spelling of a chain member) depends on the top;
	  - an E0599 bound list links the top to each outermost listed bound.
	"""
	config = config or EngineConfig()
	scanner = _Scanner()
	message_match = scanner.message_leaf(record)
	events = scanner.child_events(record)

	leaf_match: Optional[TemplateMatch] = None
	for ev in events:
		if ev.template.role is TemplateRole.UNSATISFIED and ev.obligation is not None:
			leaf_match = ev
			break
	if leaf_match is None:
		leaf_match = message_match

	triples: List[Triple] = []
	chain: List[Obligation] = []
	if leaf_match is not None and leaf_match.obligation is not None:
		chain.append(leaf_match.obligation)
		triples.append(_unsatisfied(leaf_match, leaf_match.obligation))

	has_other_field_impls = False
	list_order: List[Obligation] = []
	list_children: Set[ObligationKey] = set()
	pending_item: Optional[Obligation] = None
	for ev in events:
		role = ev.template.role
		ob = ev.obligation
		if ev is leaf_match:
			continue
		if role is TemplateRole.REQUIRED_FOR and ob is not None:
			if chain and chain[-1].key == ob.key:
				triples.append(_unsatisfied(ev, ob))
				continue
			if chain:
				triples.append(_depends(ev, ob, chain[-1]))
			else:
				triples.append(_unsatisfied(ev, ob))
			chain.append(ob)
		elif role is TemplateRole.BOUND_IN:
			if chain and ev.label:
				triples.append(
					Triple(
						subject=chain[-1],
						relation=Relation.BOUND_IN,
						label=ev.label,
						template=ev.template.name,
						note=ev.text,
					)
				)
		elif role is TemplateRole.UNSATISFIED and ob is not None:
			# A second restatement; linked to nothing, so it is dropped as an orphan later.
			triples.append(_unsatisfied(ev, ob))
		elif role is TemplateRole.OTHER_IMPLS:
			if ev.label and capability_head_name(ev.label) == "HasField":
				has_other_field_impls = True
		elif role is TemplateRole.BOUND_ITEM and ob is not None:
			pending_item = ob
			triples.append(_unsatisfied(ev, ob))
			if all(o.key != ob.key for o in list_order):
				list_order.append(ob)
		elif role is TemplateRole.REQUIRED_BY_ITEM and ob is not None and pending_item is not None:
			if ob.key != pending_item.key:
				triples.append(_depends(ev, ob, pending_item))
				list_children.add(pending_item.key)
			if all(o.key != ob.key for o in list_order):
				list_order.append(ob)

	top = chain[-1] if chain else None
	if message_match is not None and message_match.obligation is not None and message_match is not leaf_match:
		mob = message_match.obligation
		triples.append(_unsatisfied(message_match, mob))
		chain_keys = {c.key for c in chain}
		# `P: X<Ctx>` restates a `P: IsProviderFor<XComponent, Ctx>` note already on the chain.
		same = provider_aliases(chain_keys | {mob.key}).get(mob.key, mob.key)
		if top is None:
			top = mob
		elif same not in chain_keys:
			triples.append(_depends(message_match, mob, top))
			top = mob

	if top is not None:
		for item in list_order:
			if item.key in list_children or item.key == top.key:
				continue
			triples.append(
				Triple(
					subject=top,
					relation=Relation.DEPENDS_ON,
					target=item,
					template="trait_bounds_header",
					note=f"`{item.key}`",
				)
			)

	is_cgp = mentions_cgp(record)
	extraction = Extraction(
		record=record,
		triples=tuple(triples),
		is_cgp_pattern=is_cgp,
		anchor=top.key if top is not None else None,
		has_other_field_impls=has_other_field_impls,
		ambiguities=scanner.ambiguities,
	)
	recognized = (
		record.is_error
		and bool(extraction.triples)
		and (is_cgp or extraction.has_dependencies())
		and (is_cgp or not config.cgp_only)
	)
	return replace(extraction, recognized=True) if recognized else extraction


__all__ = ["CGP_MARKERS", "Extraction", "mentions_cgp", "extract"]
