# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Phrase templates: the single table of rustc wordings the extractor understands.

Upstream wording drift should only ever require edits to `TEMPLATES`. Each
template is matched against one whitespace-normalized line, case-insensitively,
and anchored at the start of the line. Backticked captures keep their case.

Named groups drive how a match becomes an obligation:
  subject + capability   -> (subject, capability)
  bound                  -> `Subject: Capability`, split at the top-level `:`
  projection             -> `<T as Trait>::Assoc == U`, subject is `T`
  method + subject       -> (subject, "method `name`")
  label                  -> user-facing bound name, no obligation
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, List, Optional, Sequence, Tuple

from cgplens.graph.obligations import Obligation, ObligationKey, ObligationKind
from cgplens.typeexpr import TyPath, normalize_type_text, split_bound, try_parse_type
from cgplens.typeexpr.ast import TyQualified
from cgplens.typeexpr.render import render_type, strip_library_paths

logger = logging.getLogger(__name__)


class TemplateRole(Enum):
	UNSATISFIED = auto()
	REQUIRED_FOR = auto()
	BOUND_IN = auto()
	OTHER_IMPLS = auto()
	BOUND_LIST = auto()
	BOUND_ITEM = auto()
	REQUIRED_BY_ITEM = auto()


@dataclass(frozen=True)
class TemplateMatch:
	template: "PhraseTemplate"
	obligation: Optional[Obligation]
	label: Optional[str]
	text: str

	def conflicts_with(self, other: "TemplateMatch") -> bool:
		"""Two matches conflict when they name different obligations or labels (kind refinement is not a conflict)."""
		mine = self.obligation.key if self.obligation is not None else None
		theirs = other.obligation.key if other.obligation is not None else None
		return mine != theirs or self.label != other.label


@dataclass(frozen=True)
class PhraseTemplate:
	name: str
	role: TemplateRole
	pattern: "re.Pattern[str]"
	specificity: int
	kind: ObligationKind = ObligationKind.TRAIT_BOUND
	# When set, the capability's last path segment must carry this name.
	capability_head: Optional[str] = None

	def match(self, line: str) -> Optional[TemplateMatch]:
		m = self.pattern.match(line)
		if m is None:
			return None
		groups = m.groupdict()
		label = groups.get("label")
		subject: Optional[str] = groups.get("subject")
		capability: Optional[str] = groups.get("capability")
		if groups.get("bound") is not None:
			split = split_bound(groups["bound"])
			if split is None:
				return None
			subject, capability = split[0], normalize_type_text(split[1])
		elif groups.get("projection") is not None:
			split = _split_projection(groups["projection"])
			if split is None:
				return None
			subject, capability = split
		elif groups.get("method") is not None:
			capability = f"method `{groups['method']}`"
		elif capability is not None:
			capability = normalize_type_text(capability)
		obligation: Optional[Obligation] = None
		if capability is not None:
			if self.capability_head is not None and capability_head_name(capability) != self.capability_head:
				return None
			if subject is not None:
				key = ObligationKey(subject=normalize_type_text(subject), capability=capability)
				obligation = Obligation(kind=self.kind, key=key)
			elif label is None:
				label = capability
		return TemplateMatch(template=self, obligation=obligation, label=label, text=line)


def capability_head_name(capability: str) -> Optional[str]:
	"""Last path segment name of a trait reference (`HasField` for `cgp::HasField<..>`)."""
	ty = try_parse_type(capability)
	if isinstance(ty, TyPath):
		return ty.name
	return None


def _split_projection(text: str) -> Optional[Tuple[str, str]]:
	"""`<T as Trait>::Assoc == U` -> (`T`, normalized projection text)."""
	lhs, sep, rhs = text.partition(" == ")
	if not sep:
		return None
	ty = try_parse_type(lhs.strip())
	if not isinstance(ty, TyQualified):
		return None
	subject = render_type(strip_library_paths(ty.self_ty))
	return subject, f"{render_type(strip_library_paths(ty))} == {normalize_type_text(rhs)}"


def _t(
	name: str,
	role: TemplateRole,
	pattern: str,
	specificity: int,
	kind: ObligationKind = ObligationKind.TRAIT_BOUND,
	capability_head: Optional[str] = None,
) -> PhraseTemplate:
	return PhraseTemplate(
		name=name,
		role=role,
		pattern=re.compile(pattern, re.IGNORECASE),
		specificity=specificity,
		kind=kind,
		capability_head=capability_head,
	)


_BOUND_NOT_SATISFIED = r"^the trait bound `(?P<bound>[^`]+)` is not satisfied"
_NOT_IMPLEMENTED = r"^the trait `(?P<capability>[^`]+)` is not implemented for `(?P<subject>[^`]+)`"
_REQUIRED_FOR = r"^required for `(?P<subject>[^`]+)` to implement `(?P<capability>[^`]+)`"

TEMPLATES: Tuple[PhraseTemplate, ...] = (
	_t("trait_bound_not_satisfied", TemplateRole.UNSATISFIED, _BOUND_NOT_SATISFIED, 2),
	_t(
		"field_bound_not_satisfied",
		TemplateRole.UNSATISFIED,
		_BOUND_NOT_SATISFIED,
		3,
		ObligationKind.FIELD_PRESENCE,
		capability_head="HasField",
	),
	_t("trait_not_implemented", TemplateRole.UNSATISFIED, _NOT_IMPLEMENTED, 2),
	_t(
		"field_not_implemented",
		TemplateRole.UNSATISFIED,
		_NOT_IMPLEMENTED,
		3,
		ObligationKind.FIELD_PRESENCE,
		capability_head="HasField",
	),
	_t(
		"does_not_implement",
		TemplateRole.UNSATISFIED,
		r"^`(?P<subject>[^`]+)` (?:does not|doesn't) implement `(?P<capability>[^`]+)`",
		1,
	),
	_t(
		"assoc_type_mismatch",
		TemplateRole.UNSATISFIED,
		r"^type mismatch resolving `(?P<projection>[^`]+)`",
		3,
		ObligationKind.ASSOC_TYPE_EQ,
	),
	_t(
		"method_bounds_unsatisfied",
		TemplateRole.UNSATISFIED,
		r"^the method `(?P<method>[^`]+)` exists for (?:[a-z ]+ )?`(?P<subject>[^`]+)`, but its trait bounds were not satisfied",
		2,
		ObligationKind.UNSATISFIED,
	),
	_t("required_for", TemplateRole.REQUIRED_FOR, _REQUIRED_FOR, 2),
	_t(
		"required_for_field",
		TemplateRole.REQUIRED_FOR,
		_REQUIRED_FOR,
		3,
		ObligationKind.FIELD_PRESENCE,
		capability_head="HasField",
	),
	_t("required_by_bound", TemplateRole.BOUND_IN, r"^required by (?:a|this) bound in `(?P<label>[^`]+)`", 2),
	_t(
		"other_types_implement",
		TemplateRole.OTHER_IMPLS,
		r"^the following other types implement trait `(?P<capability>[^`]+)`",
		1,
	),
	_t(
		"but_trait_implemented",
		TemplateRole.OTHER_IMPLS,
		r"^but trait `(?P<capability>[^`]+)` is implemented for (?:it|`[^`]+`)",
		1,
	),
	_t("trait_bounds_header", TemplateRole.BOUND_LIST, r"^the following trait bounds were not satisfied:?$", 1),
	_t("bound_item", TemplateRole.BOUND_ITEM, r"^`(?P<bound>[^`]+)`$", 1),
	_t("which_is_required_by", TemplateRole.REQUIRED_BY_ITEM, r"^which is required by `(?P<bound>[^`]+)`$", 1),
)

CHAIN_ROLES = frozenset(
	{
		TemplateRole.UNSATISFIED,
		TemplateRole.REQUIRED_FOR,
		TemplateRole.BOUND_IN,
		TemplateRole.OTHER_IMPLS,
		TemplateRole.BOUND_LIST,
	}
)
BOUND_LIST_ROLES = frozenset({TemplateRole.BOUND_ITEM, TemplateRole.REQUIRED_BY_ITEM})


def normalize_phrase(line: str) -> str:
	return " ".join(line.split())


def match_line(
	line: str,
	roles: Iterable[TemplateRole],
	*,
	templates: Sequence[PhraseTemplate] = TEMPLATES,
) -> List[TemplateMatch]:
	"""All matches of `line` among templates with the given roles, most specific first."""
	wanted = frozenset(roles)
	text = normalize_phrase(line)
	if not text:
		return []
	out: List[TemplateMatch] = []
	for tpl in templates:
		if tpl.role not in wanted:
			continue
		m = tpl.match(text)
		if m is not None:
			out.append(m)
	out.sort(key=lambda m: (-m.template.specificity, m.template.name))
	return out


def resolve(matches: Sequence[TemplateMatch]) -> Tuple[Optional[TemplateMatch], bool]:
	"""
	Pick the most specific match; report whether weaker matches disagreed with it.

	Disagreement means a different obligation key or label. A weaker match that
	only differs in kind is a refinement, not an ambiguity.
	"""
	if not matches:
		return None, False
	best = matches[0]
	losers = [m for m in matches[1:] if m.conflicts_with(best)]
	if losers:
		logger.debug(
			"ambiguous phrase %r: chose %s over %s",
			best.text,
			best.template.name,
			", ".join(m.template.name for m in losers),
		)
	return best, bool(losers)


__all__ = [
	"TemplateRole",
	"TemplateMatch",
	"PhraseTemplate",
	"TEMPLATES",
	"CHAIN_ROLES",
	"BOUND_LIST_ROLES",
	"capability_head_name",
	"normalize_phrase",
	"match_line",
	"resolve",
]
