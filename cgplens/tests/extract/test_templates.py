# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import re

from cgplens.extract.templates import PhraseTemplate, TemplateRole, match_line, resolve
from cgplens.graph.obligations import ObligationKey, ObligationKind
from cgplens.test_helpers import has_field

UNSAT = (TemplateRole.UNSATISFIED,)


def test_trait_bound_message() -> None:
	matches = match_line(
		"the trait bound `Rectangle: CanUseComponent<AreaCalculatorComponent>` is not satisfied",
		UNSAT,
	)
	assert [m.template.name for m in matches] == ["trait_bound_not_satisfied"]
	ob = matches[0].obligation
	assert ob is not None
	assert ob.key == ObligationKey("Rectangle", "CanUseComponent<AreaCalculatorComponent>")
	assert ob.kind is ObligationKind.TRAIT_BOUND


def test_field_restatement_prefers_field_template() -> None:
	line = f"the trait `cgp::prelude::{has_field('height')}` is not implemented for `Rectangle`"
	best, ambiguous = resolve(match_line(line, UNSAT))
	assert best is not None
	assert best.template.name == "field_not_implemented"
	assert best.obligation is not None
	assert best.obligation.kind is ObligationKind.FIELD_PRESENCE
	assert best.obligation.key == ObligationKey("Rectangle", has_field("height"))
	# The generic template names the same key; a kind refinement is not an ambiguity.
	assert ambiguous is False


def test_matching_ignores_case_and_whitespace() -> None:
	matches = match_line(
		"Required   for `RectangleArea`  to implement\t`IsProviderFor<AreaCalculatorComponent,  Rectangle>`",
		(TemplateRole.REQUIRED_FOR,),
	)
	assert matches
	ob = matches[0].obligation
	assert ob is not None
	assert ob.key == ObligationKey("RectangleArea", "IsProviderFor<AreaCalculatorComponent, Rectangle>")


def test_bound_label() -> None:
	matches = match_line("required by a bound in `CanUseRectangle`", (TemplateRole.BOUND_IN,))
	assert matches[0].label == "CanUseRectangle"
	assert matches[0].obligation is None


def test_assoc_type_mismatch() -> None:
	matches = match_line("type mismatch resolving `<Rectangle as HasArea>::Area == u64`", UNSAT)
	ob = matches[0].obligation
	assert ob is not None
	assert ob.kind is ObligationKind.ASSOC_TYPE_EQ
	assert ob.key == ObligationKey("Rectangle", "<Rectangle as HasArea>::Area == u64")


def test_method_bounds() -> None:
	matches = match_line(
		"the method `area` exists for struct `Rectangle`, but its trait bounds were not satisfied",
		UNSAT,
	)
	ob = matches[0].obligation
	assert ob is not None
	assert ob.key == ObligationKey("Rectangle", "method `area`")


def test_other_impls_has_label_only() -> None:
	matches = match_line(f"but trait `{has_field('width')}` is implemented for it", (TemplateRole.OTHER_IMPLS,))
	assert matches[0].obligation is None
	assert matches[0].label == has_field("width")


def test_unsplittable_bound_does_not_match() -> None:
	assert match_line("the trait bound `Rectangle` is not satisfied", UNSAT) == []


def test_unrelated_prose_does_not_match() -> None:
	assert match_line("consider borrowing here", UNSAT) == []
	assert match_line("", UNSAT) == []


def test_most_specific_wins_and_conflict_is_reported() -> None:
	forward = PhraseTemplate(
		name="forward",
		role=TemplateRole.UNSATISFIED,
		pattern=re.compile(r"^`(?P<subject>[^`]+)` needs `(?P<capability>[^`]+)`"),
		specificity=2,
	)
	backward = PhraseTemplate(
		name="backward",
		role=TemplateRole.UNSATISFIED,
		pattern=re.compile(r"^`(?P<capability>[^`]+)` needs `(?P<subject>[^`]+)`"),
		specificity=1,
	)
	matches = match_line("`A` needs `B`", UNSAT, templates=(backward, forward))
	best, ambiguous = resolve(matches)
	assert best is not None
	assert best.template.name == "forward"
	assert best.obligation is not None
	assert best.obligation.key == ObligationKey("A", "B")
	assert ambiguous is True
