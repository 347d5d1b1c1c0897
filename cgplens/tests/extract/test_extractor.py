# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from cgplens.core.config import EngineConfig
from cgplens.core.diagnostics import DiagnosticRecord
from cgplens.extract import extract, mentions_cgp
from cgplens.graph.obligations import ObligationKey, ObligationKind, Relation
from cgplens.test_helpers import child_json, diag_json, field_chain, has_field

CAN_USE = ObligationKey("Rectangle", "CanUseComponent<AreaCalculatorComponent>")
HEIGHT = ObligationKey("Rectangle", has_field("height"))


def _record(diag: dict) -> DiagnosticRecord:
	return DiagnosticRecord.from_json(diag)


def _edges(extraction) -> list:
	return [
		(t.subject.key, t.target.key)
		for t in extraction.triples
		if t.relation is Relation.DEPENDS_ON and t.target is not None
	]


def test_direct_field_chain() -> None:
	ex = extract(_record(field_chain("Rectangle", "height")))
	assert ex.recognized
	assert ex.is_cgp_pattern
	assert ex.anchor == CAN_USE
	assert _edges(ex) == [(CAN_USE, HEIGHT)]
	labels = [(t.subject.key, t.label) for t in ex.triples if t.relation is Relation.BOUND_IN]
	assert labels == [(CAN_USE, "CanUseRectangle")]
	leaf = ex.triples[0]
	assert leaf.relation is Relation.UNSATISFIED
	assert leaf.subject.kind is ObligationKind.FIELD_PRESENCE


def test_provider_chain_links_innermost_first() -> None:
	ex = extract(_record(field_chain("Rectangle", "height", ["RectangleArea", "ScaledArea<RectangleArea>"])))
	inner = ObligationKey("RectangleArea", "IsProviderFor<AreaCalculatorComponent, Rectangle>")
	outer = ObligationKey("ScaledArea<RectangleArea>", "IsProviderFor<AreaCalculatorComponent, Rectangle>")
	assert _edges(ex) == [(inner, HEIGHT), (outer, inner), (CAN_USE, outer)]
	assert ex.anchor == CAN_USE


def test_message_bound_off_chain_becomes_anchor() -> None:
	diag = diag_json(
		"the trait bound `ScaledArea<RectangleArea>: AreaCalculator<Rectangle>` is not satisfied",
		children=[
			child_json(f"the trait `{has_field('height')}` is not implemented for `Rectangle`", "help"),
			child_json(
				"required for `RectangleArea` to implement `IsProviderFor<AreaCalculatorComponent, Rectangle>`"
			),
		],
	)
	ex = extract(_record(diag))
	message_key = ObligationKey("ScaledArea<RectangleArea>", "AreaCalculator<Rectangle>")
	inner = ObligationKey("RectangleArea", "IsProviderFor<AreaCalculatorComponent, Rectangle>")
	assert ex.anchor == message_key
	assert (message_key, inner) in _edges(ex)
	assert ex.recognized


def test_other_field_impls_flag() -> None:
	ex = extract(_record(field_chain("Rectangle", "height", other_field_impls=True)))
	assert ex.has_other_field_impls
	assert not extract(_record(field_chain("Rectangle", "height"))).has_other_field_impls


def test_method_bound_list() -> None:
	diag = diag_json(
		"the method `area` exists for struct `Rectangle`, but its trait bounds were not satisfied",
		code="E0599",
		children=[
			child_json(
				"the following trait bounds were not satisfied:\n"
				f"`Rectangle: {has_field('width')}`\n"
				"which is required by `Rectangle: HasRectangleFields`"
			),
		],
	)
	ex = extract(_record(diag))
	method = ObligationKey("Rectangle", "method `area`")
	fields = ObligationKey("Rectangle", "HasRectangleFields")
	width = ObligationKey("Rectangle", has_field("width"))
	assert ex.anchor == method
	assert sorted(_edges(ex)) == sorted([(fields, width), (method, fields)])
	assert ex.recognized


def test_plain_error_is_not_recognized() -> None:
	ex = extract(_record(diag_json("mismatched types", code="E0308")))
	assert not ex.recognized
	assert ex.triples == ()
	assert ex.anchor is None


def test_single_non_cgp_bound_is_not_recognized() -> None:
	ex = extract(_record(diag_json("the trait bound `Foo: Display` is not satisfied")))
	assert ex.triples
	assert not ex.has_dependencies()
	assert not ex.recognized


def test_non_cgp_chain_respects_cgp_only() -> None:
	diag = diag_json(
		"the trait bound `Foo: Clone` is not satisfied",
		children=[child_json("required for `Vec<Foo>` to implement `Clone`")],
	)
	record = _record(diag)
	assert not mentions_cgp(record)
	assert extract(record).recognized
	assert not extract(record, EngineConfig(cgp_only=True)).recognized


def test_warnings_are_never_recognized() -> None:
	ex = extract(_record(field_chain("Rectangle", "height", level="warning")))
	assert ex.triples
	assert not ex.recognized


def test_extraction_is_pure() -> None:
	record = _record(field_chain("Rectangle", "height", ["RectangleArea"]))
	assert extract(record) == extract(record)
