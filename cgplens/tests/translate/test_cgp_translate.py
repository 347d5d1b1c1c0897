# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cgplens.graph.obligations import ObligationKey, ObligationKind, ObligationNode
from cgplens.test_helpers import has_field, symbol_type
from cgplens.translate import (
	HIDDEN_CHAR,
	decode_symbol,
	describe,
	field_help,
	root_statement,
	translate_text,
	translate_type,
)
from cgplens.typeexpr import parse_type


def _node(subject: str, capability: str, kind: ObligationKind = ObligationKind.TRAIT_BOUND) -> ObligationNode:
	return ObligationNode(index=0, key=ObligationKey(subject, capability), kind=kind)


def test_decode_complete_symbol() -> None:
	decoded = decode_symbol(parse_type(symbol_type("height")))
	assert decoded is not None
	assert decoded.text == "height"
	assert decoded.complete
	assert decoded.length == 6


def test_quoted_underscore_is_a_literal_character() -> None:
	decoded = decode_symbol(parse_type(symbol_type("scale_factor")))
	assert decoded is not None
	assert decoded.text == "scale_factor"
	assert decoded.complete


def test_elided_tail_is_padded_with_hidden_chars() -> None:
	decoded = decode_symbol(parse_type("Symbol<6, Chars<'h', Chars<'e', ...>>>"))
	assert decoded is not None
	assert decoded.text == "he" + HIDDEN_CHAR * 4
	assert not decoded.complete


def test_hidden_middle_character() -> None:
	decoded = decode_symbol(parse_type("Symbol<3, Chars<'a', Chars<_, Chars<'c', Nil>>>>"))
	assert decoded is not None
	assert decoded.text == "a" + HIDDEN_CHAR + "c"
	assert not decoded.complete


def test_bare_char_chain() -> None:
	decoded = decode_symbol(parse_type("Chars<'x', Nil>"))
	assert decoded is not None
	assert decoded.text == "x"
	assert decoded.complete
	assert decoded.length is None


def test_non_symbols_do_not_decode() -> None:
	assert decode_symbol(parse_type("Vec<u8>")) is None
	assert decode_symbol(parse_type("Symbol<N, Chars<'x', Nil>>")) is None


def test_translate_type_rewrites_symbols_and_library_paths() -> None:
	assert translate_type(f"UseField<{symbol_type('height')}>") == 'UseField<Symbol!("height")>'
	assert (
		translate_type("cgp::prelude::IsProviderFor<shapes::AreaCalculatorComponent, shapes::Rectangle>")
		== "IsProviderFor<AreaCalculatorComponent, Rectangle>"
	)
	assert (
		translate_type("IsProviderFor<shapes::AreaCalculatorComponent, shapes::Rectangle>", short_paths=False)
		== "IsProviderFor<shapes::AreaCalculatorComponent, shapes::Rectangle>"
	)


def test_unparseable_text_is_returned_unchanged() -> None:
	assert translate_type("not a type <") == "not a type <"


def test_provider_sentence() -> None:
	text = "`RectangleArea` does not implement `IsProviderFor<AreaCalculatorComponent, Rectangle>`"
	assert translate_text(text) == (
		"provider `RectangleArea` cannot supply component `AreaCalculatorComponent` for context `Rectangle`"
	)


@pytest.mark.parametrize(
	"text",
	[
		f"the trait `{has_field('height')}` is not implemented for `Rectangle`",
		"`ScaledArea<RectangleArea>` does not implement `IsProviderFor<AreaCalculatorComponent, Rectangle>`",
		f"`{symbol_type('a_b')}` and `Chars<'x', ...>`",
		"no backticks at all",
		"`weird < text` stays",
	],
)
def test_translation_is_idempotent(text: str) -> None:
	once = translate_text(text)
	assert translate_text(once) == once


def test_root_statements() -> None:
	field = _node("Rectangle", has_field("height"), ObligationKind.FIELD_PRESENCE)
	assert root_statement(field) == "missing field `height` in context `Rectangle`"
	provider = _node("RectangleArea", "IsProviderFor<AreaCalculatorComponent, Rectangle>")
	assert root_statement(provider) == (
		"provider `RectangleArea` cannot supply component `AreaCalculatorComponent` for context `Rectangle`"
	)
	consumer = _node("Rectangle", "CanUseComponent<AreaCalculatorComponent>")
	assert root_statement(consumer) == "context `Rectangle` cannot use component `AreaCalculatorComponent`"
	method = _node("Rectangle", "method `area`", ObligationKind.UNSATISFIED)
	assert root_statement(method) == (
		"the method `area` exists for `Rectangle`, but its trait bounds were not satisfied"
	)
	assert root_statement(_node("Foo", "Clone")) == "the trait bound `Foo: Clone` is not satisfied"


def test_incomplete_field_is_flagged() -> None:
	field = _node("Rectangle", "HasField<Symbol<6, Chars<'h', ...>>>", ObligationKind.FIELD_PRESENCE)
	statement = root_statement(field)
	assert statement == f"missing field `h{HIDDEN_CHAR * 5}` (possibly incomplete) in context `Rectangle`"
	help_lines = field_help(field, False)
	assert help_lines[0].startswith("note: some characters in the field name are hidden")


def test_breadcrumbs() -> None:
	assert describe(_node("Rectangle", has_field("height"))) == "field `height` on `Rectangle`"
	assert (
		describe(_node("ScaledArea<RectangleArea>", "IsProviderFor<AreaCalculatorComponent, Rectangle>"))
		== "provider `ScaledArea<RectangleArea>` for `AreaCalculatorComponent`"
	)
	assert (
		describe(_node("Rectangle", "CanUseComponent<AreaCalculatorComponent>"))
		== "`Rectangle` using `AreaCalculatorComponent`"
	)
	assert describe(_node("Rectangle", "HasRectangleFields")) == "`Rectangle: HasRectangleFields`"


def test_field_help_depends_on_other_impls() -> None:
	field = _node("Rectangle", has_field("height"), ObligationKind.FIELD_PRESENCE)
	assert field_help(field, True) == ["help: add a field `height` to the `Rectangle` struct"]
	assert field_help(field, False) == [
		"help: the struct `Rectangle` is either missing the field `height` or is missing `#[derive(HasField)]`"
	]
	assert field_help(_node("Foo", "Clone"), False) == []
