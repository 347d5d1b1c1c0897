# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from cgplens.core.errors import TypeSyntaxError
from cgplens.test_helpers import has_field
from cgplens.typeexpr import (
	AtomKind,
	TyAtom,
	TyPath,
	normalize_type_text,
	parse_type,
	render_type,
	split_bound,
	try_parse_type,
)
from cgplens.typeexpr.ast import TyArray, TyFn, TyQualified, TyRef, TyTuple


@pytest.mark.parametrize(
	"text",
	[
		"Foo<Bar, Baz>",
		"std::vec::Vec<u8>",
		"&'a mut T",
		"*const u8",
		"()",
		"(A,)",
		"(A, B)",
		"[u8; 4]",
		"[T]",
		"Box<dyn Send + Sync>",
		"Box<dyn Fn(u8) -> bool>",
		"<T as Iterator>::Item",
		"fn(u8) -> bool",
		"Option<_>",
		"{closure@src/main.rs:3:5}",
		"Iterator<Item = u8>",
		"Symbol<6, Chars<'h', Nil>>",
	],
)
def test_render_reproduces_canonical_text(text: str) -> None:
	assert render_type(parse_type(text)) == text


def test_parse_generic_path() -> None:
	ty = parse_type("cgp::prelude::IsProviderFor<AreaCalculatorComponent, Rectangle>")
	assert isinstance(ty, TyPath)
	assert ty.name == "IsProviderFor"
	assert [s.name for s in ty.segments] == ["cgp", "prelude", "IsProviderFor"]
	assert len(ty.args) == 2


def test_parse_shapes() -> None:
	assert isinstance(parse_type("&'a mut T"), TyRef)
	assert parse_type("&'a mut T").mutable is True
	assert isinstance(parse_type("(A, B)"), TyTuple)
	assert parse_type("[u8; 4]") == TyArray(inner=parse_type("u8"), length="4")
	assert isinstance(parse_type("fn(u8) -> bool"), TyFn)
	qualified = parse_type("<Rectangle as HasArea>::Area")
	assert isinstance(qualified, TyQualified)
	assert render_type(qualified.self_ty) == "Rectangle"


def test_char_and_infer_atoms() -> None:
	ty = parse_type("Chars<'_', Chars<_, ...>>")
	assert isinstance(ty, TyPath)
	head, tail = ty.args
	assert head == TyAtom(AtomKind.CHAR, "'_'")
	assert isinstance(tail, TyPath)
	assert tail.args[0] == TyAtom(AtomKind.INFER, "_")
	assert tail.args[1] == TyAtom(AtomKind.ELIDED, "...")


def test_parse_failure_raises_and_try_returns_none() -> None:
	with pytest.raises(TypeSyntaxError):
		parse_type("Foo<")
	assert try_parse_type("Foo<") is None


def test_normalize_collapses_whitespace() -> None:
	assert normalize_type_text("Foo< Bar ,Baz >") == "Foo<Bar, Baz>"
	assert normalize_type_text("Foo<\n    Bar,\n    Baz,\n>") == "Foo<Bar, Baz>"


def test_normalize_strips_library_paths_only() -> None:
	assert normalize_type_text("cgp::prelude::HasField<Symbol<1, Chars<'x', Nil>>>") == has_field("x")
	assert normalize_type_text("shapes::Rectangle") == "shapes::Rectangle"


def test_normalize_falls_back_for_unparseable_text() -> None:
	assert normalize_type_text("Foo <  Bar ,Baz  > @") == "Foo <Bar, Baz> @"


def test_short_paths_render_last_segment() -> None:
	assert render_type(parse_type("a::b::Foo<c::Bar>"), short_paths=True) == "Foo<Bar>"


def test_split_bound() -> None:
	assert split_bound(f"Rectangle: {has_field('a')}") == ("Rectangle", has_field("a"))
	assert split_bound("<T as a::B>::C: Tr") == ("<T as a::B>::C", "Tr")
	assert split_bound("F: Fn(u8) -> Vec<u8>") == ("F", "Fn(u8) -> Vec<u8>")
	assert split_bound("Foo") is None
	assert split_bound("a::B") is None
	assert split_bound(": Tr") is None


def test_overly_deep_symbol_is_a_syntax_error() -> None:
	text = has_field("a" * 400)
	with pytest.raises(TypeSyntaxError):
		parse_type(text)
	assert try_parse_type(text) is None
	assert normalize_type_text(text) == text
