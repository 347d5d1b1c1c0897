# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, VisitError

from cgplens.core.errors import TypeSyntaxError
from .ast import (
	AtomKind,
	TyArray,
	TyAssocBinding,
	TyAtom,
	TyBounds,
	TyFn,
	TyNode,
	TyPath,
	TyPtr,
	TyQualified,
	TyRef,
	TySegment,
	TyTuple,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()

# Earley rather than LALR: rustc keywords (`dyn`, `as`, `mut`, ...) are also
# valid identifier shapes, and the dynamic lexer lets the grammar decide.
_TYPE_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="earley",
	start="start",
	maybe_placeholders=False,
)


@dataclass(frozen=True)
class _ParenArgs:
	items: Tuple[TyNode, ...]


@dataclass(frozen=True)
class _FnReturn:
	ty: TyNode


class _TypeBuilder(Transformer):
	"""Turn the lark parse tree into `typeexpr.ast` nodes."""

	def path(self, items: List[TySegment]) -> TyPath:
		return TyPath(segments=tuple(items))

	def segment(self, items: list) -> TySegment:
		name = str(items[0])
		args: Tuple[TyNode, ...] = ()
		paren: Optional[Tuple[TyNode, ...]] = None
		ret: Optional[TyNode] = None
		for item in items[1:]:
			if isinstance(item, _ParenArgs):
				paren = item.items
			elif isinstance(item, _FnReturn):
				ret = item.ty
			else:
				args = tuple(item)
		return TySegment(name=name, args=args, paren=paren, ret=ret)

	def generic_args(self, items: List[TyNode]) -> Tuple[TyNode, ...]:
		return tuple(items)

	def paren_args(self, items: List[TyNode]) -> _ParenArgs:
		return _ParenArgs(items=tuple(items))

	def fn_ret(self, items: List[TyNode]) -> _FnReturn:
		return _FnReturn(ty=items[0])

	def lifetime(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.LIFETIME, text=str(items[0]))

	def char_lit(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.CHAR, text=str(items[0]))

	def int_lit(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.INT, text=str(items[0]))

	def str_lit(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.STR, text=str(items[0]))

	def never(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.NEVER, text="!")

	def infer(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.INFER, text="_")

	def elided(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.ELIDED, text="...")

	def opaque(self, items: List[Token]) -> TyAtom:
		return TyAtom(kind=AtomKind.OPAQUE, text=str(items[0]))

	def assoc_binding(self, items: list) -> TyAssocBinding:
		return TyAssocBinding(name=str(items[0]), value=items[1])

	def reference(self, items: list) -> TyRef:
		lifetime: Optional[str] = None
		mutable = False
		for item in items[:-1]:
			if isinstance(item, Token) and item.type == "LIFETIME":
				lifetime = str(item)
			elif isinstance(item, Token) and item.type == "MUT":
				mutable = True
		return TyRef(inner=items[-1], lifetime=lifetime, mutable=mutable)

	def pointer(self, items: list) -> TyPtr:
		return TyPtr(inner=items[-1], mutable=items[0].type == "MUT")

	def tuple(self, items: List[TyNode]) -> TyTuple:
		return TyTuple(items=tuple(items))

	def array(self, items: list) -> TyArray:
		return TyArray(inner=items[0], length=str(items[1]))

	def slice(self, items: List[TyNode]) -> TyArray:
		return TyArray(inner=items[0], length=None)

	def dyn_type(self, items: List[TyNode]) -> TyBounds:
		return TyBounds(keyword="dyn", bounds=tuple(items))

	def impl_type(self, items: List[TyNode]) -> TyBounds:
		return TyBounds(keyword="impl", bounds=tuple(items))

	def qualified(self, items: list) -> TyQualified:
		return TyQualified(self_ty=items[0], trait=items[1], assoc=tuple(items[2:]))

	def fn_pointer(self, items: list) -> TyFn:
		unsafe = False
		params: Tuple[TyNode, ...] = ()
		ret: Optional[TyNode] = None
		for item in items:
			if isinstance(item, Token) and item.type == "UNSAFE":
				unsafe = True
			elif isinstance(item, _ParenArgs):
				params = item.items
			elif isinstance(item, _FnReturn):
				ret = item.ty
		return TyFn(params=params, ret=ret, unsafe=unsafe)


def parse_type(text: str) -> TyNode:
	"""
	Parse a Rust type expression as printed by rustc.

	Raises TypeSyntaxError when the text is outside the grammar.
	"""
	try:
		tree = _TYPE_PARSER.parse(text)
		result = _TypeBuilder().transform(tree)
	except UnexpectedInput as err:
		raise TypeSyntaxError(f"cannot parse type expression {text!r}: {err}") from err
	except (RecursionError, VisitError) as err:
		# Long `Chars<..>` chains nest one level per character.
		if isinstance(err, VisitError) and not isinstance(err.orig_exc, RecursionError):
			raise
		raise TypeSyntaxError(f"type expression nests too deeply ({len(text)} chars)") from err
	if not isinstance(result, TyNode):
		raise TypeSyntaxError(f"unexpected parse result for {text!r}")
	return result


@lru_cache(maxsize=4096)
def try_parse_type(text: str) -> Optional[TyNode]:
	"""Non-raising, cached variant of `parse_type`; returns None on failure."""
	try:
		return parse_type(text)
	except TypeSyntaxError:
		return None


__all__ = ["parse_type", "try_parse_type"]
