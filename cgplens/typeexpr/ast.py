# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
AST for Rust type expressions extracted from diagnostic text.

Nodes are frozen dataclasses so parsed types can be cached, hashed, and
compared structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Callable, Iterator, Optional, Tuple


class AtomKind(Enum):
	CHAR = auto()
	INT = auto()
	STR = auto()
	LIFETIME = auto()
	NEVER = auto()
	INFER = auto()
	ELIDED = auto()  # rustc's `...` for long types
	OPAQUE = auto()  # `{closure@src/main.rs:1:2}`, `{integer}`, ...


@dataclass(frozen=True)
class TyNode:
	"""Base class for type-expression nodes."""


@dataclass(frozen=True)
class TyAtom(TyNode):
	kind: AtomKind
	text: str


@dataclass(frozen=True)
class TySegment:
	name: str
	args: Tuple[TyNode, ...] = ()
	# Parenthesized sugar: `Fn(A, B) -> C`.
	paren: Optional[Tuple[TyNode, ...]] = None
	ret: Optional[TyNode] = None


@dataclass(frozen=True)
class TyPath(TyNode):
	segments: Tuple[TySegment, ...]

	@property
	def name(self) -> str:
		return self.segments[-1].name

	@property
	def args(self) -> Tuple[TyNode, ...]:
		return self.segments[-1].args


@dataclass(frozen=True)
class TyAssocBinding(TyNode):
	name: str
	value: TyNode


@dataclass(frozen=True)
class TyRef(TyNode):
	inner: TyNode
	lifetime: Optional[str] = None
	mutable: bool = False


@dataclass(frozen=True)
class TyPtr(TyNode):
	inner: TyNode
	mutable: bool = False


@dataclass(frozen=True)
class TyTuple(TyNode):
	items: Tuple[TyNode, ...] = ()


@dataclass(frozen=True)
class TyArray(TyNode):
	inner: TyNode
	length: Optional[str] = None  # None for a slice


@dataclass(frozen=True)
class TyBounds(TyNode):
	keyword: str  # "dyn" | "impl"
	bounds: Tuple[TyNode, ...]


@dataclass(frozen=True)
class TyQualified(TyNode):
	self_ty: TyNode
	trait: TyPath
	assoc: Tuple[TySegment, ...]


@dataclass(frozen=True)
class TyFn(TyNode):
	params: Tuple[TyNode, ...] = ()
	ret: Optional[TyNode] = None
	unsafe: bool = False


def _map_segment(seg: TySegment, fn: Callable[[TyNode], TyNode]) -> TySegment:
	return replace(
		seg,
		args=tuple(map_type(a, fn) for a in seg.args),
		paren=tuple(map_type(p, fn) for p in seg.paren) if seg.paren is not None else None,
		ret=map_type(seg.ret, fn) if seg.ret is not None else None,
	)


def map_type(ty: TyNode, fn: Callable[[TyNode], TyNode]) -> TyNode:
	"""Rebuild `ty` bottom-up, applying `fn` to every node after its children."""
	if isinstance(ty, TyPath):
		out: TyNode = replace(ty, segments=tuple(_map_segment(s, fn) for s in ty.segments))
	elif isinstance(ty, TyAssocBinding):
		out = replace(ty, value=map_type(ty.value, fn))
	elif isinstance(ty, (TyRef, TyPtr, TyArray)):
		out = replace(ty, inner=map_type(ty.inner, fn))
	elif isinstance(ty, TyTuple):
		out = replace(ty, items=tuple(map_type(i, fn) for i in ty.items))
	elif isinstance(ty, TyBounds):
		out = replace(ty, bounds=tuple(map_type(b, fn) for b in ty.bounds))
	elif isinstance(ty, TyQualified):
		trait = map_type(ty.trait, fn)
		out = replace(
			ty,
			self_ty=map_type(ty.self_ty, fn),
			trait=trait if isinstance(trait, TyPath) else ty.trait,
			assoc=tuple(_map_segment(s, fn) for s in ty.assoc),
		)
	elif isinstance(ty, TyFn):
		out = replace(
			ty,
			params=tuple(map_type(p, fn) for p in ty.params),
			ret=map_type(ty.ret, fn) if ty.ret is not None else None,
		)
	else:
		out = ty
	return fn(out)


def iter_type(ty: TyNode) -> Iterator[TyNode]:
	"""Pre-order walk over every node of a type expression."""
	yield ty
	children: Tuple[TyNode, ...] = ()
	if isinstance(ty, TyPath):
		children = tuple(c for s in ty.segments for c in _segment_children(s))
	elif isinstance(ty, TyAssocBinding):
		children = (ty.value,)
	elif isinstance(ty, (TyRef, TyPtr, TyArray)):
		children = (ty.inner,)
	elif isinstance(ty, TyTuple):
		children = ty.items
	elif isinstance(ty, TyBounds):
		children = ty.bounds
	elif isinstance(ty, TyQualified):
		children = (ty.self_ty, ty.trait) + tuple(c for s in ty.assoc for c in _segment_children(s))
	elif isinstance(ty, TyFn):
		children = ty.params + ((ty.ret,) if ty.ret is not None else ())
	for child in children:
		yield from iter_type(child)


def _segment_children(seg: TySegment) -> Tuple[TyNode, ...]:
	out = seg.args
	if seg.paren is not None:
		out = out + seg.paren
	if seg.ret is not None:
		out = out + (seg.ret,)
	return out


__all__ = [
	"AtomKind",
	"TyNode",
	"TyAtom",
	"TySegment",
	"TyPath",
	"TyAssocBinding",
	"TyRef",
	"TyPtr",
	"TyTuple",
	"TyArray",
	"TyBounds",
	"TyQualified",
	"TyFn",
	"map_type",
	"iter_type",
]
