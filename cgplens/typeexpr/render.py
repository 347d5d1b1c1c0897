# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Canonical printing and normalization of type expressions.

`render_type` is the inverse of `parse_type` up to whitespace and redundant
parentheses: rendering a parsed rendering reproduces it exactly, which is what
makes normalized identities and the translator idempotent.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from .ast import (
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
	map_type,
)
from .parser import try_parse_type

# Crates whose paths are library plumbing; their prefixes never disambiguate
# user types and rustc prints them inconsistently across notes.
LIBRARY_CRATES = frozenset({"cgp", "cgp_core", "cgp_component", "cgp_field"})


def _render_segment(seg: TySegment, short_paths: bool) -> str:
	out = seg.name
	if seg.args:
		out += "<" + ", ".join(render_type(a, short_paths=short_paths) for a in seg.args) + ">"
	if seg.paren is not None:
		out += "(" + ", ".join(render_type(p, short_paths=short_paths) for p in seg.paren) + ")"
		if seg.ret is not None:
			out += " -> " + render_type(seg.ret, short_paths=short_paths)
	return out


def render_type(ty: TyNode, *, short_paths: bool = False) -> str:
	"""Print a type expression in rustc's spacing (`A<B, C>`, `&'a mut T`)."""
	if isinstance(ty, TyAtom):
		return ty.text
	if isinstance(ty, TyPath):
		segments = ty.segments[-1:] if short_paths else ty.segments
		return "::".join(_render_segment(s, short_paths) for s in segments)
	if isinstance(ty, TyAssocBinding):
		return f"{ty.name} = {render_type(ty.value, short_paths=short_paths)}"
	if isinstance(ty, TyRef):
		inner = render_type(ty.inner, short_paths=short_paths)
		if isinstance(ty.inner, TyBounds) and len(ty.inner.bounds) > 1:
			inner = f"({inner})"
		prefix = "&"
		if ty.lifetime:
			prefix += ty.lifetime + " "
		if ty.mutable:
			prefix += "mut "
		return prefix + inner
	if isinstance(ty, TyPtr):
		return ("*mut " if ty.mutable else "*const ") + render_type(ty.inner, short_paths=short_paths)
	if isinstance(ty, TyTuple):
		items = [render_type(i, short_paths=short_paths) for i in ty.items]
		if len(items) == 1:
			return f"({items[0]},)"
		return "(" + ", ".join(items) + ")"
	if isinstance(ty, TyArray):
		inner = render_type(ty.inner, short_paths=short_paths)
		if ty.length is None:
			return f"[{inner}]"
		return f"[{inner}; {ty.length}]"
	if isinstance(ty, TyBounds):
		return ty.keyword + " " + " + ".join(render_type(b, short_paths=short_paths) for b in ty.bounds)
	if isinstance(ty, TyQualified):
		head = f"<{render_type(ty.self_ty, short_paths=short_paths)} as {render_type(ty.trait, short_paths=short_paths)}>"
		return head + "".join("::" + _render_segment(s, short_paths) for s in ty.assoc)
	if isinstance(ty, TyFn):
		out = ("unsafe " if ty.unsafe else "") + "fn("
		out += ", ".join(render_type(p, short_paths=short_paths) for p in ty.params) + ")"
		if ty.ret is not None:
			out += " -> " + render_type(ty.ret, short_paths=short_paths)
		return out
	raise TypeError(f"unknown type node {type(ty).__name__}")


def _strip_library_path(ty: TyNode) -> TyNode:
	if isinstance(ty, TyPath) and len(ty.segments) > 1 and ty.segments[0].name in LIBRARY_CRATES:
		return TyPath(segments=ty.segments[-1:])
	return ty


def strip_library_paths(ty: TyNode) -> TyNode:
	"""Shorten `cgp::prelude::HasField<..>` to `HasField<..>` everywhere inside `ty`."""
	return map_type(ty, _strip_library_path)


_WS = re.compile(r"\s+")
_SPACE_AFTER_OPEN = re.compile(r"([<(\[])\s+")
_SPACE_BEFORE_CLOSE = re.compile(r"\s+([>)\],])")
_COMMA = re.compile(r",(?=\S)")


def normalize_whitespace(text: str) -> str:
	"""Collapse whitespace runs and apply rustc's spacing around brackets and commas."""
	out = _WS.sub(" ", text.strip())
	out = _SPACE_AFTER_OPEN.sub(r"\1", out)
	out = _SPACE_BEFORE_CLOSE.sub(r"\1", out)
	return _COMMA.sub(", ", out)


def normalize_type_text(text: str) -> str:
	"""
	Canonical identity text for a type or trait reference.

	Parseable text is re-rendered (library paths shortened); anything else is
	whitespace-normalized so that spacing differences never split identities.
	"""
	ty = try_parse_type(text.strip())
	if ty is None:
		return normalize_whitespace(text)
	return render_type(strip_library_paths(ty))


def split_bound(text: str) -> Optional[Tuple[str, str]]:
	"""
	Split `Subject: Capability` at the first top-level `:` that is not part of `::`.

	Returns None when there is no such separator or either side is empty.
	"""
	depth = 0
	prev = ""
	for i, ch in enumerate(text):
		if ch in "<([{":
			depth += 1
		elif ch in ")]}" or (ch == ">" and prev != "-"):
			depth -= 1
		elif ch == ":" and depth == 0:
			nxt = text[i + 1] if i + 1 < len(text) else ""
			if nxt != ":" and prev != ":":
				subject = text[:i].strip()
				capability = text[i + 1 :].strip()
				if subject and capability:
					return subject, capability
				return None
		prev = ch
	return None


__all__ = [
	"LIBRARY_CRATES",
	"render_type",
	"strip_library_paths",
	"normalize_whitespace",
	"normalize_type_text",
	"split_bound",
]
