# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
CGP pattern translator.

Two structural families are rewritten into readable text:

  - type-level strings: `Symbol<6, Chars<'h', Chars<'e', ...>>>` spells a
    field name one character per type parameter; it is shown as
    `Symbol!("height")`, the macro users write.
  - provider relations: "`P` does not implement `IsProviderFor<C, Ctx>`"
    becomes "provider `P` cannot supply component `C` for context `Ctx`".

Everything here is total and idempotent. Text that does not parse, or does
not have one of the known shapes, comes back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from cgplens.graph.obligations import ObligationKind, ObligationNode
from cgplens.typeexpr import (
	AtomKind,
	TyAtom,
	TyNode,
	TyPath,
	iter_type,
	map_type,
	render_type,
	strip_library_paths,
	try_parse_type,
)

HIDDEN_CHAR = "�"
SYMBOL = "Symbol"
CHAR_CHAIN = frozenset({"Chars", "Char"})
CHAIN_END = "Nil"
_HIDDEN_ATOMS = (AtomKind.INFER, AtomKind.ELIDED)
_INT_PREFIX = re.compile(r"\d+")


@dataclass(frozen=True)
class DecodedSymbol:
	text: str
	complete: bool
	# Declared length from `Symbol<N, ..>`; None for a bare character chain.
	length: Optional[int] = None


def _char_value(literal: str) -> str:
	body = literal[1:-1]
	if body.startswith("\\") and len(body) == 2:
		return {"n": "\n", "t": "\t", "0": "\0"}.get(body[1], body[1])
	return body


def _decode_chain(ty: TyNode) -> Optional[Tuple[str, bool]]:
	"""(decoded text, whether the chain ended in `Nil`) for a `Chars<..>` chain."""
	out: List[str] = []
	cur = ty
	while True:
		if isinstance(cur, TyPath) and cur.name in CHAR_CHAIN and len(cur.args) == 2:
			head, cur = cur.args
			if isinstance(head, TyAtom) and head.kind is AtomKind.CHAR:
				out.append(_char_value(head.text))
			elif isinstance(head, TyAtom) and head.kind in _HIDDEN_ATOMS:
				out.append(HIDDEN_CHAR)
			else:
				return None
			continue
		if isinstance(cur, TyPath) and cur.name == CHAIN_END and not cur.args:
			return "".join(out), True
		if isinstance(cur, TyAtom) and cur.kind in _HIDDEN_ATOMS:
			return "".join(out), False
		return None


def decode_symbol(ty: TyNode) -> Optional[DecodedSymbol]:
	"""Decode a type-level string, or None when `ty` is not one."""
	if not isinstance(ty, TyPath):
		return None
	if ty.name == SYMBOL and len(ty.args) == 2:
		size, chain = ty.args
		if not isinstance(size, TyAtom) or size.kind is not AtomKind.INT:
			return None
		m = _INT_PREFIX.match(size.text)
		if m is None:
			return None
		length = int(m.group(0))
		if isinstance(chain, TyPath) and chain.name == CHAIN_END and not chain.args:
			decoded: Optional[Tuple[str, bool]] = ("", True)
		else:
			decoded = _decode_chain(chain)
		if decoded is None:
			return None
		text, _ = decoded
		if len(text) < length:
			text += HIDDEN_CHAR * (length - len(text))
		return DecodedSymbol(text=text, complete=HIDDEN_CHAR not in text and len(text) == length, length=length)
	if ty.name in CHAR_CHAIN:
		decoded = _decode_chain(ty)
		if decoded is None:
			return None
		text, closed = decoded
		return DecodedSymbol(text=text, complete=closed and HIDDEN_CHAR not in text)
	return None


def symbol_display(symbol: DecodedSymbol) -> str:
	return f'Symbol!("{symbol.text}")'


def _outermost_symbols(ty: TyNode) -> Dict[TyNode, DecodedSymbol]:
	found: Dict[TyNode, DecodedSymbol] = {}
	covered: Set[TyNode] = set()
	for node in iter_type(ty):
		if node in covered or node in found:
			continue
		decoded = decode_symbol(node)
		if decoded is None:
			continue
		found[node] = decoded
		covered.update(n for n in iter_type(node) if n is not node)
	return {node: dec for node, dec in found.items() if node not in covered}


def translate_type(text: str, *, short_paths: bool = True) -> str:
	"""Readable rendering of one backticked type; unparseable text is returned unchanged."""
	ty = try_parse_type(text.strip())
	if ty is None:
		return text
	ty = strip_library_paths(ty)
	symbols = _outermost_symbols(ty)
	if symbols:
		ty = map_type(
			ty,
			lambda node: TyAtom(AtomKind.OPAQUE, symbol_display(symbols[node])) if node in symbols else node,
		)
	return render_type(ty, short_paths=short_paths)


_BACKTICKED = re.compile(r"`([^`\n]+)`")
_PROVIDER_SENTENCE = re.compile(r"`(?P<provider>[^`\n]+)` does not implement `(?P<capability>[^`\n]+)`")


def _provider_parts(capability: str) -> Optional[Tuple[TyNode, TyNode]]:
	ty = try_parse_type(capability.strip())
	if isinstance(ty, TyPath) and ty.name == "IsProviderFor" and len(ty.args) >= 2:
		return ty.args[0], ty.args[1]
	return None


def _show(ty: TyNode, short_paths: bool) -> str:
	return translate_type(render_type(ty), short_paths=short_paths)


def provider_sentence(provider: str, capability: str, *, short_paths: bool = True) -> Optional[str]:
	parts = _provider_parts(capability)
	if parts is None:
		return None
	component, context = parts
	return (
		f"provider `{translate_type(provider, short_paths=short_paths)}` cannot supply component "
		f"`{_show(component, short_paths)}` for context `{_show(context, short_paths)}`"
	)


def translate_text(text: str, *, short_paths: bool = True) -> str:
	"""Apply provider rewrites, then translate every backticked type."""

	def provider(m: "re.Match[str]") -> str:
		out = provider_sentence(m.group("provider"), m.group("capability"), short_paths=short_paths)
		return out if out is not None else m.group(0)

	out = _PROVIDER_SENTENCE.sub(provider, text)
	return _BACKTICKED.sub(lambda m: "`" + translate_type(m.group(1), short_paths=short_paths) + "`", out)


def _capability(node: ObligationNode) -> Optional[TyPath]:
	ty = try_parse_type(node.key.capability)
	return ty if isinstance(ty, TyPath) else None


def field_symbol(node: ObligationNode) -> Optional[DecodedSymbol]:
	"""The field a `HasField<..>` obligation asks for, when its tag decodes."""
	cap = _capability(node)
	if cap is None or cap.name != "HasField" or not cap.args:
		return None
	return decode_symbol(cap.args[0])


def _is_method(node: ObligationNode) -> bool:
	return node.key.capability.startswith("method `")


def describe(node: ObligationNode, *, short_paths: bool = True) -> str:
	"""One breadcrumb label for a trace step."""
	subject = translate_type(node.key.subject, short_paths=short_paths)
	symbol = field_symbol(node)
	if symbol is not None:
		return f"field `{symbol.text}` on `{subject}`"
	cap = _capability(node)
	if cap is not None and cap.name == "IsProviderFor" and len(cap.args) >= 2:
		return f"provider `{subject}` for `{_show(cap.args[0], short_paths)}`"
	if cap is not None and cap.name == "CanUseComponent" and cap.args:
		return f"`{subject}` using `{_show(cap.args[0], short_paths)}`"
	if _is_method(node):
		return f"{node.key.capability} on `{subject}`"
	if node.kind is ObligationKind.ASSOC_TYPE_EQ:
		return translate_text(f"`{node.key.capability}`", short_paths=short_paths)
	return f"`{subject}: {translate_type(node.key.capability, short_paths=short_paths)}`"


def root_statement(node: ObligationNode, *, short_paths: bool = True) -> str:
	"""Headline for a root cause block."""
	subject = translate_type(node.key.subject, short_paths=short_paths)
	symbol = field_symbol(node)
	if symbol is not None:
		suffix = "" if symbol.complete else " (possibly incomplete)"
		return f"missing field `{symbol.text}`{suffix} in context `{subject}`"
	sentence = provider_sentence(node.key.subject, node.key.capability, short_paths=short_paths)
	if sentence is not None:
		return sentence
	cap = _capability(node)
	if cap is not None and cap.name == "CanUseComponent" and cap.args:
		return f"context `{subject}` cannot use component `{_show(cap.args[0], short_paths)}`"
	if _is_method(node):
		return f"the {node.key.capability} exists for `{subject}`, but its trait bounds were not satisfied"
	if node.kind is ObligationKind.ASSOC_TYPE_EQ:
		return translate_text(f"type mismatch resolving `{node.key.capability}`", short_paths=short_paths)
	return f"the trait bound `{subject}: {translate_type(node.key.capability, short_paths=short_paths)}` is not satisfied"


def field_help(node: ObligationNode, has_other_field_impls: bool, *, short_paths: bool = True) -> List[str]:
	"""
	Fix suggestions for a missing-field root.

	When rustc listed other `HasField` impls for the context, the derive is
	present and only the field is missing; otherwise either could be.
	"""
	symbol = field_symbol(node)
	if symbol is None:
		return []
	subject = translate_type(node.key.subject, short_paths=short_paths)
	lines: List[str] = []
	if not symbol.complete:
		lines.append(f"note: some characters in the field name are hidden by the compiler and shown as '{HIDDEN_CHAR}'")
	if has_other_field_impls:
		lines.append(f"help: add a field `{symbol.text}` to the `{subject}` struct")
	else:
		lines.append(
			f"help: the struct `{subject}` is either missing the field `{symbol.text}` "
			"or is missing `#[derive(HasField)]`"
		)
	return lines


__all__ = [
	"HIDDEN_CHAR",
	"DecodedSymbol",
	"decode_symbol",
	"symbol_display",
	"translate_type",
	"provider_sentence",
	"translate_text",
	"field_symbol",
	"describe",
	"root_statement",
	"field_help",
]
