# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Rust type expressions as they appear inside diagnostic backticks.

  - grammar.lark / parser: lark Earley parser -> `ast` nodes
  - render: canonical printer, identity normalization, bound splitting
"""

from .ast import AtomKind, TyAtom, TyNode, TyPath, TySegment, iter_type, map_type
from .parser import parse_type, try_parse_type
from .render import normalize_type_text, normalize_whitespace, render_type, split_bound, strip_library_paths

__all__ = [
	"AtomKind",
	"TyAtom",
	"TyNode",
	"TyPath",
	"TySegment",
	"iter_type",
	"map_type",
	"parse_type",
	"try_parse_type",
	"normalize_type_text",
	"normalize_whitespace",
	"render_type",
	"split_bound",
	"strip_library_paths",
]
