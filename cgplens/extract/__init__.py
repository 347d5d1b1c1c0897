"""
cgplens.extract: diagnostic text -> obligation triples.

Modules:
  - templates: the phrase template table (the only place rustc wording lives)
  - extractor: chain construction over one record's message and child notes
"""

from .extractor import CGP_MARKERS, Extraction, extract, mentions_cgp
from .templates import TEMPLATES, PhraseTemplate, TemplateMatch, TemplateRole, match_line, resolve

__all__ = [
	"CGP_MARKERS",
	"Extraction",
	"extract",
	"mentions_cgp",
	"TEMPLATES",
	"PhraseTemplate",
	"TemplateMatch",
	"TemplateRole",
	"match_line",
	"resolve",
]
