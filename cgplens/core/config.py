# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
	# Only diagnostics that mention a CGP construct may enter reconstruction.
	cgp_only: bool = False
	# Strip module paths from displayed type names (identities keep them).
	short_paths: bool = True
	# Show the source line and caret marker under each call site.
	show_snippets: bool = True


__all__ = ["EngineConfig"]
