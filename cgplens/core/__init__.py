"""
cgplens.core: shared record/span/error/config types used across stages.

Modules:
  - span: DiagnosticSpan (one source range as reported by rustc)
  - diagnostics: DiagnosticRecord + Level (one parsed compiler diagnostic)
  - errors: ReconstructionError and friends
  - config: EngineConfig
"""

__all__ = [
	"span",
	"diagnostics",
	"errors",
	"config",
]
