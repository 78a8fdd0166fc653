"""
forge.core: shared positions, diagnostics and wire shapes used across stages.

Modules:
  - span: Position/Range and offset helpers
  - diagnostics: Diagnostic record plus sort/dedupe/merge
  - wire: editor-facing JSON shapes
"""

__all__ = [
	"span",
	"diagnostics",
	"wire",
]
