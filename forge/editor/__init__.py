"""
forge.editor: completion, hover and outline answers for an editor front end.
"""

from .completion import CompletionItem, CompletionRequest, get_completions
from .hover import HoverRequest, HoverResult, get_hover
from .symbols import DocumentSymbol, get_document_symbols

__all__ = [
	"CompletionItem",
	"CompletionRequest",
	"DocumentSymbol",
	"HoverRequest",
	"HoverResult",
	"get_completions",
	"get_document_symbols",
	"get_hover",
]
