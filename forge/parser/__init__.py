"""
forge.parser: reference lark front end producing `forge.ast` trees.
"""

from .parser import ForgeSyntaxError, ForgeToken, LexResult, ParseResult, parse, parse_program, tokenize

__all__ = [
	"ForgeSyntaxError",
	"ForgeToken",
	"LexResult",
	"ParseResult",
	"parse",
	"parse_program",
	"tokenize",
]
