# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Reference front end: lark-based tokenizer and parser for Forge source.

The grammar (`grammar.lark`) is LALR with a basic lexer. A post-lexer pass
resolves the handful of context-dependent tokens the grammar cannot:

- statement terminators (newline/semicolon) outside parens and object
  literals,
- `{` opening a block vs. an object literal,
- `(` / `name` opening an arrow function parameter list,
- `x` used as the multiplication operator,
- keywords used as property names (`inp.var`, `Sys.exec.async`).

Neither entry point raises on bad input: lexing and parsing failures are
returned as diagnostics (`LEX_ERROR` / `PARSE_ERROR`).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from lark import Lark, Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken

from forge import ast as A
from forge.core.diagnostics import Diagnostic, from_lexer_errors, from_parser_errors
from forge.core.span import Position, Range, position_at

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

KEYWORDS = frozenset(
	{
		"DISABLE",
		"ABLE",
		"LET",
		"VAR",
		"CONST",
		"IF",
		"ELIF",
		"ELSE",
		"FOR",
		"FOREACH",
		"IN",
		"WHILE",
		"DO",
		"BREAK",
		"CONTINUE",
		"TRY",
		"CATCH",
		"FINALLY",
		"THROW",
		"RETURN",
		"FUNC",
		"ASYNC",
		"AWAIT",
		"TRUE",
		"FALSE",
		"NULL",
	}
)

_OPERAND_END = frozenset({"NAME", "NUMBER", "DURATION", "STRING", "TRUE", "FALSE", "NULL", "RPAR", "RSQB", "RBRACE"})
_OPERAND_START = frozenset({"NAME", "NUMBER", "DURATION", "STRING", "TRUE", "FALSE", "NULL", "LPAR", "LSQB"})


def _retype(tok: Token, ttype: str) -> Token:
	return Token.new_borrow_pos(ttype, tok.value, tok)


class TokenClassifier:
	"""
	Retype tokens whose meaning depends on their neighbours.

	Works on the fully materialized token list (the basic lexer does not need
	parser feedback), so arbitrary lookahead is available.
	"""

	def process(self, stream):
		tokens = list(stream)
		for i, tok in enumerate(tokens):
			yield self._classify(tokens, i, tok)

	def _classify(self, tokens: List[Token], i: int, tok: Token) -> Token:
		ttype = tok.type
		prev = tokens[i - 1] if i > 0 else None
		nxt = self._next_significant(tokens, i)
		if ttype in KEYWORDS:
			if prev is not None and prev.type in ("DOT", "BACKSLASH"):
				return _retype(tok, "NAME")
			if nxt is not None and nxt.type == "COLON":
				return _retype(tok, "NAME")
			return tok
		if ttype == "NAME":
			if nxt is not None and nxt.type == "ARROW":
				return _retype(tok, "ARROW_NAME")
			if tok.value == "x" and self._is_infix_position(tokens, i):
				return _retype(tok, "MUL_X")
			return tok
		if ttype == "LPAR" and self._opens_arrow_params(tokens, i):
			return _retype(tok, "ARROW_LPAR")
		return tok

	@staticmethod
	def _next_significant(tokens: List[Token], i: int) -> Optional[Token]:
		for j in range(i + 1, len(tokens)):
			if tokens[j].type != "NEWLINE":
				return tokens[j]
		return None

	@staticmethod
	def _is_infix_position(tokens: List[Token], i: int) -> bool:
		if i == 0 or i + 1 >= len(tokens):
			return False
		prev = tokens[i - 1]
		nxt = tokens[i + 1]
		if prev.type in ("DOT", "BACKSLASH"):
			return False
		return prev.type in _OPERAND_END and nxt.type in _OPERAND_START

	def _opens_arrow_params(self, tokens: List[Token], i: int) -> bool:
		depth = 0
		for j in range(i, len(tokens)):
			ttype = tokens[j].type
			if ttype in ("LPAR", "ARROW_LPAR"):
				depth += 1
			elif ttype == "RPAR":
				depth -= 1
				if depth == 0:
					nxt = self._next_significant(tokens, j)
					return nxt is not None and nxt.type == "ARROW"
		return False


class TerminatorInserter:
	"""
	Turn newlines/semicolons into `_TERM` and classify `{`.

	Newlines only terminate a statement when the previous token can end one
	and we are not nested inside parens, brackets or an object literal. A
	pending newline terminator is dropped when the next token continues the
	statement (`elif`, `else`, `catch`, `finally`, a leading `.`, or the
	`while` closing a `do` block).
	"""

	always_accept = ("NEWLINE", "SEMI")

	TERMINABLE = {
		"NAME",
		"NUMBER",
		"DURATION",
		"STRING",
		"TRUE",
		"FALSE",
		"NULL",
		"RPAR",
		"RSQB",
		"RBRACE",
		"RETURN",
		"BREAK",
		"CONTINUE",
		"QISBOOL",
		"NOTISBOOL",
	}

	CONTINUATION = {"ELIF", "ELSE", "CATCH", "FINALLY", "DOT"}

	BLOCK_AFTER = {"ELSE", "DO", "TRY", "FINALLY", "CATCH", "ARROW", "RPAR", "_TERM", "BLOCK_LBRACE"}

	HEADERS = {"IF", "ELIF", "WHILE", "FOR", "FOREACH", "FUNC", "CATCH"}

	def __init__(self) -> None:
		self._reset()

	def _reset(self) -> None:
		self.stack: List[str] = []
		self.last: Optional[str] = None
		self.last_closed: Optional[str] = None
		self.header_depth: Optional[int] = None
		self.next_block_is_do = False

	def process(self, stream):
		self._reset()
		pending: Optional[Token] = None
		for token in stream:
			ttype = token.type
			if ttype == "NEWLINE":
				if pending is None and self._should_emit_terminator():
					pending = token
				continue
			if ttype == "SEMI":
				pending = None
				yield self._terminator(token)
				continue
			if pending is not None:
				if not self._continues(ttype):
					yield self._terminator(pending)
				pending = None
			if ttype == "LBRACE":
				token = self._classify_brace(token)
			yield token
			self._update(token)
		if pending is not None:
			yield self._terminator(pending)

	def _terminator(self, token: Token) -> Token:
		self.last = "_TERM"
		self.last_closed = None
		if self.header_depth is not None and len(self.stack) <= self.header_depth:
			self.header_depth = None
		return Token.new_borrow_pos("_TERM", token.value, token)

	def _should_emit_terminator(self) -> bool:
		if self.stack and self.stack[-1] not in ("block", "do"):
			return False
		return self.last in self.TERMINABLE

	def _continues(self, ttype: str) -> bool:
		if ttype in self.CONTINUATION:
			return True
		return ttype == "WHILE" and self.last == "RBRACE" and self.last_closed == "do"

	def _classify_brace(self, token: Token) -> Token:
		is_block = self.last is None or self.last in self.BLOCK_AFTER
		if not is_block and self.header_depth is not None and self.header_depth == len(self.stack):
			is_block = True
		if is_block:
			self.header_depth = None
			return _retype(token, "BLOCK_LBRACE")
		return token

	def _update(self, token: Token) -> None:
		ttype = token.type
		closed: Optional[str] = None
		if ttype in ("LPAR", "ARROW_LPAR"):
			self.stack.append("paren")
		elif ttype == "LSQB":
			self.stack.append("bracket")
		elif ttype == "LBRACE":
			self.stack.append("object")
		elif ttype == "BLOCK_LBRACE":
			self.stack.append("do" if self.next_block_is_do else "block")
			self.next_block_is_do = False
		elif ttype in ("RPAR", "RSQB", "RBRACE") and self.stack:
			closed = self.stack.pop()
		if ttype == "DO":
			self.next_block_is_do = True
		if ttype in self.HEADERS and not (ttype == "WHILE" and self.last_closed == "do"):
			self.header_depth = len(self.stack)
		self.last = ttype
		self.last_closed = closed


class ForgePostLex:
	"""Combined post-lexer: contextual retyping, then terminator insertion."""

	# Lark drops terminals the grammar never references unless the post-lexer
	# asks to keep them.
	always_accept = TerminatorInserter.always_accept

	def __init__(self) -> None:
		self._classifier = TokenClassifier()
		self._terminators = TerminatorInserter()

	def process(self, stream):
		return self._terminators.process(self._classifier.process(stream))


@lru_cache(maxsize=None)
def _lark(start: str) -> Lark:
	return Lark(
		_GRAMMAR_PATH.read_text(encoding="utf-8"),
		parser="lalr",
		lexer="basic",
		start=start,
		propagate_positions=True,
		maybe_placeholders=False,
		postlex=ForgePostLex(),
	)


# ---------------------------------------------------------------------------
# Public results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ForgeToken:
	kind: str
	value: str
	range: Range


@dataclass
class LexResult:
	tokens: List[ForgeToken] = field(default_factory=list)
	diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass
class ParseResult:
	program: Optional[A.Program] = None
	diagnostics: List[Diagnostic] = field(default_factory=list)


class ForgeSyntaxError(ValueError):
	"""User-facing syntax error raised by the tree builder (carries a range)."""

	def __init__(self, message: str, rng: Range) -> None:
		super().__init__(message)
		self.range = rng


def tokenize(source: str) -> LexResult:
	"""Lex `source` into significant tokens (terminators included)."""
	result = LexResult()
	try:
		for tok in _lark("program").lex(source):
			result.tokens.append(ForgeToken(kind=tok.type, value=str(tok.value), range=_token_range(tok, source)))
	except UnexpectedCharacters as exc:
		result.diagnostics.extend(from_lexer_errors([_lex_error(exc, source)]))
	return result


def parse(source: str) -> ParseResult:
	"""Parse `source` into a Program; failures become diagnostics and `program=None`."""
	try:
		tree = _lark("program").parse(source)
	except UnexpectedCharacters as exc:
		return ParseResult(None, from_lexer_errors([_lex_error(exc, source)]))
	except UnexpectedInput as exc:
		return ParseResult(None, from_parser_errors([_parse_error(exc, source)]))
	try:
		program = _TreeBuilder(source).program(tree)
	except ForgeSyntaxError as exc:
		return ParseResult(None, from_parser_errors([(str(exc), exc.range)]))
	return ParseResult(program, [])


def parse_program(source: str) -> A.Program:
	"""Parse or raise ForgeSyntaxError (convenience for tests and tooling)."""
	result = parse(source)
	if result.program is None:
		first = result.diagnostics[0]
		raise ForgeSyntaxError(first.message, first.range)
	return result.program


# ---------------------------------------------------------------------------
# Error conversion
# ---------------------------------------------------------------------------

_DISPLAY = {
	"_TERM": "end of statement",
	"BLOCK_LBRACE": "'{'",
	"ARROW_LPAR": "'('",
	"ARROW_NAME": "identifier",
	"MUL_X": "'x'",
	"NAME": "identifier",
	"STRING": "string",
	"NUMBER": "number",
	"DURATION": "duration",
	"$END": "end of input",
}


_KEYWORD_TEXT = {"FOREACH": "forEach", "TRUE": "True", "FALSE": "False"}


def _describe_terminal(name: str) -> str:
	if name in _DISPLAY:
		return _DISPLAY[name]
	if name in KEYWORDS:
		return "'" + _KEYWORD_TEXT.get(name, name.lower()) + "'"
	return name.lower()


def _lex_error(exc: UnexpectedCharacters, source: str) -> Tuple[str, Range]:
	offset = exc.pos_in_stream or 0
	char = source[offset] if offset < len(source) else ""
	rng = Range(position_at(source, offset), position_at(source, offset + 1))
	return f"Unexpected character {char!r}.", rng


def _parse_error(exc: UnexpectedInput, source: str) -> Tuple[str, Range]:
	expected = sorted(getattr(exc, "expected", None) or getattr(exc, "accepts", None) or [])
	want = ", ".join(_describe_terminal(e) for e in expected[:6])
	suffix = f" Expected: {want}." if want else ""
	if isinstance(exc, UnexpectedToken) and exc.token.type != "$END":
		tok = exc.token
		start = tok.start_pos if tok.start_pos is not None else len(source)
		end = tok.end_pos if tok.end_pos is not None else start
		value = str(tok.value)
		what = "end of statement" if tok.type == "_TERM" else repr(value)
		return f"Unexpected {what}.{suffix}", Range(position_at(source, start), position_at(source, end))
	if isinstance(exc, (UnexpectedEOF, UnexpectedToken)):
		end = position_at(source, len(source))
		return f"Unexpected end of input.{suffix}", Range(end, end)
	offset = getattr(exc, "pos_in_stream", None) or 0
	return f"Syntax error.{suffix}", Range(position_at(source, offset), position_at(source, offset))


def _token_range(tok: Token, source: str) -> Range:
	start = tok.start_pos or 0
	end = tok.end_pos if tok.end_pos is not None else start
	return Range(position_at(source, start), position_at(source, end))


# ---------------------------------------------------------------------------
# Tree -> AST
# ---------------------------------------------------------------------------

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "'": "'", '"': '"', "\\": "\\", "0": "\0"}

_DURATION_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)(ms|s|m|h)$")


def _name(node: Tree) -> str:
	return str(node.data)


def _trees(node: Tree) -> List[Tree]:
	return [c for c in node.children if isinstance(c, Tree)]


def _tokens(node: Tree, *types: str) -> List[Token]:
	return [c for c in node.children if isinstance(c, Token) and (not types or c.type in types)]


def _token(node: Tree, *types: str) -> Optional[Token]:
	found = _tokens(node, *types)
	return found[0] if found else None


def decode_string(raw: str) -> str:
	"""Decode the body of a string literal (quotes already stripped)."""
	out: List[str] = []
	i = 0
	while i < len(raw):
		ch = raw[i]
		if ch == "\\" and i + 1 < len(raw):
			nxt = raw[i + 1]
			out.append(_ESCAPES.get(nxt, nxt))
			i += 2
			continue
		out.append(ch)
		i += 1
	return "".join(out)


def _find_hole_end(raw: str, start: int) -> int:
	"""Index of the `}` closing the hole opened at `raw[start]`, or -1."""
	depth = 0
	quote: Optional[str] = None
	i = start
	while i < len(raw):
		ch = raw[i]
		if quote is not None:
			if ch == "\\":
				i += 2
				continue
			if ch == quote:
				quote = None
		elif ch in ("'", '"'):
			quote = ch
		elif ch == "{":
			depth += 1
		elif ch == "}":
			depth -= 1
			if depth == 0:
				return i
		i += 1
	return -1


class _TreeBuilder:
	"""
	Build `forge.ast` nodes from a lark tree.

	`base` shifts every position; it is set when building an expression that
	was parsed out of a template hole, so node ranges point into the
	enclosing document.
	"""

	def __init__(self, source: str, base: Optional[Position] = None) -> None:
		self.source = source
		self.base = base

	# -- positions ----------------------------------------------------------

	def _pos(self, line: int, column: int, offset: int) -> Position:
		line0 = max(0, line - 1)
		col0 = max(0, column - 1)
		if self.base is not None:
			if line0 == 0:
				col0 += self.base.column
			line0 += self.base.line
			offset += self.base.offset
		return Position(offset=offset, line=line0, column=col0)

	def loc(self, node: Tree) -> Range:
		meta = node.meta
		if getattr(meta, "empty", True):
			return Range()
		return Range(
			self._pos(meta.line, meta.column, meta.start_pos),
			self._pos(meta.end_line, meta.end_column, meta.end_pos),
		)

	def tok_range(self, tok: Token) -> Range:
		return Range(
			self._pos(tok.line, tok.column, tok.start_pos),
			self._pos(tok.end_line, tok.end_column, tok.end_pos),
		)

	def ident(self, tok: Token) -> A.Identifier:
		return A.Identifier(self.tok_range(tok), str(tok.value))

	# -- statements ---------------------------------------------------------

	def program(self, tree: Tree) -> A.Program:
		body = [self.statement(child) for child in _trees(tree)]
		rng = Range(position_at(self.source, 0), position_at(self.source, len(self.source)))
		return A.Program(rng, body)

	def statement(self, node: Tree) -> A.Stmt:
		kind = _name(node)
		handler = getattr(self, f"_stmt_{kind}", None)
		if handler is None:
			raise ForgeSyntaxError(f"Unsupported statement form '{kind}'.", self.loc(node))
		return handler(node)

	def _stmt_disable_directive(self, node: Tree) -> A.Stmt:
		target = self.string_literal(_tokens(node, "STRING")[0])
		return A.DisableDirective(self.loc(node), target)

	def _stmt_able_directive(self, node: Tree) -> A.Stmt:
		modules = [self.string_literal(tok) for tok in _tokens(node, "STRING")]
		return A.AbleDirective(self.loc(node), modules)

	def _stmt_var_decl(self, node: Tree) -> A.Stmt:
		kind_tok = _token(node, "LET", "VAR", "CONST")
		name_tok = _token(node, "NAME")
		assert kind_tok is not None and name_tok is not None
		value = _trees(node)
		init = self.expr(value[0]) if value else None
		return A.VarDeclaration(self.loc(node), str(kind_tok.value), self.ident(name_tok), init)

	def _stmt_if_stmt(self, node: Tree) -> A.Stmt:
		test, consequent, *rest = _trees(node)
		elifs: List[A.ElifClause] = []
		alternate: Optional[A.BlockStatement] = None
		for clause in rest:
			if _name(clause) == "elif_clause":
				ctest, cblock = _trees(clause)
				elifs.append(A.ElifClause(self.loc(clause), self.expr(ctest), self.block(cblock)))
			else:
				alternate = self.block(_trees(clause)[0])
		return A.IfStatement(self.loc(node), self.expr(test), self.block(consequent), elifs, alternate)

	def _stmt_while_stmt(self, node: Tree) -> A.Stmt:
		test, body = _trees(node)
		return A.WhileStatement(self.loc(node), self.expr(test), self.block(body))

	def _stmt_do_while_stmt(self, node: Tree) -> A.Stmt:
		body, test = _trees(node)
		return A.DoWhileStatement(self.loc(node), self.block(body), self.expr(test))

	def _stmt_for_stmt(self, node: Tree) -> A.Stmt:
		init_t, test_t, update_t, body = _trees(node)
		init: Optional[A.Stmt] = None
		init_children = _trees(init_t)
		if init_children:
			inner = init_children[0]
			if _name(inner) == "var_decl":
				init = self._stmt_var_decl(inner)
			else:
				init = self._expression_statement(inner)
		test_children = _trees(test_t)
		update_children = _trees(update_t)
		test = self.expr(test_children[0]) if test_children else None
		update = self.expr(update_children[0]) if update_children else None
		return A.ForStatement(self.loc(node), init, test, update, self.block(body))

	def _stmt_foreach_stmt(self, node: Tree) -> A.Stmt:
		name_tok = _token(node, "NAME")
		assert name_tok is not None
		iterable, body = _trees(node)
		return A.ForEachStatement(self.loc(node), self.ident(name_tok), self.expr(iterable), self.block(body))

	def _stmt_try_stmt(self, node: Tree) -> A.Stmt:
		block, *clauses = _trees(node)
		handler: Optional[A.CatchClause] = None
		finalizer: Optional[A.BlockStatement] = None
		for clause in clauses:
			if _name(clause) == "catch_clause":
				param_tok = _token(clause, "NAME")
				param = self.ident(param_tok) if param_tok is not None else None
				handler = A.CatchClause(self.loc(clause), param, self.block(_trees(clause)[0]))
			else:
				finalizer = self.block(_trees(clause)[0])
		return A.TryStatement(self.loc(node), self.block(block), handler, finalizer)

	def _stmt_func_decl(self, node: Tree) -> A.Stmt:
		name_tok = _token(node, "NAME")
		assert name_tok is not None
		params_t, body = _trees(node)
		return A.FunctionDeclaration(
			self.loc(node),
			self.ident(name_tok),
			self.params(params_t),
			self.block(body),
			is_async=_token(node, "ASYNC") is not None,
		)

	def _stmt_return_stmt(self, node: Tree) -> A.Stmt:
		value = _trees(node)
		return A.ReturnStatement(self.loc(node), self.expr(value[0]) if value else None)

	def _stmt_throw_stmt(self, node: Tree) -> A.Stmt:
		return A.ThrowStatement(self.loc(node), self.expr(_trees(node)[0]))

	def _stmt_break_stmt(self, node: Tree) -> A.Stmt:
		return A.BreakStatement(self.loc(node))

	def _stmt_continue_stmt(self, node: Tree) -> A.Stmt:
		return A.ContinueStatement(self.loc(node))

	def _stmt_block(self, node: Tree) -> A.Stmt:
		return self.block(node)

	def _stmt_bool_assign_stmt(self, node: Tree) -> A.Stmt:
		trees = _trees(node)
		target = self.assignable(self.expr(trees[0]))
		op_tok = _token(node, "QISBOOL", "NOTISBOOL")
		assert op_tok is not None
		force = self.bool_force(trees[1]) if len(trees) > 1 else None
		rng = self.loc(node)
		value = A.BooleanOpExpression(
			Range(target.range.start, rng.end),
			subject=target,
			op="query",
			negate=op_tok.type == "NOTISBOOL",
			force=force,
		)
		return A.AssignmentStatement(rng, target, value)

	def _stmt_expr_stmt(self, node: Tree) -> A.Stmt:
		return self._expression_statement(_trees(node)[0])

	def _expression_statement(self, node: Tree) -> A.Stmt:
		expr = self.expr(node)
		if isinstance(expr, A.AssignmentExpression):
			return A.AssignmentStatement(expr.range, expr.left, self._cast_rewrite(expr.left, expr.right))
		return A.ExpressionStatement(expr.range, expr)

	def _cast_rewrite(self, target: A.Expr, value: A.Expr) -> A.Expr:
		"""`target = isBoolean(.t|.f)` casts the target's current value."""
		force: Optional[bool] = None
		base = value
		if isinstance(value, A.MemberExpression) and value.property.name in ("t", "f"):
			force = value.property.name == "t"
			base = value.object
		if not (isinstance(base, A.Identifier) and base.name == "isBoolean"):
			return value
		return A.BooleanOpExpression(
			Range(target.range.start, value.range.end),
			subject=target,
			op="cast",
			negate=False,
			force=force,
		)

	def block(self, node: Tree) -> A.BlockStatement:
		body = [self.statement(child) for child in _trees(node)]
		return A.BlockStatement(self.loc(node), body)

	def params(self, node: Tree) -> List[A.FunctionParameter]:
		out: List[A.FunctionParameter] = []
		for param in _trees(node):
			name_tok = _token(param, "NAME")
			assert name_tok is not None
			default = _trees(param)
			out.append(
				A.FunctionParameter(
					self.loc(param),
					self.ident(name_tok),
					self.expr(default[0]) if default else None,
				)
			)
		return out

	# -- expressions --------------------------------------------------------

	def expr(self, node: Tree) -> A.Expr:
		kind = _name(node)
		handler = getattr(self, f"_expr_{kind}", None)
		if handler is None:
			raise ForgeSyntaxError(f"Unsupported expression form '{kind}'.", self.loc(node))
		return handler(node)

	def _expr_name(self, node: Tree) -> A.Expr:
		return self.ident(node.children[0])

	def _expr_number(self, node: Tree) -> A.Expr:
		tok = node.children[0]
		return A.NumberLiteral(self.tok_range(tok), float(tok.value), str(tok.value))

	def _expr_duration(self, node: Tree) -> A.Expr:
		tok = node.children[0]
		m = _DURATION_RE.match(str(tok.value))
		assert m is not None
		return A.DurationLiteral(self.tok_range(tok), float(m.group(1)), m.group(2), str(tok.value))

	def _expr_string(self, node: Tree) -> A.Expr:
		return self.string_or_template(node.children[0])

	def _expr_true(self, node: Tree) -> A.Expr:
		return A.BooleanLiteral(self.loc(node), True)

	def _expr_false(self, node: Tree) -> A.Expr:
		return A.BooleanLiteral(self.loc(node), False)

	def _expr_null(self, node: Tree) -> A.Expr:
		return A.NullLiteral(self.loc(node))

	def _expr_paren(self, node: Tree) -> A.Expr:
		return self.expr(_trees(node)[0])

	def _expr_array(self, node: Tree) -> A.Expr:
		return A.ArrayLiteral(self.loc(node), [self.expr(e) for e in _trees(node)])

	def _expr_object(self, node: Tree) -> A.Expr:
		props: List[A.ObjectProperty] = []
		for prop in _trees(node):
			key_tok = _token(prop, "NAME", "STRING")
			assert key_tok is not None
			key_name = str(key_tok.value)
			if key_tok.type == "STRING":
				key_name = decode_string(key_name[1:-1])
			key = A.PropertyKey(self.tok_range(key_tok), key_name)
			props.append(A.ObjectProperty(self.loc(prop), key, self.expr(_trees(prop)[0])))
		return A.ObjectLiteral(self.loc(node), props)

	def _expr_func_expr(self, node: Tree) -> A.Expr:
		params_t, body = _trees(node)
		return A.FunctionExpression(
			self.loc(node),
			self.params(params_t),
			self.block(body),
			name=None,
			is_async=_token(node, "ASYNC") is not None,
		)

	def _expr_arrow(self, node: Tree) -> A.Expr:
		trees = _trees(node)
		is_async = _token(node, "ASYNC") is not None
		name_tok = _token(node, "ARROW_NAME")
		if name_tok is not None:
			ident = self.ident(name_tok)
			params = [A.FunctionParameter(ident.range, ident)]
			body_t = trees[0]
		else:
			params = self.params(trees[0])
			body_t = trees[1]
		body: A.Node
		if _name(body_t) == "block":
			body = self.block(body_t)
		else:
			body = self.expr(body_t)
		return A.ArrowFunctionExpression(self.loc(node), params, body, is_async=is_async)  # type: ignore[arg-type]

	def _expr_member(self, node: Tree) -> A.Expr:
		obj = self.expr(_trees(node)[0])
		key_tok = _tokens(node, "NAME", "NUMBER")[-1]
		escaped = _token(node, "BACKSLASH") is not None
		rng = self.loc(node)
		if isinstance(obj, A.Identifier) and obj.name in A.STORES:
			return A.NamespacedIdentifier(rng, obj.name, self.ident(key_tok))
		key = A.PropertyKey(self.tok_range(key_tok), str(key_tok.value), escaped)
		return A.MemberExpression(rng, obj, key)

	def _expr_call(self, node: Tree) -> A.Expr:
		callee_t, args_t = _trees(node)
		args: List[A.CallArgument] = []
		for arg in _trees(args_t):
			if _name(arg) == "named_arg":
				name_tok = _token(arg, "NAME")
				assert name_tok is not None
				args.append(A.NamedArgument(self.loc(arg), self.ident(name_tok), self.expr(_trees(arg)[0])))
			else:
				value = self.expr(_trees(arg)[0])
				args.append(A.PositionalArgument(value.range, value))
		return A.CallExpression(self.loc(node), self.expr(callee_t), args)

	def _expr_assignment(self, node: Tree) -> A.Expr:
		left_t, right_t = _trees(node)
		left = self.assignable(self.expr(left_t))
		return A.AssignmentExpression(self.loc(node), left, self.expr(right_t))

	def _expr_binary(self, node: Tree) -> A.Expr:
		left_t, right_t = _trees(node)
		op_tok = _tokens(node)[0]
		op = str(op_tok.value)
		if op_tok.type in ("STAR", "MUL_X"):
			op = "x"
		return A.BinaryExpression(self.loc(node), op, self.expr(left_t), self.expr(right_t))

	def _expr_unary_op(self, node: Tree) -> A.Expr:
		op_tok = _tokens(node)[0]
		return A.UnaryExpression(self.loc(node), str(op_tok.value), self.expr(_trees(node)[0]))

	def _expr_await_expr(self, node: Tree) -> A.Expr:
		return A.AwaitExpression(self.loc(node), self.expr(_trees(node)[0]))

	def _expr_bool_query(self, node: Tree) -> A.Expr:
		trees = _trees(node)
		op_tok = _token(node, "QISBOOL", "NOTISBOOL")
		assert op_tok is not None
		force = self.bool_force(trees[1]) if len(trees) > 1 else None
		return A.BooleanOpExpression(
			self.loc(node),
			subject=self.expr(trees[0]),
			op="query",
			negate=op_tok.type == "NOTISBOOL",
			force=force,
		)

	def bool_force(self, node: Tree) -> bool:
		name_tok = _token(node, "NAME")
		assert name_tok is not None
		if name_tok.value not in ("t", "f"):
			raise ForgeSyntaxError("Expected '.t' or '.f' after isBoolean.", self.tok_range(name_tok))
		return name_tok.value == "t"

	def assignable(self, expr: A.Expr) -> A.Expr:
		if isinstance(expr, (A.Identifier, A.NamespacedIdentifier, A.MemberExpression)):
			return expr
		raise ForgeSyntaxError("Left-hand side of assignment is not assignable.", expr.range)

	# -- strings ------------------------------------------------------------

	def string_literal(self, tok: Token) -> A.StringLiteral:
		raw = str(tok.value)
		return A.StringLiteral(self.tok_range(tok), decode_string(raw[1:-1]), raw[0])

	def string_or_template(self, tok: Token) -> A.Expr:
		"""
		A quoted string containing `{expr}` holes becomes a TemplateString.

		Unbalanced braces and empty `{}` stay literal text.
		"""
		raw_full = str(tok.value)
		quote = raw_full[0]
		raw = raw_full[1:-1]
		rng = self.tok_range(tok)
		body_start = rng.start.offset + 1
		parts: List[A.TemplatePart] = []
		text_start = 0
		i = 0
		while i < len(raw):
			ch = raw[i]
			if ch == "\\":
				i += 2
				continue
			if ch != "{":
				i += 1
				continue
			end = _find_hole_end(raw, i)
			hole = self._hole_part(raw, i, end, body_start) if end > i + 1 else None
			if hole is None:
				i += 1
				continue
			if text_start < i:
				parts.append(self._text_part(raw, text_start, i, body_start))
			parts.append(hole)
			i = end + 1
			text_start = i
		if not any(isinstance(p, A.TemplateExprPart) for p in parts):
			return A.StringLiteral(rng, decode_string(raw), quote)
		if text_start < len(raw):
			parts.append(self._text_part(raw, text_start, len(raw), body_start))
		return A.TemplateString(rng, parts, quote)

	def _abs(self, doc_offset: int) -> Position:
		"""Position for an offset expressed in document coordinates."""
		if self.base is None:
			return position_at(self.source, doc_offset)
		local = position_at(self.source, doc_offset - self.base.offset)
		column = local.column + (self.base.column if local.line == 0 else 0)
		return Position(doc_offset, local.line + self.base.line, column)

	def _text_part(self, raw: str, start: int, end: int, body_start: int) -> A.TemplateTextPart:
		rng = Range(self._abs(body_start + start), self._abs(body_start + end))
		return A.TemplateTextPart(rng, decode_string(raw[start:end]))

	def _hole_part(self, raw: str, open_idx: int, close_idx: int, body_start: int) -> Optional[A.TemplateExprPart]:
		"""Parse `{...}`; holes that are not valid expressions stay literal text (e.g. JSON)."""
		inner = raw[open_idx + 1:close_idx]
		if not inner.strip():
			return None
		try:
			tree = _lark("expr").parse(inner)
			expression = _TreeBuilder(inner, self._abs(body_start + open_idx + 1)).expr(tree)
		except (UnexpectedInput, ForgeSyntaxError):
			return None
		hole_range = Range(self._abs(body_start + open_idx), self._abs(body_start + close_idx + 1))
		return A.TemplateExprPart(hole_range, expression)


__all__ = [
	"ForgeToken",
	"LexResult",
	"ParseResult",
	"ForgeSyntaxError",
	"ForgePostLex",
	"TokenClassifier",
	"TerminatorInserter",
	"tokenize",
	"parse",
	"parse_program",
	"decode_string",
]
