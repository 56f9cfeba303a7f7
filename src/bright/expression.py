"""Brightness value expressions.

Grammar (keywords and function names are case-insensitive, whitespace between
tokens is ignored)::

    expr    := literal | restore | call
    literal := INT ['%'] ['+' | '-']
    restore := 'restore' ['(' ')']
    call    := NAME ['(' [expr (',' expr)*] ')']

``50%`` is an absolute percentage, ``5%+`` raises the current percentage by
five points, ``500-`` lowers the current raw value by 500. Every literal is
resolved to a raw value before a function sees it, so ``max(50%, 10%+, 200)``
compares three raw integers. Results are not clamped here.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from bright.errors import EvaluationError, NoSavedState, ParseError
from bright.scale import LINEAR, Curve, to_percentage, to_raw

# --- Tokens ---

NUMBER = "number"
NAME = "name"
LPAREN = "("
RPAREN = ")"
COMMA = ","
PERCENT = "%"
PLUS = "+"
MINUS = "-"

_SINGLE = frozenset((LPAREN, RPAREN, COMMA, PERCENT, PLUS, MINUS))


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int


def _is_name_start(c: str) -> bool:
    return c == "_" or (c.isascii() and c.isalpha())


def _is_name_char(c: str) -> bool:
    return _is_name_start(c) or (c.isascii() and c.isdigit())


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c.isspace():
            i += 1
        elif c in _SINGLE:
            tokens.append(Token(c, c, i))
            i += 1
        elif c.isascii() and c.isdigit():
            start = i
            while i < n and text[i].isascii() and text[i].isdigit():
                i += 1
            if i < n and _is_name_char(text[i]):
                raise ParseError(start, "malformed number")
            tokens.append(Token(NUMBER, text[start:i], start))
        elif _is_name_start(c):
            start = i
            while i < n and _is_name_char(text[i]):
                i += 1
            tokens.append(Token(NAME, text[start:i], start))
        else:
            raise ParseError(i, f"unsupported character {c!r}")
    return tokens


# --- AST ---


class Direction(enum.Enum):
    ABS = ""
    INC = "+"
    DEC = "-"


@dataclass(frozen=True)
class Literal:
    value: int
    percent: bool = False
    direction: Direction = Direction.ABS

    def __str__(self) -> str:
        return f"{self.value}{'%' if self.percent else ''}{self.direction.value}"


@dataclass(frozen=True)
class Restore:
    def __str__(self) -> str:
        return "restore"


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple[Node, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.args)})"


Node = Literal | Restore | Call


# --- Evaluation environment and built-ins ---


@dataclass(frozen=True)
class Environment:
    """Snapshot an expression is evaluated against. Never mutated by evaluation."""

    current: int
    maximum: int
    saved: int | None = None
    curve: Curve = LINEAR
    device: str = ""


@dataclass(frozen=True)
class Function:
    name: str
    min_args: int
    max_args: int | None
    apply: Callable[[Environment, list[int]], int]

    def accepts(self, count: int) -> bool:
        return count >= self.min_args and (self.max_args is None or count <= self.max_args)

    def describe_arity(self) -> str:
        if self.max_args is None:
            return f"at least {self.min_args}"
        if self.max_args == self.min_args:
            return str(self.min_args)
        return f"{self.min_args}-{self.max_args}"


def _clamp(_env: Environment, args: list[int]) -> int:
    lo, value, hi = args
    if lo > hi:
        raise EvaluationError(f"clamp lower bound {lo} exceeds upper bound {hi}")
    return min(max(value, lo), hi)


FUNCTIONS: dict[str, Function] = {
    "max": Function("max", 1, None, lambda _env, args: max(args)),
    "min": Function("min", 1, None, lambda _env, args: min(args)),
    "clamp": Function("clamp", 3, 3, _clamp),
    "current": Function("current", 0, 0, lambda env, _args: env.current),
}

RESTORE = "restore"


# --- Parser ---


class _Parser:
    def __init__(self, tokens: Sequence[Token], end_pos: int):
        self._tokens = tokens
        self._end_pos = end_pos
        self._i = 0

    def _peek(self) -> Token | None:
        return self._tokens[self._i] if self._i < len(self._tokens) else None

    def _next(self) -> Token | None:
        tok = self._peek()
        if tok is not None:
            self._i += 1
        return tok

    def _accept(self, kind: str) -> Token | None:
        tok = self._peek()
        if tok is not None and tok.kind == kind:
            self._i += 1
            return tok
        return None

    def parse_all(self) -> Node:
        node = self.parse_expr()
        tok = self._peek()
        if tok is not None:
            if tok.kind == RPAREN:
                raise ParseError(tok.pos, "unmatched ')'")
            raise ParseError(tok.pos, f"unexpected {tok.text!r} after complete expression")
        return node

    def parse_expr(self) -> Node:
        tok = self._next()
        if tok is None:
            raise ParseError(self._end_pos, "expected a value")
        if tok.kind == NUMBER:
            return self._literal(tok)
        if tok.kind == NAME:
            return self._call(tok)
        if tok.kind in (PLUS, MINUS):
            raise ParseError(tok.pos, f"the sign goes after the number, e.g. 5{tok.text}")
        if tok.kind == RPAREN:
            raise ParseError(tok.pos, "unmatched ')'")
        raise ParseError(tok.pos, f"unexpected {tok.text!r}")

    def _literal(self, tok: Token) -> Literal:
        value = int(tok.text)
        percent = self._accept(PERCENT) is not None
        if percent and value > 100:
            raise ParseError(tok.pos, "percentage must not exceed 100")
        direction = Direction.ABS
        if self._accept(PLUS):
            direction = Direction.INC
        elif self._accept(MINUS):
            direction = Direction.DEC
        return Literal(value=value, percent=percent, direction=direction)

    def _call(self, tok: Token) -> Node:
        name = tok.text.lower()
        if name == RESTORE:
            lparen = self._accept(LPAREN)
            if lparen is not None:
                args = self._arguments(lparen)
                if args:
                    raise ParseError(lparen.pos, "restore takes no arguments")
            return Restore()
        if name not in FUNCTIONS:
            raise ParseError(tok.pos, f"unknown function {tok.text!r}")
        lparen = self._accept(LPAREN)
        if lparen is None:
            return Call(name)
        return Call(name, tuple(self._arguments(lparen)))

    def _arguments(self, lparen: Token) -> list[Node]:
        # Split on commas at depth 1 only; nested calls keep their commas.
        groups: list[list[Token]] = [[]]
        closers: list[int] = []
        depth = 1
        while True:
            tok = self._next()
            if tok is None:
                raise ParseError(lparen.pos, "unclosed '('")
            if tok.kind == LPAREN:
                depth += 1
            elif tok.kind == RPAREN:
                depth -= 1
                if depth == 0:
                    closers.append(tok.pos)
                    break
            elif tok.kind == COMMA and depth == 1:
                closers.append(tok.pos)
                groups.append([])
                continue
            groups[-1].append(tok)

        if len(groups) == 1 and not groups[0]:
            return []

        out: list[Node] = []
        for group, closer in zip(groups, closers):
            if not group:
                raise ParseError(closer, "empty argument")
            out.append(_Parser(group, closer).parse_all())
        return out


def parse(text: str) -> Node:
    tokens = tokenize(text)
    if not tokens:
        raise ParseError(0, "empty expression")
    return _Parser(tokens, len(text)).parse_all()


# --- Evaluation ---


def walk(node: Node) -> Iterator[Node]:
    yield node
    if isinstance(node, Call):
        for arg in node.args:
            yield from walk(arg)


def requires_saved(node: Node) -> bool:
    return any(isinstance(n, Restore) for n in walk(node))


def _eval_literal(lit: Literal, env: Environment) -> int:
    if not lit.percent:
        if lit.direction is Direction.INC:
            return env.current + lit.value
        if lit.direction is Direction.DEC:
            return env.current - lit.value
        return lit.value

    if lit.direction is Direction.ABS:
        return to_raw(lit.value, env.maximum, env.curve)
    pct = to_percentage(env.current, env.maximum, env.curve)
    if lit.direction is Direction.INC:
        pct += lit.value
    else:
        pct -= lit.value
    return to_raw(pct, env.maximum, env.curve)


def evaluate(node: Node, env: Environment) -> int:
    """Resolve ``node`` to a raw value. The result may lie outside [0, max]."""

    if isinstance(node, Literal):
        return _eval_literal(node, env)
    if isinstance(node, Restore):
        if env.saved is None:
            raise NoSavedState(env.device)
        return env.saved

    fn = FUNCTIONS.get(node.name)
    if fn is None:
        raise EvaluationError(f"{node.name!r} isn't an available function")
    if not fn.accepts(len(node.args)):
        raise EvaluationError(
            f"{fn.name} expects {fn.describe_arity()} arguments but {len(node.args)} were provided"
        )
    args = [evaluate(arg, env) for arg in node.args]
    return fn.apply(env, args)
