"""
Condition expression language.

Hand-rolled tokenizer, recursive descent parser and tree-walking evaluator
for the boolean expressions carried by feature rules:

    Age >= 18 && Country == "DE"
    !(Plan = "free") or user.beta == true

Identifiers bind context attributes by exact name; dotted access reads
nested mappings or attribute providers. Keywords (and, or, not, true,
false, null) are case-insensitive. Expressions are pure: there are no
calls, assignments or arithmetic beyond unary minus.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from .errors import ExpressionEvaluationError, ExpressionSyntaxError
from .models import AttributeProvider


# ---------- AST nodes ----------

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Name:
    path: Tuple[str, ...]

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class Not:
    operand: "Node"


@dataclass(frozen=True)
class Negate:
    operand: "Node"


@dataclass(frozen=True)
class Compare:
    op: str  # ==, !=, <, <=, >, >=
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class And:
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Or:
    left: "Node"
    right: "Node"


Node = Union[Literal, Name, Not, Negate, Compare, And, Or]


# ---------- Tokenizer ----------

_TOKEN_RE = re.compile(
    r'(?P<string>"(?:[^"\\]|\\.)*")'
    r"|(?P<number>\d+(?:\.\d+)?)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>==|!=|<>|<=|>=|&&|\|\||=|<|>|!|-)"
    r"|(?P<dot>\.)"
    r"|(?P<paren>[()])"
    r"|(?P<ws>\s+)"
)

_KEYWORDS = {"and", "or", "not", "true", "false", "null"}

_OP_ALIASES = {"=": "==", "<>": "!="}

_ESCAPE_RE = re.compile(r"\\(.)")


@dataclass(frozen=True)
class Token:
    kind: str  # string, number, ident, keyword, op, dot, paren, end
    value: str
    position: int


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            raise ExpressionSyntaxError(
                f"Unexpected character at position {pos}: {text[pos:]!r}", position=pos
            )
        for kind, value in m.groupdict().items():
            if value is None or kind == "ws":
                continue
            if kind == "ident" and value.lower() in _KEYWORDS:
                tokens.append(Token("keyword", value.lower(), pos))
            else:
                tokens.append(Token(kind, value, pos))
            break
        pos = m.end()
    tokens.append(Token("end", "", len(text)))
    return tokens


# ---------- Parser ----------

class ExpressionParser:
    def __init__(self, tokens: List[Token]) -> None:
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != "end":
            self.pos += 1
        return tok

    def _accept(self, *candidates: Tuple[str, str]) -> Optional[Token]:
        tok = self.peek()
        if (tok.kind, tok.value) in candidates:
            return self.advance()
        return None

    def _error(self, message: str, tok: Token) -> ExpressionSyntaxError:
        found = "end of expression" if tok.kind == "end" else repr(tok.value)
        return ExpressionSyntaxError(f"{message}, found {found} at position {tok.position}", tok.position)

    def parse(self) -> Node:
        if self.peek().kind == "end":
            raise ExpressionSyntaxError("Expression is empty", 0)
        node = self._parse_or()
        tok = self.peek()
        if tok.kind != "end":
            raise self._error("Expected end of expression", tok)
        return node

    def _parse_or(self) -> Node:
        left = self._parse_and()
        while self._accept(("op", "||"), ("keyword", "or")):
            left = Or(left, self._parse_and())
        return left

    def _parse_and(self) -> Node:
        left = self._parse_equality()
        while self._accept(("op", "&&"), ("keyword", "and")):
            left = And(left, self._parse_equality())
        return left

    def _parse_equality(self) -> Node:
        left = self._parse_comparison()
        while True:
            tok = self._accept(("op", "=="), ("op", "="), ("op", "!="), ("op", "<>"))
            if tok is None:
                return left
            left = Compare(_OP_ALIASES.get(tok.value, tok.value), left, self._parse_comparison())

    def _parse_comparison(self) -> Node:
        left = self._parse_unary()
        while True:
            tok = self._accept(("op", "<"), ("op", "<="), ("op", ">"), ("op", ">="))
            if tok is None:
                return left
            left = Compare(tok.value, left, self._parse_unary())

    def _parse_unary(self) -> Node:
        if self._accept(("op", "!"), ("keyword", "not")):
            return Not(self._parse_unary())
        if self._accept(("op", "-")):
            return Negate(self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        tok = self.advance()

        if tok.kind == "paren" and tok.value == "(":
            node = self._parse_or()
            closing = self.advance()
            if closing.kind != "paren" or closing.value != ")":
                raise self._error("Expected ')'", closing)
            return node

        if tok.kind == "number":
            return Literal(float(tok.value) if "." in tok.value else int(tok.value))

        if tok.kind == "string":
            return Literal(_ESCAPE_RE.sub(r"\1", tok.value[1:-1]))

        if tok.kind == "keyword" and tok.value in ("true", "false", "null"):
            return Literal({"true": True, "false": False, "null": None}[tok.value])

        if tok.kind == "ident":
            path = [tok.value]
            while self._accept(("dot", ".")):
                member = self.advance()
                if member.kind != "ident":
                    raise self._error("Expected member name after '.'", member)
                path.append(member.value)
            return Name(tuple(path))

        raise self._error("Expected a value", tok)


def parse_expression(text: str) -> Node:
    """Parse an expression string into an AST."""
    return ExpressionParser(tokenize(text)).parse()


# ---------- Evaluator ----------

def _kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def _incompatible(op: str, left: Any, right: Any) -> ExpressionEvaluationError:
    return ExpressionEvaluationError(
        f"Operator '{op}' incompatible with operand types '{_kind(left)}' and '{_kind(right)}'"
    )


def _members(value: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(value, Mapping):
        return value
    if isinstance(value, AttributeProvider):
        return dict(value.attributes())
    return None


class ExpressionEvaluator:
    """Evaluates a parsed expression against a set of named variables."""

    def __init__(self, variables: Mapping[str, Any]):
        self.variables = variables

    def evaluate(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value

        if isinstance(node, Name):
            return self._resolve(node)

        if isinstance(node, Not):
            return not self._boolean(node.operand, "!")

        if isinstance(node, Negate):
            value = self.evaluate(node.operand)
            if _kind(value) != "number":
                raise ExpressionEvaluationError(f"Operator '-' incompatible with operand type '{_kind(value)}'")
            return -value

        if isinstance(node, And):
            return self._boolean(node.left, "&&") and self._boolean(node.right, "&&")

        if isinstance(node, Or):
            return self._boolean(node.left, "||") or self._boolean(node.right, "||")

        if isinstance(node, Compare):
            return self._compare(node.op, self.evaluate(node.left), self.evaluate(node.right))

        raise ExpressionEvaluationError(f"Unsupported expression node {type(node).__name__}")

    def _boolean(self, node: Node, op: str) -> bool:
        value = self.evaluate(node)
        if not isinstance(value, bool):
            raise ExpressionEvaluationError(f"Operator '{op}' requires boolean operands, got '{_kind(value)}'")
        return value

    def _resolve(self, node: Name) -> Any:
        root = node.path[0]
        if root not in self.variables:
            raise ExpressionEvaluationError(f"No attribute '{root}' exists on the context")
        value = self.variables[root]
        for depth, member in enumerate(node.path[1:], start=1):
            members = _members(value)
            if members is None:
                owner = ".".join(node.path[:depth])
                raise ExpressionEvaluationError(f"'{owner}' of type '{_kind(value)}' has no members")
            if member not in members:
                raise ExpressionEvaluationError(f"No member '{member}' exists on '{'.'.join(node.path[:depth])}'")
            value = members[member]
        return value

    def _compare(self, op: str, left: Any, right: Any) -> bool:
        left_kind, right_kind = _kind(left), _kind(right)

        if op in ("==", "!="):
            if left_kind != right_kind and "null" not in (left_kind, right_kind):
                raise _incompatible(op, left, right)
            equal = left == right
            return equal if op == "==" else not equal

        if left_kind != right_kind or left_kind not in ("number", "string"):
            raise _incompatible(op, left, right)
        return _ORDERING[op](left, right)


def evaluate_expression(node: Node, variables: Mapping[str, Any]) -> bool:
    """Evaluate a parsed expression; the result must be a boolean."""
    result = ExpressionEvaluator(variables).evaluate(node)
    if not isinstance(result, bool):
        raise ExpressionEvaluationError(f"Expression must evaluate to a boolean, got '{_kind(result)}'")
    return result
