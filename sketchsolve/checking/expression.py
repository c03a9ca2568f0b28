"""
Expression parser for the equivalence checker.

Parses plain-text algebra ("(x+1)^2", "2x + sin(x)") into a small
expression tree. The tree evaluates numerically with the math module and
converts to SymPy by construction, so user text is never passed to eval().
"""

import math
import re
import zlib
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterator, List, Set, Tuple

import sympy as sp

from ..utils.errors import ExpressionParseError


def _checked_pow(base: float, exponent: float) -> float:
    result = base**exponent
    if isinstance(result, complex):
        raise ValueError("complex result")
    return result


# Whitelisted functions: name -> (numeric implementation, SymPy constructor)
FUNCTIONS = {
    "sin": (math.sin, sp.sin),
    "cos": (math.cos, sp.cos),
    "tan": (math.tan, sp.tan),
    "asin": (math.asin, sp.asin),
    "acos": (math.acos, sp.acos),
    "atan": (math.atan, sp.atan),
    "sinh": (math.sinh, sp.sinh),
    "cosh": (math.cosh, sp.cosh),
    "tanh": (math.tanh, sp.tanh),
    "log": (math.log, sp.log),
    "ln": (math.log, sp.log),
    "exp": (math.exp, sp.exp),
    "sqrt": (math.sqrt, sp.sqrt),
    "abs": (abs, sp.Abs),
}

CONSTANTS = {
    "e": (math.e, sp.E),
    "pi": (math.pi, sp.pi),
}

# Identifiers that are never treated as variables
RESERVED_NAMES = frozenset(FUNCTIONS) | frozenset(CONSTANTS)


# === Tree ===


class Node:
    """Base class for expression tree nodes."""

    def evaluate(self, env: Dict[str, float]) -> float:
        raise NotImplementedError

    def to_sympy(self) -> sp.Expr:
        raise NotImplementedError

    def variables(self) -> Set[str]:
        return set()


@dataclass(frozen=True)
class Number(Node):
    text: str

    def evaluate(self, env):
        return float(self.text)

    def to_sympy(self):
        value = Fraction(self.text)
        return sp.Rational(value.numerator, value.denominator)


@dataclass(frozen=True)
class Constant(Node):
    name: str

    def evaluate(self, env):
        return CONSTANTS[self.name][0]

    def to_sympy(self):
        return CONSTANTS[self.name][1]


@dataclass(frozen=True)
class Variable(Node):
    name: str

    def evaluate(self, env):
        try:
            return env[self.name]
        except KeyError:
            raise ValueError(f"No value for variable '{self.name}'")

    def to_sympy(self):
        return sp.Symbol(self.name)

    def variables(self):
        return {self.name}


@dataclass(frozen=True)
class Negate(Node):
    operand: Node

    def evaluate(self, env):
        return -self.operand.evaluate(env)

    def to_sympy(self):
        return -self.operand.to_sympy()

    def variables(self):
        return self.operand.variables()


@dataclass(frozen=True)
class BinaryOp(Node):
    op: str  # one of + - * / ^
    left: Node
    right: Node

    def evaluate(self, env):
        a = self.left.evaluate(env)
        b = self.right.evaluate(env)
        if self.op == "+":
            return a + b
        if self.op == "-":
            return a - b
        if self.op == "*":
            return a * b
        if self.op == "/":
            return a / b
        return _checked_pow(a, b)

    def to_sympy(self):
        a = self.left.to_sympy()
        b = self.right.to_sympy()
        if self.op == "+":
            return a + b
        if self.op == "-":
            return a - b
        if self.op == "*":
            return a * b
        if self.op == "/":
            return a / b
        return a**b

    def variables(self):
        return self.left.variables() | self.right.variables()


@dataclass(frozen=True)
class Call(Node):
    name: str
    argument: Node

    def evaluate(self, env):
        return FUNCTIONS[self.name][0](self.argument.evaluate(env))

    def to_sympy(self):
        return FUNCTIONS[self.name][1](self.argument.to_sympy())

    def variables(self):
        return self.argument.variables()


# === Tokenizer ===

TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<op>\*\*|[-+*/^()])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str  # number, name, op, end
    text: str
    position: int


def tokenize(text: str) -> List[Token]:
    """
    Split an expression into tokens.

    Raises:
        ExpressionParseError: On characters outside the grammar.
    """
    tokens = []
    pos = 0
    while pos < len(text):
        match = TOKEN_RE.match(text, pos)
        if match is None:
            raise ExpressionParseError(
                f"Unexpected character '{text[pos]}' at position {pos + 1}",
                expression=text,
                position=pos,
            )
        kind = match.lastgroup
        if kind != "space":
            value = match.group()
            if value == "**":
                value = "^"
            tokens.append(Token(kind, value, pos))
        pos = match.end()
    tokens.append(Token("end", "", len(text)))
    return tokens


def identifiers(text: str) -> Iterator[str]:
    """Yield the word-like tokens of an expression (including reserved names)."""
    for token in tokenize(text):
        if token.kind == "name":
            yield token.text


# === Parser ===


class ExpressionParser:
    """
    Recursive-descent parser for plain-text algebra.

    Grammar:
        expr    := term (("+" | "-") term)*
        term    := unary (("*" | "/") unary | <implicit> power)*
        unary   := ("-" | "+") unary | power
        power   := primary ("^" unary)?
        primary := NUMBER | NAME | FUNC "(" expr ")" | "(" expr ")"

    "^" and "**" both mean power and associate to the right. Juxtaposition
    multiplies, so "2x", "2(x+1)" and "x(x-1)" all parse as products.

    Usage:
        tree = ExpressionParser().parse("(x+1)^2")
        tree.to_sympy()  # (x + 1)**2
    """

    def parse(self, text: str) -> Node:
        """
        Parse an expression into a tree.

        Raises:
            ExpressionParseError: If the text is empty or malformed.
        """
        self._text = text
        self._tokens = tokenize(text)
        self._index = 0

        if self._peek().kind == "end":
            raise ExpressionParseError("Expression is empty", expression=text)

        node = self._expr()
        token = self._peek()
        if token.kind != "end":
            self._fail(f"Unexpected '{token.text}'", token)
        return node

    # --- token helpers ---

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _accept(self, *ops: str) -> bool:
        token = self._peek()
        return token.kind == "op" and token.text in ops

    def _expect(self, op: str) -> None:
        token = self._peek()
        if not (token.kind == "op" and token.text == op):
            found = token.text or "end of input"
            self._fail(f"Expected '{op}' but found '{found}'", token)
        self._advance()

    def _fail(self, message: str, token: Token):
        raise ExpressionParseError(
            f"{message} at position {token.position + 1}",
            expression=self._text,
            position=token.position,
        )

    def _starts_primary(self) -> bool:
        token = self._peek()
        return token.kind in ("number", "name") or (
            token.kind == "op" and token.text == "("
        )

    # --- grammar rules ---

    def _expr(self) -> Node:
        node = self._term()
        while self._accept("+", "-"):
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while True:
            if self._accept("*", "/"):
                op = self._advance().text
                node = BinaryOp(op, node, self._unary())
            elif self._starts_primary():
                node = BinaryOp("*", node, self._power())
            else:
                return node

    def _unary(self) -> Node:
        if self._accept("-"):
            self._advance()
            return Negate(self._unary())
        if self._accept("+"):
            self._advance()
            return self._unary()
        return self._power()

    def _power(self) -> Node:
        base = self._primary()
        if self._accept("^"):
            self._advance()
            return BinaryOp("^", base, self._unary())
        return base

    def _primary(self) -> Node:
        token = self._peek()

        if token.kind == "number":
            self._advance()
            return Number(token.text)

        if token.kind == "name":
            self._advance()
            name = token.text
            if name in FUNCTIONS:
                if not self._accept("("):
                    self._fail(f"Function '{name}' needs parentheses", self._peek())
                self._advance()
                argument = self._expr()
                self._expect(")")
                return Call(name, argument)
            if name in CONSTANTS:
                return Constant(name)
            return Variable(name)

        if self._accept("("):
            self._advance()
            node = self._expr()
            self._expect(")")
            return node

        found = token.text or "end of input"
        self._fail(f"Unexpected '{found}'", token)


def parse_expression(text: str) -> Node:
    """Convenience wrapper around ExpressionParser.parse()."""
    return ExpressionParser().parse(text)


def difference(lhs: Node, rhs: Node) -> Node:
    """Tree for lhs - rhs."""
    return BinaryOp("-", lhs, rhs)


def sample_point(trial: int, names: List[str]) -> Dict[str, float]:
    """
    Deterministic sample values for one numeric trial.

    Each value is the trial offset plus the variable's position among the
    sorted names plus a CRC-derived fraction of the whole identifier in
    [0, 1). Distinct names therefore never share a value within a trial.
    """
    return {
        name: (trial + 2) * 0.37 + index + (zlib.crc32(name.encode()) % 1000) / 1000
        for index, name in enumerate(sorted(set(names)))
    }


def split_reserved(names: List[str]) -> Tuple[List[str], List[str]]:
    """Partition identifiers into (variables, reserved names), deduplicated in order."""
    variables, reserved = [], []
    for name in dict.fromkeys(names):
        (reserved if name in RESERVED_NAMES else variables).append(name)
    return variables, reserved
