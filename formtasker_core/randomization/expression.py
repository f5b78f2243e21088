"""
Sandboxed expression evaluation.

Expressions are parsed with ``ast`` and interpreted node by node against an
explicit allow-list; nothing is compiled or executed, and no builtins,
attributes or names outside the allow-list are reachable.

Examples:
    "ID-" + randint(1000, 9999)
    Math.floor(Math.random() * 10) + 1
    choice(["red", "green"]) if random() < 0.5 else "blue"
    today(-randint(0, 30))
"""

import ast
import datetime
import math
import operator
import random
import time
from typing import Any, Callable, Dict, Optional

from ..exceptions import GenerationError

MAX_SOURCE_CHARS = 2000
MAX_STRING_CHARS = 10000
MAX_EXPONENT = 1000
MAX_RESULT_BITS = 10000
MAX_DEPTH = 100

_BIN_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_COMPARE_OPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}


def _to_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def _js_round(value: float) -> int:
    return math.floor(value + 0.5)


def _pad(value: Any, width: Any, fill: Any = "0") -> str:
    width = int(width)
    if width > MAX_STRING_CHARS:
        raise GenerationError("Padding width too large")
    return _to_text(value).rjust(width, str(fill)[:1] or "0")


def _depth(tree: ast.AST) -> int:
    deepest = 0
    stack = [(tree, 1)]
    while stack:
        node, level = stack.pop()
        deepest = max(deepest, level)
        stack.extend((child, level + 1) for child in ast.iter_child_nodes(node))
    return deepest


def parse_expression(source: str) -> ast.Expression:
    """
    Parse ``source`` and check its nesting depth.

    Raises:
        GenerationError: syntax error or nesting deeper than MAX_DEPTH
    """
    try:
        tree = ast.parse((source or "").strip(), mode="eval")
    except SyntaxError as e:
        raise GenerationError(f"Syntax error: {e.msg}") from e
    except (RecursionError, MemoryError) as e:
        raise GenerationError("Expression nested too deeply") from e
    if _depth(tree) > MAX_DEPTH:
        raise GenerationError(f"Expression nested deeper than {MAX_DEPTH} levels")
    return tree


class ExpressionEvaluator:
    """Allow-listed interpreter over a parsed expression"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.functions: Dict[str, Callable[..., Any]] = {
            "random": self.rng.random,
            "randint": lambda a, b: self.rng.randint(int(a), int(b)),
            "uniform": lambda a, b: self.rng.uniform(float(a), float(b)),
            "choice": lambda seq: self.rng.choice(list(seq)),
            "round": round,
            "floor": math.floor,
            "ceil": math.ceil,
            "abs": abs,
            "min": min,
            "max": max,
            "str": _to_text,
            "int": int,
            "float": float,
            "len": len,
            "pad": _pad,
            "today": lambda offset_days=0: (datetime.date.today() + datetime.timedelta(days=int(offset_days))).isoformat(),
            "date": lambda y, m, d: datetime.date(int(y), int(m), int(d)).isoformat(),
            "now": time.time,
        }
        self.namespaces: Dict[str, Dict[str, Any]] = {
            "Math": {
                "random": self.rng.random,
                "floor": math.floor,
                "ceil": math.ceil,
                "round": _js_round,
                "abs": abs,
                "min": min,
                "max": max,
                "sqrt": math.sqrt,
                "pow": lambda a, b: self._power(a, b),
                "PI": math.pi,
                "E": math.e,
            },
            "Date": {
                "now": lambda: int(time.time() * 1000),
            },
        }
        self.constants: Dict[str, Any] = {
            "pi": math.pi,
            "e": math.e,
            "true": True,
            "false": False,
            "null": None,
        }

    def evaluate(self, source: str) -> Any:
        """
        Evaluate ``source``.

        Raises:
            GenerationError: syntax error, disallowed construct or runtime failure
        """
        if not source or not source.strip():
            raise GenerationError("Empty expression")
        if len(source) > MAX_SOURCE_CHARS:
            raise GenerationError(f"Expression longer than {MAX_SOURCE_CHARS} characters")
        tree = parse_expression(source)
        try:
            return self._eval(tree.body)
        except GenerationError:
            raise
        except (ArithmeticError, ValueError, TypeError, IndexError, KeyError) as e:
            raise GenerationError(f"Expression error: {e}") from e
        except (RecursionError, MemoryError) as e:
            raise GenerationError(f"Expression too large to evaluate: {type(e).__name__}") from e

    def _power(self, base: Any, exponent: Any) -> Any:
        if isinstance(exponent, (int, float)) and abs(exponent) > MAX_EXPONENT:
            raise GenerationError("Exponent too large")
        if isinstance(base, int) and isinstance(exponent, int) and exponent > 0:
            if base.bit_length() * exponent > MAX_RESULT_BITS:
                raise GenerationError("Power result too large")
        return operator.pow(base, exponent)

    def _eval(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, (int, float, str, bool)) or node.value is None:
                return node.value
            raise GenerationError(f"Unsupported constant: {node.value!r}")

        if isinstance(node, ast.Name):
            if node.id in self.constants:
                return self.constants[node.id]
            raise GenerationError(f"Unknown name: {node.id}")

        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(elt) for elt in node.elts]

        if isinstance(node, ast.BinOp):
            left = self._eval(node.left)
            right = self._eval(node.right)
            if isinstance(node.op, ast.Add):
                if isinstance(left, str) or isinstance(right, str):
                    result = _to_text(left) + _to_text(right)
                    if len(result) > MAX_STRING_CHARS:
                        raise GenerationError("String result too long")
                    return result
                return operator.add(left, right)
            if isinstance(node.op, ast.Pow):
                return self._power(left, right)
            op = _BIN_OPS.get(type(node.op))
            if op is None:
                raise GenerationError(f"Unsupported operator: {type(node.op).__name__}")
            if isinstance(node.op, ast.Mult) and (isinstance(left, (str, list)) or isinstance(right, (str, list))):
                raise GenerationError("Sequence repetition is not allowed")
            return op(left, right)

        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand)
            if isinstance(node.op, ast.USub):
                return -operand
            if isinstance(node.op, ast.UAdd):
                return +operand
            if isinstance(node.op, ast.Not):
                return not operand
            raise GenerationError(f"Unsupported unary operator: {type(node.op).__name__}")

        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                result = True
                for value in node.values:
                    result = self._eval(value)
                    if not result:
                        return result
                return result
            result = False
            for value in node.values:
                result = self._eval(value)
                if result:
                    return result
            return result

        if isinstance(node, ast.Compare):
            left = self._eval(node.left)
            for op_node, comparator in zip(node.ops, node.comparators):
                op = _COMPARE_OPS.get(type(op_node))
                if op is None:
                    raise GenerationError(f"Unsupported comparison: {type(op_node).__name__}")
                right = self._eval(comparator)
                if not op(left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.IfExp):
            return self._eval(node.body) if self._eval(node.test) else self._eval(node.orelse)

        if isinstance(node, ast.Subscript):
            container = self._eval(node.value)
            if not isinstance(container, (list, str)):
                raise GenerationError("Only lists and strings can be indexed")
            return container[self._eval(node.slice)]

        if isinstance(node, ast.Attribute):
            return self._namespace_member(node)

        if isinstance(node, ast.Call):
            if node.keywords:
                raise GenerationError("Keyword arguments are not supported")
            func = self._resolve_callable(node.func)
            args = [self._eval(arg) for arg in node.args]
            return func(*args)

        raise GenerationError(f"Unsupported expression: {type(node).__name__}")

    def _namespace_member(self, node: ast.Attribute) -> Any:
        if isinstance(node.value, ast.Name) and node.value.id in self.namespaces:
            members = self.namespaces[node.value.id]
            if node.attr in members:
                return members[node.attr]
        raise GenerationError(f"Unknown attribute: {ast.unparse(node)}")

    def _resolve_callable(self, func: ast.AST) -> Callable[..., Any]:
        if isinstance(func, ast.Name) and func.id in self.functions:
            return self.functions[func.id]
        if isinstance(func, ast.Attribute):
            member = self._namespace_member(func)
            if callable(member):
                return member
        raise GenerationError(f"Function not allowed: {ast.unparse(func)}")


def check_syntax(source: str) -> Optional[str]:
    """Return a syntax or nesting error message, or None when ``source`` parses."""
    try:
        parse_expression(source)
    except GenerationError as e:
        return str(e)
    return None
