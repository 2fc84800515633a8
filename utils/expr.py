# utils/expr.py

import ast
import operator

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 64
# Bound on every intermediate result.
MAX_VALUE = 10 ** 12


def _bounded(value):
    if abs(value) > MAX_VALUE:
        raise ValueError("value too large")
    return value


def _eval(node):
    if isinstance(node, ast.Expression):
        return _eval(node.body)
    if isinstance(node, ast.Constant) and type(node.value) in (int, float):
        return _bounded(node.value)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
        return _UNARY[type(node.op)](_eval(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
        left, right = _eval(node.left), _eval(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError("exponent too large")
        return _bounded(_BINARY[type(node.op)](left, right))
    raise ValueError(f"unsupported expression: {ast.dump(node)}")


def evaluate_interval(text: str) -> float:
    """Evaluate a day count like ``"90"``, ``"12*30"`` or ``"2.5 * 360"``."""
    text = (text or "").strip()
    if not text:
        raise ValueError("empty interval")
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as e:
        raise ValueError(f"invalid interval: {text!r}") from e
    try:
        return float(_eval(tree))
    except (ZeroDivisionError, OverflowError, TypeError) as e:
        raise ValueError(f"invalid interval: {text!r}") from e
