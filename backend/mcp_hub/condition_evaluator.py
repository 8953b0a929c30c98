# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Safe Condition Evaluator

Provides AST-based safe evaluation of workflow condition expressions.
Prevents arbitrary code execution while allowing logical expressions
over workflow variables and step results.

Legacy connector files were written with JavaScript operators
(`lastResult.success === true && !variables.skip`); these are normalized
to Python before parsing.
"""

import ast
import operator
import re
from typing import Any, Dict

from .core.errors import ConditionEvaluationError


# Allowed operators for safe evaluation
SAFE_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.And: operator.and_,
    ast.Or: operator.or_,
    ast.Not: operator.not_,
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
    ast.In: lambda x, y: x in y,
    ast.NotIn: lambda x, y: x not in y,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}


# Allowed functions for safe evaluation
SAFE_FUNCTIONS = {
    'len': len,
    'str': str,
    'int': int,
    'float': float,
    'bool': bool,
    'abs': abs,
    'min': min,
    'max': max,
}


MAX_CONDITION_LENGTH = 4096

# JavaScript -> Python, applied outside string literals only
_JS_REPLACEMENTS = [
    (re.compile(r'===|=='), '=='),
    (re.compile(r'!==|!='), '!='),
    (re.compile(r'&&'), ' and '),
    (re.compile(r'\|\|'), ' or '),
    (re.compile(r'!(?!=)'), ' not '),
    (re.compile(r'\btrue\b'), 'True'),
    (re.compile(r'\bfalse\b'), 'False'),
    (re.compile(r'\bnull\b'), 'None'),
    (re.compile(r'\bundefined\b'), 'None'),
]

_STRING_LITERAL = re.compile(r'("(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\')')


def normalize_expression(expression: str) -> str:
    """
    Rewrite JavaScript-style operators and literals into Python syntax.

    Quoted strings are left untouched.

    Examples:
        >>> normalize_expression("a === 1 && !b")
        'a == 1  and   not b'
    """
    parts = _STRING_LITERAL.split(expression)
    for i in range(0, len(parts), 2):
        chunk = parts[i]
        for pattern, replacement in _JS_REPLACEMENTS:
            chunk = pattern.sub(replacement, chunk)
        parts[i] = chunk
    return ''.join(parts).strip()


class SafeEvaluator(ast.NodeVisitor):
    """
    AST-based safe evaluator for boolean expressions.

    Restricts evaluation to:
    - Literals, list/tuple/dict displays and conditional expressions
    - Basic arithmetic and comparison operators
    - Logical operators (and, or, not)
    - Safe built-in functions (len, str, int, etc.)
    - Variable references from provided context
    - Attribute and subscript access into mappings and sequences
    """

    def __init__(self, variables: Dict[str, Any]):
        self.variables = variables

    def visit_Expression(self, node):
        return self.visit(node.body)

    def visit_Constant(self, node):
        return node.value

    def visit_Name(self, node):
        if node.id.startswith('_'):
            raise ValueError(f"Private name not allowed: {node.id}")
        if node.id in self.variables:
            return self.variables[node.id]
        elif node.id in SAFE_FUNCTIONS:
            return SAFE_FUNCTIONS[node.id]
        else:
            raise ValueError(f"Undefined variable: {node.id}")

    def visit_Attribute(self, node):
        # Only mapping lookups: `lastResult.success` reads lastResult["success"]
        if node.attr.startswith('_'):
            raise ValueError(f"Private attribute not allowed: {node.attr}")

        value = self.visit(node.value)
        if isinstance(value, dict):
            return value.get(node.attr)
        if value is None:
            return None
        raise ValueError(f"Attribute access not allowed on {type(value).__name__}")

    def visit_Subscript(self, node):
        value = self.visit(node.value)
        key = self.visit(node.slice)

        if isinstance(value, dict):
            return value.get(key)
        if isinstance(value, (list, tuple, str)):
            if not isinstance(key, int):
                raise ValueError("Sequence index must be an integer")
            try:
                return value[key]
            except IndexError:
                return None
        if value is None:
            return None
        raise ValueError(f"Subscript not allowed on {type(value).__name__}")

    def visit_List(self, node):
        return [self.visit(elt) for elt in node.elts]

    def visit_Tuple(self, node):
        return tuple(self.visit(elt) for elt in node.elts)

    def visit_Dict(self, node):
        if any(key is None for key in node.keys):
            raise ValueError("Dict unpacking not allowed")
        return {self.visit(k): self.visit(v) for k, v in zip(node.keys, node.values)}

    def visit_IfExp(self, node):
        if self.visit(node.test):
            return self.visit(node.body)
        return self.visit(node.orelse)

    def visit_BinOp(self, node):
        left = self.visit(node.left)
        right = self.visit(node.right)
        op_type = type(node.op)

        if op_type not in SAFE_OPERATORS:
            raise ValueError(f"Operator not allowed: {op_type.__name__}")

        return SAFE_OPERATORS[op_type](left, right)

    def visit_UnaryOp(self, node):
        operand = self.visit(node.operand)
        op_type = type(node.op)

        if op_type not in SAFE_OPERATORS:
            raise ValueError(f"Operator not allowed: {op_type.__name__}")

        return SAFE_OPERATORS[op_type](operand)

    def visit_Compare(self, node):
        left = self.visit(node.left)

        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            op_type = type(op)

            if op_type not in SAFE_OPERATORS:
                raise ValueError(f"Operator not allowed: {op_type.__name__}")

            if not SAFE_OPERATORS[op_type](left, right):
                return False

            left = right

        return True

    def visit_BoolOp(self, node):
        # Short-circuits like Python: `x and x.y` never touches x.y when x is falsy
        if isinstance(node.op, ast.And):
            result = True
            for value in node.values:
                result = self.visit(value)
                if not result:
                    return result
            return result
        elif isinstance(node.op, ast.Or):
            result = False
            for value in node.values:
                result = self.visit(value)
                if result:
                    return result
            return result
        else:
            raise ValueError(f"Boolean operator not allowed: {type(node.op).__name__}")

    def visit_Call(self, node):
        if not isinstance(node.func, ast.Name) or node.func.id not in SAFE_FUNCTIONS:
            raise ValueError(f"Function not allowed: {getattr(node.func, 'id', 'unknown')}")

        func = SAFE_FUNCTIONS[node.func.id]
        args = [self.visit(arg) for arg in node.args]
        kwargs = {kw.arg: self.visit(kw.value) for kw in node.keywords}

        return func(*args, **kwargs)

    def generic_visit(self, node):
        raise ValueError(f"AST node type not allowed: {type(node).__name__}")


def evaluate_condition(condition: str, variables: Dict[str, Any]) -> bool:
    """
    Safely evaluate a boolean condition string.

    Args:
        condition: Expression string (e.g., "lastResult.success and count > 5")
        variables: Variable context mapping names to values

    Returns:
        Boolean result of evaluation

    Raises:
        ConditionEvaluationError: If the condition is empty, has a syntax
            error, or uses unsafe or undefined names

    Examples:
        >>> evaluate_condition("count > 5", {"count": 10})
        True
        >>> evaluate_condition("lastResult.success === true", {"lastResult": {"success": False}})
        False
    """
    if not condition or not condition.strip():
        raise ConditionEvaluationError(condition or "", "empty condition")

    if len(condition) > MAX_CONDITION_LENGTH:
        raise ConditionEvaluationError(
            condition[:80], f"expression longer than {MAX_CONDITION_LENGTH} characters"
        )

    try:
        tree = ast.parse(normalize_expression(condition), mode='eval')
    except SyntaxError as e:
        raise ConditionEvaluationError(condition, f"invalid syntax: {e.msg}")
    except (ValueError, RecursionError, MemoryError) as e:
        raise ConditionEvaluationError(condition[:80], f"cannot parse: {type(e).__name__}")

    try:
        result = SafeEvaluator(variables).visit(tree)
    except ConditionEvaluationError:
        raise
    except Exception as e:
        raise ConditionEvaluationError(condition, str(e))

    return bool(result)
