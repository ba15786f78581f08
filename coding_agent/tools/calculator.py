"""
Arithmetic tool.

Safely evaluates mathematical expressions using SymPy's parser.
Supports scientific calculator syntax including:
- Factorial notation: 5!
- Caret exponentiation: 2^16
- Degree notation: sin(30 degrees)

SymPy's parser evaluates generated Python code, so input is checked against
a character and name whitelist first and evaluated with a namespace that
holds only those names and no builtins.
"""

import logging
import math
import re

import sympy
from pydantic import BaseModel, Field
from sympy import N, S
from sympy.parsing.sympy_parser import (
    convert_xor,
    factorial_notation,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .base import Tool, ToolResult, tool_error, tool_success

logger = logging.getLogger(__name__)

TRANSFORMATIONS = (
    standard_transformations
    + (implicit_multiplication_application,)
    + (convert_xor,)  # 2^16 -> 2**16
    + (factorial_notation,)  # 5! -> factorial(5)
)

# Names a model may use in an expression, mapped to SymPy objects.
ALLOWED_NAMES = {
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "sinh": sympy.sinh,
    "cosh": sympy.cosh,
    "tanh": sympy.tanh,
    "exp": sympy.exp,
    "log": sympy.log,
    "ln": sympy.log,
    "sqrt": sympy.sqrt,
    "root": sympy.root,
    "abs": sympy.Abs,
    "floor": sympy.floor,
    "ceiling": sympy.ceiling,
    "factorial": sympy.factorial,
    "max": sympy.Max,
    "min": sympy.Min,
    "pi": sympy.pi,
    "e": sympy.E,
}

# Emitted by the parser's own transformations, never accepted from input.
_PARSER_NAMES = {
    "Integer": sympy.Integer,
    "Float": sympy.Float,
    "Rational": sympy.Rational,
    "Symbol": sympy.Symbol,
    "Function": sympy.Function,
}

_ALLOWED_CHARS = re.compile(r"^[0-9A-Za-z\s+\-*/^%!().,]*$")
_NUMBER = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NAME = re.compile(r"[A-Za-z]\w*")
_ATTRIBUTE_ACCESS = re.compile(r"\.\s*[A-Za-z]")


def _namespace() -> dict:
    return {"__builtins__": {}, **_PARSER_NAMES, **ALLOWED_NAMES}


class CalculateArgs(BaseModel):
    expression: str = Field(description="Arithmetic expression to evaluate")


def preprocess_expression(expression: str) -> str:
    """
    Preprocess expression for SymPy compatibility.

    Handles:
        - Degree notation: sin(30 degrees) -> sin(30 * pi / 180)
        - ceil function: ceil(x) -> ceiling(x) (SymPy naming)
    """
    degree_pattern = r"(\d+(?:\.\d+)?)\s*(?:degrees?|deg)\b"
    expression = re.sub(degree_pattern, r"(\1 * pi / 180)", expression, flags=re.IGNORECASE)
    return re.sub(r"\bceil\b", "ceiling", expression)


def check_expression(expression: str) -> None:
    """
    Reject anything that is not plain arithmetic.

    Raises:
        ValueError: On characters, names or attribute access outside the
            calculator syntax
    """
    if not _ALLOWED_CHARS.match(expression):
        bad = sorted({c for c in expression if not _ALLOWED_CHARS.match(c)})
        raise ValueError(f"Unsupported characters in expression: {''.join(bad)}")

    residue = _NUMBER.sub(" ", expression)
    if _ATTRIBUTE_ACCESS.search(residue):
        raise ValueError("Attribute access is not allowed in expressions")
    for name in _NAME.findall(residue):
        if name not in ALLOWED_NAMES:
            raise ValueError(
                f"Unknown name '{name}'. Allowed: {', '.join(sorted(ALLOWED_NAMES))}"
            )


def evaluate_expression(expression: str) -> float | int:
    """
    Evaluate an expression to a real number.

    Raises:
        ValueError: If the expression is empty, uses anything outside the
            calculator syntax, or its value is not a finite real number
        SyntaxError: If the expression cannot be parsed
    """
    if not expression or not expression.strip():
        raise ValueError('Expression is empty. Provide one like {"expression": "2+2"}')

    prepared = preprocess_expression(expression)
    check_expression(prepared)

    expr = parse_expr(
        prepared,
        local_dict={},
        global_dict=_namespace(),
        transformations=TRANSFORMATIONS,
        evaluate=True,
    )
    evaluated = N(expr)
    if evaluated.has(S.ComplexInfinity, S.Infinity, S.NegativeInfinity, S.NaN):
        raise ValueError("Result is not a finite number (division by zero?)")

    value = complex(evaluated)
    if not (math.isfinite(value.real) and math.isfinite(value.imag)):
        raise ValueError("Result is not a finite number (division by zero?)")
    if value.imag != 0:
        raise ValueError(f"Result is complex: {value}")

    result = value.real
    if result.is_integer():
        return int(result)
    return result


def calculate(args: CalculateArgs) -> ToolResult:
    """Run the calculate tool with validated arguments."""
    try:
        return tool_success(evaluate_expression(args.expression))
    except SyntaxError as e:
        logger.debug("Syntax error parsing expression '%s': %s", args.expression, e)
        return tool_error(f"Syntax error: {e}")
    except (ValueError, TypeError, ZeroDivisionError) as e:
        logger.debug("Could not evaluate '%s': %s", args.expression, e)
        return tool_error(str(e))
    except Exception as e:
        logger.debug("Calculation error for '%s': %s", args.expression, e)
        return tool_error(f"Calculation error: {e}")


calculate_tool = Tool(
    name="calculate",
    description="Evaluate an arithmetic expression (+, -, *, /, ^, parentheses, sqrt, etc.)",
    parameters={
        "expression": "string - Arithmetic expression (e.g., '2 + 3 * 4' evaluates to 14)"
    },
    args_schema=CalculateArgs,
    execute=calculate,
)
