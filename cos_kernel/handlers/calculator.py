"""
Calculator handler — answers arithmetic asked in plain language.

Claims the UNKNOWN category: CALCULATE and the other intents without a
dedicated category are routed here.

Supported shapes:
  - percentages and tips:  "15% tip on $50", "20 percent of 80"
  - square roots:          "square root of 16", "sqrt 2"
  - powers:                "2 to the power of 10", "2 ^ 10"
  - binary arithmetic:     "5 + 7", "12 divided by 4", "3 times 4"
  - a bare number:         "what is 42"
"""

import math
import re
from typing import FrozenSet

from cos_kernel.classifier.slots import (
    NUMBER,
    OPERATOR,
    extract_amount,
    extract_math_expression,
    extract_percentage,
    rewrite_operator_words,
)
from cos_kernel.dispatch.registry import BaseHandler
from cos_kernel.models.conversation import ConversationContext
from cos_kernel.models.intent import CoarseCategory
from cos_kernel.models.result import HandlerError, HandlerResult, HandlerSuccess


class CalculationError(ValueError):
    """Raised when text holds no computable expression."""
    pass


_BINARY_RE = re.compile(rf"^(-?{NUMBER})\s*({OPERATOR})\s*(-?{NUMBER})$")
_SQRT_RE = re.compile(r"(?:square root of|sqrt)\s*\(?\s*(\d+(?:\.\d+)?)\s*\)?")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def format_number(value: float) -> str:
    """Integral values without decimals, others with at most two."""
    if not math.isfinite(value):
        raise CalculationError("the result is out of range")
    if value == int(value):
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def evaluate_binary(expression: str) -> float:
    match = _BINARY_RE.match(expression.strip())
    if not match:
        raise CalculationError(f"'{expression}' is not a supported expression")

    left, op, right = float(match.group(1)), match.group(2), float(match.group(3))
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op in ("*", "x", "×"):
        return left * right
    if op == "/":
        if right == 0:
            raise CalculationError("division by zero")
        return left / right
    return left ** right


def evaluate(text: str) -> float:
    """Evaluate the arithmetic asked for in ``text``."""
    lowered = text.lower()

    percentage = extract_percentage(lowered)
    if percentage is not None:
        amount = extract_amount(lowered)
        if amount is None:
            raise CalculationError("I need an amount to take the percentage of")
        return amount * percentage / 100

    sqrt_match = _SQRT_RE.search(lowered)
    if sqrt_match:
        return math.sqrt(float(sqrt_match.group(1)))

    expression = extract_math_expression(lowered)
    if expression:
        return evaluate_binary(expression)

    numbers = _NUMBER_RE.findall(rewrite_operator_words(lowered))
    if len(numbers) == 1:
        return float(numbers[0])
    if not numbers:
        raise CalculationError("I didn't find any numbers in your request")
    raise CalculationError("I couldn't tell which operation to use")


class CalculatorHandler(BaseHandler):
    name = "calculator"
    capabilities: FrozenSet[CoarseCategory] = frozenset({CoarseCategory.UNKNOWN})

    async def handle(self, text: str, context: ConversationContext) -> HandlerResult:
        try:
            value = evaluate(text)
            answer = format_number(value)
        except (CalculationError, OverflowError) as e:
            return HandlerError(message=f"I couldn't calculate that: {e}")
        return HandlerSuccess(
            message=f"The answer is {answer}",
            data={"result": value},
        )
