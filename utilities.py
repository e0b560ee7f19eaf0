"""
Utilities module for the Janus interpreter
Numeric helpers and error builders shared by the value model and the
destruct algebra
"""

from typing import Optional
import math

from error_handling import (
  JanusValueError,
  PatternMismatchError,
  TypeMismatchError,
)


# ==================== NUMERIC UTILITIES ====================

def is_integral(number: float) -> bool:
  """
  Check whether a float holds a whole number

  Examples:
    is_integral(3.0) -> True
    is_integral(2.5) -> False
    is_integral(float('inf')) -> False
  """
  return math.isfinite(number) and float(number).is_integer()


def float_divide(dividend: float, divisor: float) -> float:
  """
  IEEE-754 division: dividing by zero gives +/-inf or NaN instead of raising

  Examples:
    float_divide(1.0, 0.0) -> inf
    float_divide(-1.0, 0.0) -> -inf
    float_divide(0.0, 0.0) -> nan
  """
  if divisor != 0:
    return dividend / divisor
  if dividend == 0 or math.isnan(dividend):
    return math.nan
  return math.copysign(math.inf, dividend) * math.copysign(1.0, divisor)


def format_number(number: float) -> str:
  """
  Textual form of a number, as produced by a number-to-string cast

  Examples:
    format_number(3.0) -> "3"
    format_number(2.5) -> "2.5"
    format_number(float('nan')) -> "NaN"
  """
  if math.isnan(number):
    return "NaN"
  if math.isinf(number):
    return "inf" if number > 0 else "-inf"
  if is_integral(number):
    return f"{number:.0f}"
  return repr(float(number))


def parse_number(text: str) -> float:
  """
  Parse text as a number; anything unparseable becomes NaN

  Examples:
    parse_number("42") -> 42.0
    parse_number("4.5") -> 4.5
    parse_number("four") -> nan
  """
  # float() tolerates surrounding whitespace and digit separators, a cast does not
  if not text or text != text.strip() or '_' in text:
    return math.nan
  try:
    return float(text)
  except ValueError:
    return math.nan


def repetition_count(factor: float, what: str = "collection") -> int:
  """
  Validate a replication factor and return it as an int

  Raises:
    JanusValueError if the factor is fractional, negative or not finite
  """
  if not is_integral(factor):
    raise JanusValueError(
      f"Cannot multiply {what} by non-integer number {format_number(factor)}"
    )
  if factor < 0:
    raise JanusValueError(
      f"Cannot multiply {what} by negative number {format_number(factor)}"
    )
  return int(factor)


# ==================== ERROR MESSAGE BUILDERS ====================

def operation_error(op: str, left_type: str, right_type: str) -> JanusValueError:
  """
  Generate operation error

  Args:
    op: Operation name
    left_type: Left operand type
    right_type: Right operand type

  Returns:
    JanusValueError with formatted message
  """
  return JanusValueError(
    f"Cannot {op} {left_type} and {right_type}"
  )


def type_mismatch_error(expected: str, actual: str) -> TypeMismatchError:
  """
  Generate cast precondition error

  Args:
    expected: Type the cast claimed to convert from
    actual: Actual type of the value

  Returns:
    TypeMismatchError with expected/found filled in
  """
  return TypeMismatchError(
    f"Cast expected a {expected} value, got a {actual}",
    expected=expected,
    found=actual
  )


def pattern_mismatch(message: str, expected: Optional[str] = None,
                     found: Optional[str] = None) -> PatternMismatchError:
  """Generate a pattern mismatch error with optional expected/found details"""
  return PatternMismatchError(message, expected=expected, found=found)
