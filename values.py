"""
Janus value model
Immutable runtime values, casts between them, and the value-level operators
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from error_handling import JanusValueError
from utilities import (
  float_divide,
  format_number,
  operation_error,
  parse_number,
  repetition_count,
  type_mismatch_error,
)


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class ValueType(str, Enum):
  STRING = "string"
  NUMBER = "number"
  TUPLE = "tuple"
  ARRAY = "array"
  BOOL = "bool"

  def __str__(self) -> str:
    return self.value


@dataclass(frozen=True)
class NumberValue:
  value: float


@dataclass(frozen=True)
class StringValue:
  value: str


@dataclass(frozen=True)
class ArrayValue:
  items: Tuple["Value", ...] = ()


@dataclass(frozen=True)
class TupleValue:
  items: Tuple["Value", ...] = ()


@dataclass(frozen=True)
class BoolValue:
  value: bool


Value = Union[NumberValue, StringValue, ArrayValue, TupleValue, BoolValue]

_TYPE_TAGS = {
    NumberValue: ValueType.NUMBER,
    StringValue: ValueType.STRING,
    ArrayValue: ValueType.ARRAY,
    TupleValue: ValueType.TUPLE,
    BoolValue: ValueType.BOOL,
}


def make_array(*items: Value) -> ArrayValue:
  """Create an array value from its elements"""
  return ArrayValue(tuple(items))


def make_tuple(*items: Value) -> TupleValue:
  """Create a tuple value from its elements"""
  return TupleValue(tuple(items))


def from_python(obj) -> Value:
  """Convert plain Python data (bool, int, float, str, list, tuple) to a Value"""
  if isinstance(obj, bool):
    return BoolValue(obj)
  if isinstance(obj, (int, float)):
    return NumberValue(float(obj))
  if isinstance(obj, str):
    return StringValue(obj)
  if isinstance(obj, list):
    return ArrayValue(tuple(from_python(item) for item in obj))
  if isinstance(obj, tuple):
    return TupleValue(tuple(from_python(item) for item in obj))
  raise TypeError(f"Cannot convert {type(obj).__name__} to a Janus value")


# ============================================================================
# CLASSIFICATION AND DISPLAY
# ============================================================================

def type_of(value: Value) -> ValueType:
  """Return the type tag of a value"""
  return _TYPE_TAGS[type(value)]


def is_collection(value: Value) -> bool:
  """Strings and arrays can be concatenated and replicated"""
  return isinstance(value, (StringValue, ArrayValue))


def length_of(value: Value) -> int:
  if isinstance(value, StringValue):
    return len(value.value)
  return len(value.items)


def format_value(value: Value) -> str:
  """Render a value the way it would be written in source"""
  if isinstance(value, NumberValue):
    return format_number(value.value)
  if isinstance(value, StringValue):
    escaped = value.value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n').replace('\t', '\\t')
    return f'"{escaped}"'
  if isinstance(value, BoolValue):
    return "true" if value.value else "false"
  if isinstance(value, ArrayValue):
    return "[" + ", ".join(format_value(item) for item in value.items) + "]"
  if len(value.items) == 1:
    return f"({format_value(value.items[0])},)"
  return "(" + ", ".join(format_value(item) for item in value.items) + ")"


def describe(value: Value) -> str:
  """Type-qualified rendering used in error messages"""
  return f"{type_of(value)} {format_value(value)}"


# ============================================================================
# CASTS
# ============================================================================

def _join_strings(items: Tuple[Value, ...], source: ValueType) -> StringValue:
  parts = []
  for item in items:
    if not isinstance(item, StringValue):
      raise JanusValueError(
        f"Cannot convert {source} containing {type_of(item)} to string",
        expected="string elements",
        found=describe(item)
      )
    parts.append(item.value)
  return StringValue("".join(parts))


def cast(value: Value, to: ValueType, from_: ValueType) -> Value:
  """
  Convert a value between types.

  The value must actually be of type `from_`; casting to the same type is
  the identity. Number and string convert textually (unparseable text gives
  NaN), strings split into one-character strings for arrays and tuples and
  those join back, arrays and tuples re-tag into each other, bools convert to
  and from "true"/"false". Everything else has no conversion.
  """
  actual = type_of(value)
  if actual != from_:
    raise type_mismatch_error(str(from_), str(actual))
  if to == from_:
    return value

  if to == ValueType.NUMBER and isinstance(value, StringValue):
    return NumberValue(parse_number(value.value))
  if to == ValueType.STRING:
    if isinstance(value, NumberValue):
      return StringValue(format_number(value.value))
    if isinstance(value, BoolValue):
      return StringValue("true" if value.value else "false")
    if isinstance(value, (ArrayValue, TupleValue)):
      return _join_strings(value.items, actual)
  if isinstance(value, StringValue):
    chars = tuple(StringValue(ch) for ch in value.value)
    if to == ValueType.ARRAY:
      return ArrayValue(chars)
    if to == ValueType.TUPLE:
      return TupleValue(chars)
    if to == ValueType.BOOL:
      if value.value in ("true", "false"):
        return BoolValue(value.value == "true")
      raise JanusValueError(
        f"Cannot convert string {format_value(value)} to bool",
        expected='"true" or "false"',
        found=format_value(value)
      )
  if to == ValueType.ARRAY and isinstance(value, TupleValue):
    return ArrayValue(value.items)
  if to == ValueType.TUPLE and isinstance(value, ArrayValue):
    return TupleValue(value.items)

  raise JanusValueError(f"Cannot convert {actual} to {to}")


# ============================================================================
# OPERATORS
# ============================================================================

def add_values(left: Value, right: Value) -> Value:
  """Numeric addition, or concatenation of two strings or two arrays"""
  if isinstance(left, NumberValue) and isinstance(right, NumberValue):
    return NumberValue(left.value + right.value)
  if isinstance(left, StringValue) and isinstance(right, StringValue):
    return StringValue(left.value + right.value)
  if isinstance(left, ArrayValue) and isinstance(right, ArrayValue):
    return ArrayValue(left.items + right.items)
  raise operation_error("add", describe(left), describe(right))


def sub_values(left: Value, right: Value) -> Value:
  if isinstance(left, NumberValue) and isinstance(right, NumberValue):
    return NumberValue(left.value - right.value)
  raise operation_error("subtract", describe(left), describe(right))


def div_values(left: Value, right: Value) -> Value:
  if isinstance(left, NumberValue) and isinstance(right, NumberValue):
    return NumberValue(float_divide(left.value, right.value))
  raise operation_error("divide", describe(left), describe(right))


def and_values(left: Value, right: Value) -> Value:
  if isinstance(left, BoolValue) and isinstance(right, BoolValue):
    return BoolValue(left.value and right.value)
  raise operation_error("and", describe(left), describe(right))


def or_values(left: Value, right: Value) -> Value:
  if isinstance(left, BoolValue) and isinstance(right, BoolValue):
    return BoolValue(left.value or right.value)
  raise operation_error("or", describe(left), describe(right))


def empty_like(value: Value) -> Value:
  """The empty string or array of the same kind as `value`"""
  if isinstance(value, StringValue):
    return StringValue("")
  if isinstance(value, ArrayValue):
    return ArrayValue(())
  raise JanusValueError(f"Cannot repeat {describe(value)}")


def repeat_value(value: Value, count: int) -> Value:
  """Replicate a string or array `count` times"""
  if isinstance(value, StringValue):
    return StringValue(value.value * count)
  if isinstance(value, ArrayValue):
    return ArrayValue(value.items * count)
  raise JanusValueError(f"Cannot repeat {describe(value)}")


def multiply_values(left: Value, right: Value) -> Value:
  """
  Multiply two numbers, or replicate a string/array by a number on
  either side. The replication factor must be a non-negative integer.
  """
  if isinstance(left, NumberValue) and isinstance(right, NumberValue):
    return NumberValue(left.value * right.value)
  if is_collection(left) and isinstance(right, NumberValue):
    return repeat_value(left, repetition_count(right.value, str(type_of(left))))
  if isinstance(left, NumberValue) and is_collection(right):
    return repeat_value(right, repetition_count(left.value, str(type_of(right))))
  raise operation_error("multiply", describe(left), describe(right))


def negate_value(value: Value) -> Value:
  if isinstance(value, NumberValue):
    return NumberValue(-value.value)
  raise JanusValueError(f"Cannot apply unary operator - to {describe(value)}")


def invert_value(value: Value) -> Value:
  if isinstance(value, BoolValue):
    return BoolValue(not value.value)
  raise JanusValueError(f"Cannot apply unary operator ! to {describe(value)}")
