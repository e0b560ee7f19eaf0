"""
Destruct algebra for Janus
Given `left op right = target` with one side already known, compute the value
the unknown side must take. Each inverse returns the list of pre-images the
unknown side is destructed against, in order.
"""

from typing import Callable, Dict, List, Tuple

from ast_nodes import Operator
from error_handling import JanusValueError
from utilities import float_divide, format_number, is_integral, pattern_mismatch
from values import (
  ArrayValue,
  BoolValue,
  NumberValue,
  StringValue,
  Value,
  describe,
  format_value,
  is_collection,
  length_of,
  type_of,
)


Inverse = Callable[[Value, Value], List[Value]]


# ============================================================================
# COLLECTION HELPERS
# ============================================================================

def _slice(value: Value, start: int, stop: int) -> Value:
  if isinstance(value, StringValue):
    return StringValue(value.value[start:stop])
  return ArrayValue(value.items[start:stop])


def _elements(value: Value):
  if isinstance(value, StringValue):
    return value.value
  return value.items


def _same_collection_kind(known: Value, target: Value) -> bool:
  return is_collection(known) and type(known) is type(target)


def count_repetitions(known: Value, target: Value) -> int:
  """How many times `known` is tiled to make `target` (known * n = target)"""
  size = length_of(known)
  if size == 0:
    raise JanusValueError(
      f"Cannot infer a repeat count from an empty {type_of(known)}",
      found=describe(target)
    )
  if length_of(target) % size != 0:
    raise pattern_mismatch(
      f"Length of target {type_of(target)} is not divisible by length of {format_value(known)}",
      expected=f"a multiple of {size} elements",
      found=format_value(target)
    )
  pattern = _elements(known)
  for index, element in enumerate(_elements(target)):
    if element != pattern[index % size]:
      raise pattern_mismatch(
        f"Element at index {index} of target {type_of(target)} does not repeat {format_value(known)}",
        expected=format_value(known) + " repeated",
        found=format_value(target)
      )
  return length_of(target) // size


def split_repetition(target: Value, factor: float) -> Tuple[Value, int]:
  """Split `target` into `factor` equal chunks (x * factor = target)"""
  if not is_integral(factor):
    raise JanusValueError(
      f"Cannot multiply {type_of(target)} by non-integer number {format_number(factor)}"
    )
  count = int(factor)
  length = length_of(target)
  if count <= 0 or count > length:
    raise pattern_mismatch(
      f"Cannot split {type_of(target)} of length {length} into {count} equal parts",
      found=format_value(target)
    )
  if length % count != 0:
    raise pattern_mismatch(
      f"Length of {type_of(target)} {format_value(target)} is not divisible by {count}"
    )
  size = length // count
  chunk = _slice(target, 0, size)
  for index in range(1, count):
    part = _slice(target, index * size, (index + 1) * size)
    if part != chunk:
      raise pattern_mismatch(
        f"Part {index + 1} of {count} does not match the first part",
        expected=format_value(chunk),
        found=format_value(part)
      )
  return chunk, count


# ============================================================================
# ADDITION
# ============================================================================

def add_left_inverse(known: Value, target: Value) -> List[Value]:
  """known + x = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(target.value - known.value)]
  if isinstance(known, StringValue) and isinstance(target, StringValue):
    if not target.value.startswith(known.value):
      raise pattern_mismatch(
        f"Expected {format_value(target)} to start with {format_value(known)}",
        expected=f"a string starting with {format_value(known)}",
        found=format_value(target)
      )
    return [StringValue(target.value[len(known.value):])]
  if isinstance(known, ArrayValue) and isinstance(target, ArrayValue):
    if target.items[:len(known.items)] != known.items:
      raise pattern_mismatch(
        f"Expected {format_value(target)} to start with {format_value(known)}",
        expected=f"an array starting with {format_value(known)}",
        found=format_value(target)
      )
    return [ArrayValue(target.items[len(known.items):])]
  raise JanusValueError(
    f"Cannot add {describe(known)} to something to get {describe(target)}"
  )


def add_right_inverse(known: Value, target: Value) -> List[Value]:
  """x + known = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(target.value - known.value)]
  if isinstance(known, StringValue) and isinstance(target, StringValue):
    if not target.value.endswith(known.value):
      raise pattern_mismatch(
        f"Expected {format_value(target)} to end with {format_value(known)}",
        expected=f"a string ending with {format_value(known)}",
        found=format_value(target)
      )
    return [StringValue(target.value[:len(target.value) - len(known.value)])]
  if isinstance(known, ArrayValue) and isinstance(target, ArrayValue):
    cut = len(target.items) - len(known.items)
    if cut < 0 or target.items[cut:] != known.items:
      raise pattern_mismatch(
        f"Expected {format_value(target)} to end with {format_value(known)}",
        expected=f"an array ending with {format_value(known)}",
        found=format_value(target)
      )
    return [ArrayValue(target.items[:cut])]
  raise JanusValueError(
    f"Cannot add something to {describe(known)} to get {describe(target)}"
  )


# ============================================================================
# SUBTRACTION AND DIVISION
# ============================================================================

def sub_left_inverse(known: Value, target: Value) -> List[Value]:
  """known - x = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(known.value - target.value)]
  raise JanusValueError(
    f"Cannot subtract something from {describe(known)} to get {describe(target)}"
  )


def sub_right_inverse(known: Value, target: Value) -> List[Value]:
  """x - known = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(target.value + known.value)]
  raise JanusValueError(
    f"Cannot subtract {describe(known)} from something to get {describe(target)}"
  )


def div_left_inverse(known: Value, target: Value) -> List[Value]:
  """known / x = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(float_divide(known.value, target.value))]
  raise JanusValueError(
    f"Cannot divide {describe(known)} by something to get {describe(target)}"
  )


def div_right_inverse(known: Value, target: Value) -> List[Value]:
  """x / known = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(target.value * known.value)]
  raise JanusValueError(
    f"Cannot divide something by {describe(known)} to get {describe(target)}"
  )


# ============================================================================
# MULTIPLICATION
# ============================================================================

def mul_left_inverse(known: Value, target: Value) -> List[Value]:
  """known * x = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(float_divide(target.value, known.value))]
  if isinstance(known, NumberValue) and is_collection(target):
    # n * x replicates x by value, so x is constructed once
    chunk, _ = split_repetition(target, known.value)
    return [chunk]
  if _same_collection_kind(known, target):
    return [NumberValue(float(count_repetitions(known, target)))]
  raise JanusValueError(
    f"Cannot multiply {describe(known)} by something to get {describe(target)}"
  )


def mul_right_inverse(known: Value, target: Value) -> List[Value]:
  """x * known = target"""
  if isinstance(known, NumberValue) and isinstance(target, NumberValue):
    return [NumberValue(float_divide(target.value, known.value))]
  if isinstance(known, NumberValue) and is_collection(target):
    # x * n re-constructs x once per repetition, so match it once per chunk
    chunk, count = split_repetition(target, known.value)
    return [chunk] * count
  if _same_collection_kind(known, target):
    return [NumberValue(float(count_repetitions(known, target)))]
  raise JanusValueError(
    f"Cannot multiply something by {describe(known)} to get {describe(target)}"
  )


# ============================================================================
# LOGICAL OPERATORS
# ============================================================================

def logical_inverse(known: Value, target: Value) -> List[Value]:
  """&& and || lose information: true && x and false || x fix nothing about x"""
  if isinstance(known, BoolValue) and isinstance(target, BoolValue):
    raise JanusValueError(
      f"Boolean operators cannot be inverted: one known operand {format_value(known)} "
      f"does not determine the other from {format_value(target)}"
    )
  raise JanusValueError(
    f"Cannot apply a boolean operator to {describe(known)} to get {describe(target)}"
  )


# ============================================================================
# DISPATCH
# ============================================================================

LEFT_KNOWN_INVERSES: Dict[Operator, Inverse] = {
    Operator.ADD: add_left_inverse,
    Operator.SUB: sub_left_inverse,
    Operator.MUL: mul_left_inverse,
    Operator.DIV: div_left_inverse,
    Operator.AND: logical_inverse,
    Operator.OR: logical_inverse,
}

RIGHT_KNOWN_INVERSES: Dict[Operator, Inverse] = {
    Operator.ADD: add_right_inverse,
    Operator.SUB: sub_right_inverse,
    Operator.MUL: mul_right_inverse,
    Operator.DIV: div_right_inverse,
    Operator.AND: logical_inverse,
    Operator.OR: logical_inverse,
}


def invert_left_known(op: Operator, known: Value, target: Value) -> List[Value]:
  """Pre-images of the right operand of `known op x = target`"""
  return LEFT_KNOWN_INVERSES[op](known, target)


def invert_right_known(op: Operator, known: Value, target: Value) -> List[Value]:
  """Pre-images of the left operand of `x op known = target`"""
  return RIGHT_KNOWN_INVERSES[op](known, target)
