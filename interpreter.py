"""
Janus Interpreter - Bidirectional Evaluation
Every rule is a pattern and a constructor. Running forward destructs the input
against the pattern and constructs the output; running backward swaps the two
and walks the rules in reverse. No module-level mutable state: a function
table can be shared by any number of concurrent evaluations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional
import pykka

from ast_nodes import (
  ArrayLiteral,
  BinaryOperation,
  BoolLiteral,
  Call,
  Cast,
  Expr,
  Functions,
  Ident,
  NumberLiteral,
  Operator,
  PolyIdent,
  StringLiteral,
  TupleLiteral,
  UnaryOperation,
  UnaryOperator,
  Wildcard,
  format_expr,
)
from destruct_algebra import invert_left_known, invert_right_known
from error_handling import JanusRuntimeError, JanusValueError, RuleFrame
from utilities import operation_error, pattern_mismatch, repetition_count
from values import (
  ArrayValue,
  BoolValue,
  NumberValue,
  StringValue,
  TupleValue,
  Value,
  add_values,
  and_values,
  cast,
  describe,
  div_values,
  empty_like,
  format_value,
  from_python,
  invert_value,
  is_collection,
  multiply_values,
  negate_value,
  or_values,
  sub_values,
  type_of,
)
from variables import Variables


BINARY_OPERATIONS: Dict[Operator, Callable[[Value, Value], Value]] = {
    Operator.ADD: add_values,
    Operator.SUB: sub_values,
    Operator.MUL: multiply_values,
    Operator.DIV: div_values,
    Operator.AND: and_values,
    Operator.OR: or_values,
}

# Both unary operators are their own inverse
UNARY_OPERATIONS: Dict[UnaryOperator, Callable[[Value], Value]] = {
    UnaryOperator.NEG: negate_value,
    UnaryOperator.NOT: invert_value,
}

_VALUE_TYPES = (NumberValue, StringValue, ArrayValue, TupleValue, BoolValue)


class Direction(str, Enum):
  FORWARD = "forward"
  BACKWARD = "backward"


# ============================================================================
# CONSTRUCTION
# ============================================================================

def construct(expr: Expr, variables: Variables, functions: Functions, debug: bool = False) -> Value:
  """Build a value from an expression using the bindings of the current rule"""
  if isinstance(expr, NumberLiteral):
    return NumberValue(float(expr.value))
  if isinstance(expr, StringLiteral):
    return StringValue(expr.value)
  if isinstance(expr, BoolLiteral):
    return BoolValue(expr.value)
  if isinstance(expr, ArrayLiteral):
    return ArrayValue(tuple(construct(item, variables, functions, debug) for item in expr.items))
  if isinstance(expr, TupleLiteral):
    return TupleValue(tuple(construct(item, variables, functions, debug) for item in expr.items))

  if isinstance(expr, Ident):
    value = variables.get(expr.name)
    if value is None:
      raise JanusValueError(f"Unbound identifier `{expr.name}`")
    return value
  if isinstance(expr, PolyIdent):
    value = variables.take_polyident(expr.name)
    if value is None:
      raise JanusValueError(f"Polyident ${expr.name} was never captured")
    return value
  if isinstance(expr, Wildcard):
    raise JanusValueError("Cannot construct the wildcard `_`")

  if isinstance(expr, BinaryOperation):
    if expr.op == Operator.MUL:
      return construct_multiplication(expr, variables, functions, debug)
    left = construct(expr.left, variables, functions, debug)
    right = construct(expr.right, variables, functions, debug)
    return BINARY_OPERATIONS[expr.op](left, right)
  if isinstance(expr, UnaryOperation):
    return UNARY_OPERATIONS[expr.op](construct(expr.operand, variables, functions, debug))
  if isinstance(expr, Cast):
    return cast(construct(expr.operand, variables, functions, debug), expr.to, expr.from_)
  if isinstance(expr, Call):
    argument = construct(expr.argument, variables, functions, debug)
    return run_function(expr.function, argument, functions, debug)

  raise TypeError(f"Not a Janus expression: {expr!r}")


def construct_multiplication(expr: BinaryOperation, variables: Variables,
                             functions: Functions, debug: bool = False) -> Value:
  """
  Construct `left * right`.

  The right side is built first. With a number on the right the left side is
  built again for every repetition, so a polyident on the left consumes one
  captured value per copy.
  """
  right = construct(expr.right, variables, functions, debug)
  if not isinstance(right, NumberValue):
    return multiply_values(construct(expr.left, variables, functions, debug), right)

  first = construct(expr.left, variables, functions, debug)
  if isinstance(first, NumberValue):
    return NumberValue(first.value * right.value)
  if not is_collection(first):
    raise operation_error("multiply", describe(first), describe(right))

  count = repetition_count(right.value, str(type_of(first)))
  if count == 0:
    return empty_like(first)
  result = first
  for _ in range(count - 1):
    result = add_values(result, construct(expr.left, variables, functions, debug))
  return result


def try_construct(expr: Expr, functions: Functions, debug: bool = False) -> Optional[Value]:
  """Construct without any bindings; None if the expression needs some"""
  try:
    return construct(expr, Variables(), functions, debug)
  except JanusRuntimeError:
    return None


# ============================================================================
# DESTRUCTURING
# ============================================================================

def destruct(expr: Expr, target: Value, variables: Variables,
             functions: Functions, debug: bool = False) -> Optional[Value]:
  """
  Match `target` against a pattern expression, recording bindings in
  `variables`. Returns the matched value when the pattern fully determines it,
  None when it only bound names.
  """
  if isinstance(expr, (NumberLiteral, StringLiteral, BoolLiteral)):
    literal = construct(expr, variables, functions, debug)
    if literal != target:
      raise pattern_mismatch(
        f"Literal {format_value(literal)} does not match {describe(target)}",
        expected=describe(literal),
        found=describe(target)
      )
    return literal

  if isinstance(expr, (ArrayLiteral, TupleLiteral)):
    return destruct_sequence(expr, target, variables, functions, debug)

  if isinstance(expr, Ident):
    variables.insert(expr.name, target)
    return None
  if isinstance(expr, PolyIdent):
    variables.insert_polyident(expr.name, target)
    return None
  if isinstance(expr, Wildcard):
    return None

  if isinstance(expr, Cast):
    # undo the cast: the operand held a `from_` value that became `to`
    pre_image = cast(target, expr.from_, expr.to)
    matched = destruct(expr.operand, pre_image, variables, functions, debug)
    return target if matched is not None else None
  if isinstance(expr, UnaryOperation):
    pre_image = UNARY_OPERATIONS[expr.op](target)
    matched = destruct(expr.operand, pre_image, variables, functions, debug)
    return target if matched is not None else None
  if isinstance(expr, Call):
    pre_image = reverse_function(expr.function, target, functions, debug)
    matched = destruct(expr.argument, pre_image, variables, functions, debug)
    return target if matched is not None else None

  if isinstance(expr, BinaryOperation):
    return destruct_operation(expr, target, variables, functions, debug)

  raise TypeError(f"Not a Janus expression: {expr!r}")


def destruct_sequence(expr: Expr, target: Value, variables: Variables,
                      functions: Functions, debug: bool = False) -> Optional[Value]:
  """Element-wise match of an array or tuple pattern"""
  kind = ArrayValue if isinstance(expr, ArrayLiteral) else TupleValue
  expected = "array" if kind is ArrayValue else "tuple"
  if not isinstance(target, kind):
    raise pattern_mismatch(
      f"Expected {expected} of length {len(expr.items)}",
      expected=expected,
      found=describe(target)
    )
  if len(target.items) != len(expr.items):
    raise pattern_mismatch(
      f"Expected {expected} of length {len(expr.items)}, got length {len(target.items)}",
      expected=format_expr(expr),
      found=format_value(target)
    )

  matched = [
      destruct(item, element, variables, functions, debug)
      for item, element in zip(expr.items, target.items)
  ]
  if all(value is not None for value in matched):
    return kind(tuple(matched))
  return None


def destruct_operation(expr: BinaryOperation, target: Value, variables: Variables,
                       functions: Functions, debug: bool = False) -> Optional[Value]:
  """
  Match `left op right` against a target.

  Each side is probed by constructing it with no bindings. If both sides are
  known the operation is simply checked; if one is known the destruct algebra
  supplies the value(s) the other side must match.
  """
  left = try_construct(expr.left, functions, debug)
  right = try_construct(expr.right, functions, debug)

  if left is not None and right is not None:
    destruct(expr.left, left, variables, functions, debug)
    destruct(expr.right, right, variables, functions, debug)
    result = BINARY_OPERATIONS[expr.op](left, right)
    if result != target:
      raise pattern_mismatch(
        f"{format_expr(expr)} evaluates to {format_value(result)}, not {format_value(target)}",
        expected=describe(result),
        found=describe(target)
      )
    return target

  if left is not None:
    pre_images = invert_left_known(expr.op, left, target)
    if debug:
      print(f"Inverted {format_value(left)} {expr.op.value} _ = {format_value(target)} "
            f"-> {', '.join(format_value(value) for value in pre_images)}")
    for pre_image in pre_images:
      destruct(expr.right, pre_image, variables, functions, debug)
    return target

  if right is not None:
    pre_images = invert_right_known(expr.op, right, target)
    if debug:
      print(f"Inverted _ {expr.op.value} {format_value(right)} = {format_value(target)} "
            f"-> {', '.join(format_value(value) for value in pre_images)}")
    for pre_image in pre_images:
      destruct(expr.left, pre_image, variables, functions, debug)
    return target

  raise JanusValueError(
    "Cannot destruct an expression with two unknowns",
    found=format_expr(expr)
  )


# ============================================================================
# FUNCTION ENGINE
# ============================================================================

def apply_rule(pattern: Expr, constructor: Expr, value: Value,
               functions: Functions, debug: bool = False) -> Value:
  """Destruct `value` with `pattern` into fresh bindings and construct the result"""
  variables = Variables()
  destruct(pattern, value, variables, functions, debug)
  result = construct(constructor, variables, functions, debug)

  leftover = variables.unconsumed_polyidents()
  if leftover:
    raise JanusValueError(
      f"Polyident ${leftover[0]} captured more values than were consumed",
      found=", ".join(format_value(item) for item in variables.polyidents[leftover[0]])
    )
  return result


def apply_function(name: str, value: Value, functions: Functions,
                   direction: Direction = Direction.FORWARD, debug: bool = False) -> Value:
  """
  Fold a value through every rule of a function.

  Forward uses the rules in order, destructing with the left-hand side.
  Backward uses them in reverse order with the sides swapped. An error raised
  inside a rule records which rule it came from before propagating.
  """
  rules = functions.get(name)
  if rules is None:
    raise JanusValueError(f"No such function `{name}`")

  ordered = list(enumerate(rules))
  if direction == Direction.BACKWARD:
    ordered.reverse()

  current = value
  for index, rule in ordered:
    if direction == Direction.FORWARD:
      pattern, constructor = rule.destruct, rule.construct
    else:
      pattern, constructor = rule.construct, rule.destruct
    if debug:
      print(f"[{name}:{index + 1} {direction.value}] {format_value(current)}")
    try:
      current = apply_rule(pattern, constructor, current, functions, debug)
    except JanusRuntimeError as err:
      err.add_frame(RuleFrame(name, index, direction.value, rule.span))
      raise
    if debug:
      print(f"[{name}:{index + 1} {direction.value}] -> {format_value(current)}")
  return current


def run_function(name: str, value: Value, functions: Functions, debug: bool = False) -> Value:
  return apply_function(name, value, functions, Direction.FORWARD, debug)


def reverse_function(name: str, value: Value, functions: Functions, debug: bool = False) -> Value:
  return apply_function(name, value, functions, Direction.BACKWARD, debug)


def as_value(obj: Any) -> Value:
  """Accept a Janus value or plain Python data"""
  if isinstance(obj, _VALUE_TYPES):
    return obj
  return from_python(obj)


def evaluate(functions: Functions, input: Any, debug: bool = False) -> Value:
  """Run `main` forward on an input"""
  return run_function("main", as_value(input), functions, debug)


def evaluate_reverse(functions: Functions, output: Any, debug: bool = False) -> Value:
  """Run `main` backward, recovering an input from an output"""
  return reverse_function("main", as_value(output), functions, debug)


# ============================================================================
# BATCH EVALUATION (Using Pykka)
# ============================================================================

@dataclass(frozen=True)
class BatchResult:
  """Outcome of evaluating one input of a batch"""
  input: Value
  output: Optional[Value] = None
  error: Optional[JanusRuntimeError] = None

  @property
  def ok(self) -> bool:
    return self.error is None


class EvaluationActor(pykka.ThreadingActor):
  """Actor that runs one function of a shared, read-only function table"""

  def __init__(self, functions: Functions, function_name: str = "main", debug: bool = False):
    super().__init__()
    self.functions = functions
    self.function_name = function_name
    self.debug = debug

  def on_receive(self, message):
    """Evaluate `message['value']` in `message['direction']`"""
    value = message['value']
    direction = Direction(message.get('direction', Direction.FORWARD))
    try:
      output = apply_function(self.function_name, value, self.functions, direction, self.debug)
    except JanusRuntimeError as err:
      return BatchResult(value, error=err)
    return BatchResult(value, output=output)


def evaluate_many(functions: Functions, inputs: Iterable[Any], workers: int = 4,
                  direction: Direction = Direction.FORWARD, function_name: str = "main",
                  debug: bool = False) -> List[BatchResult]:
  """
  Evaluate independent inputs on a pool of actors.

  Inputs are dealt round-robin to the actors; results come back in input
  order. Runtime errors are reported per input instead of aborting the batch.
  """
  values = [as_value(item) for item in inputs]
  if not values:
    return []

  pool_size = max(1, min(workers, len(values)))
  actors = [EvaluationActor.start(functions, function_name, debug) for _ in range(pool_size)]
  try:
    futures = [
        actors[index % pool_size].ask({'direction': direction, 'value': value}, block=False)
        for index, value in enumerate(values)
    ]
    return [future.get() for future in futures]
  finally:
    for actor in actors:
      actor.stop()


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

class Interpreter:
  """Evaluates functions from an analyzed program in either direction"""

  def __init__(self, debug: bool = False):
    self.debug = debug

  def run(self, functions: Functions, value: Any, name: str = "main") -> Value:
    return run_function(name, as_value(value), functions, self.debug)

  def reverse(self, functions: Functions, value: Any, name: str = "main") -> Value:
    return reverse_function(name, as_value(value), functions, self.debug)

  def run_many(self, functions: Functions, inputs: Iterable[Any], workers: int = 4,
               direction: Direction = Direction.FORWARD, name: str = "main") -> List[BatchResult]:
    return evaluate_many(functions, inputs, workers, direction, name, self.debug)


def create_interpreter(debug: bool = False) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(debug)


def create_debug_interpreter() -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
