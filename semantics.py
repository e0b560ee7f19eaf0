"""
Janus Semantics Analysis
Builds the read-only function table from parsed definitions and reports
warnings about names that cannot resolve. There is no type checking: anything
suspicious is a warning, and failures surface at evaluation time.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Optional, Set, Tuple

from ast_nodes import (
  ArrayLiteral,
  BinaryOperation,
  Call,
  Cast,
  Expr,
  FunctionDefinition,
  Functions,
  Ident,
  PolyIdent,
  SourceSpan,
  Transformation,
  TupleLiteral,
  UnaryOperation,
)
from error_handling import JanusSemanticsError


MAIN = "main"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True)
class AnalysisWarning:
  message: str
  span: Optional[SourceSpan] = None

  def __str__(self) -> str:
    if self.span is not None:
      return f"Warning at {self.span}: {self.message}"
    return f"Warning: {self.message}"


@dataclass(frozen=True)
class Program:
  """An analyzed program: the function table plus any warnings"""
  functions: Functions
  warnings: Tuple[AnalysisWarning, ...] = ()

  def has_main(self) -> bool:
    return MAIN in self.functions


# ============================================================================
# EXPRESSION TRAVERSAL
# ============================================================================

def iter_subexpressions(expr: Expr) -> Iterator[Expr]:
  """Yield an expression and every expression nested in it, depth first"""
  yield expr
  if isinstance(expr, (ArrayLiteral, TupleLiteral)):
    for item in expr.items:
      yield from iter_subexpressions(item)
  elif isinstance(expr, BinaryOperation):
    yield from iter_subexpressions(expr.left)
    yield from iter_subexpressions(expr.right)
  elif isinstance(expr, (UnaryOperation, Cast)):
    yield from iter_subexpressions(expr.operand)
  elif isinstance(expr, Call):
    yield from iter_subexpressions(expr.argument)


def bound_names(expr: Expr) -> Set[str]:
  """Names an expression binds when used as a pattern"""
  return {
      node.name for node in iter_subexpressions(expr)
      if isinstance(node, (Ident, PolyIdent))
  }


def called_functions(expr: Expr) -> List[str]:
  return [node.function for node in iter_subexpressions(expr) if isinstance(node, Call)]


# ============================================================================
# ANALYSIS
# ============================================================================

def collect_functions(definitions: List[FunctionDefinition]) -> Dict[str, Tuple[Transformation, ...]]:
  """
  Group definitions into a name -> rules table.

  Nameless definitions are top-level rules and belong to `main`, in source
  order. A name defined twice is an error, and so is an explicit `main` block
  alongside top-level rules.
  """
  functions: Dict[str, Tuple[Transformation, ...]] = {}
  spans: Dict[str, Optional[SourceSpan]] = {}
  bare_rules: List[Transformation] = []
  first_bare_span: Optional[SourceSpan] = None

  for definition in definitions:
    if definition.name is None:
      if not bare_rules:
        first_bare_span = definition.span
      bare_rules.extend(definition.rules)
      continue
    if definition.name in functions:
      raise JanusSemanticsError(
        f"Function `{definition.name}` is defined more than once "
        f"(first definition at {spans[definition.name]})",
        definition.span
      )
    functions[definition.name] = tuple(definition.rules)
    spans[definition.name] = definition.span

  if bare_rules:
    if MAIN in functions:
      raise JanusSemanticsError(
        "Top-level rules belong to `main`, which is also defined as a block",
        first_bare_span or spans[MAIN]
      )
    functions[MAIN] = tuple(bare_rules)
  return functions


def check_rule(function: str, rule: Transformation, known_functions: Set[str]) -> List[AnalysisWarning]:
  warnings = []
  for callee in called_functions(rule.destruct) + called_functions(rule.construct):
    if callee not in known_functions:
      warnings.append(AnalysisWarning(f"Call to undefined function `{callee}` in `{function}`", rule.span))

  pattern_names = bound_names(rule.destruct)
  for node in iter_subexpressions(rule.construct):
    if isinstance(node, Ident) and node.name not in pattern_names:
      warnings.append(AnalysisWarning(
        f"`{node.name}` is used in `{function}` but never bound by the rule's pattern", rule.span
      ))
    elif isinstance(node, PolyIdent) and node.name not in pattern_names:
      warnings.append(AnalysisWarning(
        f"${node.name} is used in `{function}` but never captured by the rule's pattern", rule.span
      ))
  return warnings


def analyze_program(definitions: List[FunctionDefinition], debug: bool = False) -> Program:
  """Build the function table and collect warnings"""
  functions = collect_functions(definitions)
  known = set(functions)

  warnings: List[AnalysisWarning] = []
  for name, rules in functions.items():
    for rule in rules:
      warnings.extend(check_rule(name, rule, known))

  if debug:
    for name, rules in functions.items():
      print(f"Function {name}: {len(rules)} rule(s)")
    for warning in warnings:
      print(warning)

  return Program(MappingProxyType(functions), tuple(warnings))


class Analyzer:
  """Analyzer object handed out by create_analyzer"""

  def __init__(self, debug: bool = False):
    self.debug = debug

  def analyze(self, definitions: List[FunctionDefinition]) -> Program:
    return analyze_program(definitions, self.debug)


def create_analyzer(debug: bool = False) -> Analyzer:
  """Factory function returning an analyzer"""
  return Analyzer(debug)


def create_debug_analyzer() -> Analyzer:
  """Factory function returning a debug analyzer"""
  return create_analyzer(debug=True)
