"""
Parsing tests for the Janus language
Expressions, precedence, rules and function blocks
"""

import pytest
from ast_nodes import (
  ArrayLiteral,
  BinaryOperation,
  BoolLiteral,
  Call,
  Cast,
  Ident,
  NumberLiteral,
  Operator,
  PolyIdent,
  StringFlag,
  StringLiteral,
  TupleLiteral,
  UnaryOperation,
  UnaryOperator,
  Wildcard,
  format_expr,
)
from error_handling import JanusParseError
from parsing import JanusGrammar, pretty_print_program
from values import ValueType


class TestLiterals:
  """Test literal and name parsing"""

  def test_numbers(self, parser):
    assert parser.parse_expression("42") == NumberLiteral(42.0)
    assert parser.parse_expression("2.5") == NumberLiteral(2.5)
    assert parser.parse_expression("1_000") == NumberLiteral(1000.0)

  def test_negative_number_literal(self, parser):
    assert parser.parse_expression("-5") == NumberLiteral(-5.0)

  def test_strings(self, parser):
    assert parser.parse_expression('"a\\nb"') == StringLiteral("a\nb")
    assert parser.parse_expression('"say \\"hi\\""') == StringLiteral('say "hi"')
    assert parser.parse_expression('f"hi"') == StringLiteral("hi", StringFlag.FORMAT)

  def test_booleans_and_names(self, parser):
    assert parser.parse_expression("true") == BoolLiteral(True)
    assert parser.parse_expression("false") == BoolLiteral(False)
    assert parser.parse_expression("trueish") == Ident("trueish")
    assert parser.parse_expression("$xs") == PolyIdent("xs")
    assert parser.parse_expression("_") == Wildcard()
    assert parser.parse_expression("_x") == Ident("_x")

  def test_collections(self, parser):
    assert parser.parse_expression("[]") == ArrayLiteral(())
    assert parser.parse_expression("[1, x]") == ArrayLiteral((NumberLiteral(1.0), Ident("x")))
    assert parser.parse_expression("()") == TupleLiteral(())
    assert parser.parse_expression("(a,)") == TupleLiteral((Ident("a"),))
    assert parser.parse_expression("(a, b)") == TupleLiteral((Ident("a"), Ident("b")))

  def test_parentheses_group(self, parser):
    assert parser.parse_expression("(a)") == Ident("a")

  def test_calls(self, parser):
    assert parser.parse_expression("f(x)") == Call("f", Ident("x"))
    assert parser.parse_expression("f(a, b)") == Call("f", TupleLiteral((Ident("a"), Ident("b"))))
    assert parser.parse_expression("f()") == Call("f", TupleLiteral(()))


class TestOperators:
  """Test operator precedence and associativity"""

  def test_multiplication_binds_tighter(self, parser):
    expected = BinaryOperation(
        Operator.ADD,
        NumberLiteral(1.0),
        BinaryOperation(Operator.MUL, NumberLiteral(2.0), NumberLiteral(3.0))
    )
    assert parser.parse_expression("1 + 2 * 3") == expected

  def test_left_associative(self, parser):
    expected = BinaryOperation(
        Operator.SUB,
        BinaryOperation(Operator.SUB, Ident("a"), Ident("b")),
        Ident("c")
    )
    assert parser.parse_expression("a - b - c") == expected

  def test_logical_precedence(self, parser):
    expected = BinaryOperation(
        Operator.OR,
        Ident("a"),
        BinaryOperation(Operator.AND, Ident("b"), Ident("c"))
    )
    assert parser.parse_expression("a || b && c") == expected

  def test_prefix_operators(self, parser):
    assert parser.parse_expression("-x") == UnaryOperation(UnaryOperator.NEG, Ident("x"))
    assert parser.parse_expression("!b") == UnaryOperation(UnaryOperator.NOT, Ident("b"))
    assert parser.parse_expression("a - -1") == BinaryOperation(Operator.SUB, Ident("a"), NumberLiteral(-1.0))

  def test_cast(self, parser):
    expected = Cast(Ident("x"), to=ValueType.NUMBER, from_=ValueType.STRING)
    assert parser.parse_expression("x::#string ~> #number") == expected

  def test_cast_binds_tighter_than_arithmetic(self, parser):
    expr = parser.parse_expression("x::#string ~> #number * 2")
    assert isinstance(expr, BinaryOperation)
    assert isinstance(expr.left, Cast)

  def test_format_round_trip(self, parser):
    for text in ["(a + b) * c", "a - (b - c)", "-x::#number ~> #string", "[$x, (1,), f(a, b)]"]:
      assert format_expr(parser.parse_expression(text)) == text


class TestPrograms:
  """Test rules, blocks and comments"""

  def test_blocks_and_bare_rules(self, parser):
    code = """// doubling
double { x -> x * 2; }
x -> double(x);  // bare rule
"""
    definitions = parser.parse_string(code)
    assert [definition.name for definition in definitions] == ["double", None]
    assert len(definitions[0].rules) == 1
    assert definitions[1].rules[0].construct == Call("double", Ident("x"))

  def test_rule_spans(self, parser):
    definitions = parser.parse_string("main {\n  x -> x;\n  y -> y;\n}", "prog.jns")
    second = definitions[0].rules[1]
    assert second.span.filename == "prog.jns"
    assert second.span.start_line == 3
    assert second.span.text == "y -> y;"

  def test_empty_program(self, parser):
    assert parser.parse_string("// nothing here\n") == []

  def test_comment_marker_inside_string(self, parser):
    definitions = parser.parse_string('x -> "a//b";')
    assert definitions[0].rules[0].construct == StringLiteral("a//b")

  def test_missing_semicolon(self, parser):
    with pytest.raises(JanusParseError) as exc_info:
      parser.parse_string("x -> x")
    assert exc_info.value.line == 1

  def test_unclosed_block(self, parser):
    with pytest.raises(JanusParseError):
      parser.parse_string("main { x -> x;")

  def test_invalid_cast_type(self, parser):
    with pytest.raises(JanusParseError):
      parser.parse_expression("x::#float ~> #number")

  def test_pretty_print(self, parser):
    definitions = parser.parse_string("double { x -> x*2; }\nx -> double(x);")
    assert pretty_print_program(definitions) == "double {\n  x -> x * 2;\n}\nx -> double(x);"

  def test_grammar_exposes_rule_parser(self):
    grammar = JanusGrammar()
    result = grammar.rule.parse_string("[a, b] -> (b, a);", parse_all=True)
    assert result[0].destruct == ArrayLiteral((Ident("a"), Ident("b")))
