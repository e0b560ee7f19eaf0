"""
Tests for the Janus value model: casts and value-level operators
"""

import math

import pytest
from error_handling import JanusValueError, TypeMismatchError
from values import (
  ArrayValue,
  BoolValue,
  NumberValue,
  StringValue,
  TupleValue,
  ValueType,
  add_values,
  cast,
  div_values,
  format_value,
  from_python,
  invert_value,
  make_array,
  make_tuple,
  multiply_values,
  negate_value,
  sub_values,
  type_of,
)


def chars(text):
  return tuple(StringValue(ch) for ch in text)


class TestCasts:
  """Conversions between value types"""

  def test_string_to_number(self):
    assert cast(StringValue("42"), ValueType.NUMBER, ValueType.STRING) == NumberValue(42.0)
    assert cast(StringValue("2.5"), ValueType.NUMBER, ValueType.STRING) == NumberValue(2.5)

  def test_unparseable_string_is_nan(self):
    result = cast(StringValue("forty"), ValueType.NUMBER, ValueType.STRING)
    assert isinstance(result, NumberValue)
    assert math.isnan(result.value)

  def test_number_to_string(self):
    assert cast(NumberValue(3.0), ValueType.STRING, ValueType.NUMBER) == StringValue("3")
    assert cast(NumberValue(3.5), ValueType.STRING, ValueType.NUMBER) == StringValue("3.5")

  def test_large_whole_number_to_string(self):
    assert cast(NumberValue(1e16), ValueType.STRING, ValueType.NUMBER) == StringValue("10000000000000000")
    assert cast(NumberValue(-2e20), ValueType.STRING, ValueType.NUMBER) == StringValue("-200000000000000000000")

  def test_claimed_source_type_must_match(self):
    with pytest.raises(TypeMismatchError) as exc_info:
      cast(NumberValue(1.0), ValueType.STRING, ValueType.STRING)
    assert exc_info.value.expected == "string"
    assert exc_info.value.found == "number"

  def test_same_type_is_identity(self):
    value = make_array(NumberValue(1.0))
    assert cast(value, ValueType.ARRAY, ValueType.ARRAY) is value

  def test_string_splits_into_characters(self):
    assert cast(StringValue("ab"), ValueType.ARRAY, ValueType.STRING) == ArrayValue(chars("ab"))
    assert cast(StringValue("ab"), ValueType.TUPLE, ValueType.STRING) == TupleValue(chars("ab"))

  def test_characters_join_into_string(self):
    assert cast(ArrayValue(chars("abc")), ValueType.STRING, ValueType.ARRAY) == StringValue("abc")
    assert cast(TupleValue(chars("")), ValueType.STRING, ValueType.TUPLE) == StringValue("")

  def test_join_rejects_non_strings(self):
    with pytest.raises(JanusValueError):
      cast(make_array(NumberValue(1.0)), ValueType.STRING, ValueType.ARRAY)

  def test_array_and_tuple_retag(self):
    items = (NumberValue(1.0), StringValue("a"))
    assert cast(ArrayValue(items), ValueType.TUPLE, ValueType.ARRAY) == TupleValue(items)
    assert cast(TupleValue(items), ValueType.ARRAY, ValueType.TUPLE) == ArrayValue(items)

  def test_bool_and_string(self):
    assert cast(BoolValue(True), ValueType.STRING, ValueType.BOOL) == StringValue("true")
    assert cast(StringValue("false"), ValueType.BOOL, ValueType.STRING) == BoolValue(False)
    with pytest.raises(JanusValueError):
      cast(StringValue("yes"), ValueType.BOOL, ValueType.STRING)

  @pytest.mark.parametrize("value,to,from_", [
      (make_array(), ValueType.NUMBER, ValueType.ARRAY),
      (make_tuple(), ValueType.NUMBER, ValueType.TUPLE),
      (NumberValue(1.0), ValueType.ARRAY, ValueType.NUMBER),
      (BoolValue(True), ValueType.NUMBER, ValueType.BOOL),
      (NumberValue(0.0), ValueType.BOOL, ValueType.NUMBER),
  ])
  def test_unsupported_conversions(self, value, to, from_):
    with pytest.raises(JanusValueError):
      cast(value, to, from_)


class TestOperators:
  """Binary and unary operators on values"""

  def test_addition_and_concatenation(self):
    assert add_values(NumberValue(1.0), NumberValue(2.0)) == NumberValue(3.0)
    assert add_values(StringValue("ab"), StringValue("cd")) == StringValue("abcd")
    assert add_values(make_array(NumberValue(1.0)), make_array(NumberValue(2.0))) == \
        make_array(NumberValue(1.0), NumberValue(2.0))

  def test_mixed_addition_fails(self):
    with pytest.raises(JanusValueError):
      add_values(NumberValue(1.0), StringValue("a"))
    with pytest.raises(JanusValueError):
      add_values(make_tuple(), make_tuple())

  def test_subtraction_is_numeric_only(self):
    assert sub_values(NumberValue(5.0), NumberValue(3.0)) == NumberValue(2.0)
    with pytest.raises(JanusValueError):
      sub_values(StringValue("ab"), StringValue("b"))

  def test_division_by_zero_follows_ieee(self):
    assert div_values(NumberValue(1.0), NumberValue(0.0)) == NumberValue(math.inf)
    assert div_values(NumberValue(-1.0), NumberValue(0.0)) == NumberValue(-math.inf)
    assert math.isnan(div_values(NumberValue(0.0), NumberValue(0.0)).value)

  def test_replication(self):
    assert multiply_values(StringValue("ab"), NumberValue(3.0)) == StringValue("ababab")
    assert multiply_values(NumberValue(2.0), make_array(NumberValue(1.0))) == \
        make_array(NumberValue(1.0), NumberValue(1.0))
    assert multiply_values(StringValue("ab"), NumberValue(0.0)) == StringValue("")

  @pytest.mark.parametrize("factor", [1.5, -1.0, math.inf])
  def test_replication_needs_non_negative_integer(self, factor):
    with pytest.raises(JanusValueError):
      multiply_values(StringValue("ab"), NumberValue(factor))

  def test_multiply_unsupported_kinds(self):
    with pytest.raises(JanusValueError):
      multiply_values(BoolValue(True), NumberValue(2.0))
    with pytest.raises(JanusValueError):
      multiply_values(StringValue("a"), StringValue("b"))

  def test_unary_operators(self):
    assert negate_value(NumberValue(2.0)) == NumberValue(-2.0)
    assert invert_value(BoolValue(False)) == BoolValue(True)
    with pytest.raises(JanusValueError):
      negate_value(StringValue("a"))
    with pytest.raises(JanusValueError):
      invert_value(NumberValue(1.0))


class TestDisplay:
  """Rendering and conversion from Python data"""

  def test_format_value(self):
    assert format_value(make_array(NumberValue(1.0), NumberValue(2.0))) == "[1, 2]"
    assert format_value(make_tuple(NumberValue(1.0), StringValue("a"))) == '(1, "a")'
    assert format_value(make_tuple(BoolValue(True))) == "(true,)"
    assert format_value(StringValue('say "hi"')) == '"say \\"hi\\""'

  def test_from_python(self):
    value = from_python([1, "a", (True,)])
    assert value == ArrayValue((NumberValue(1.0), StringValue("a"), TupleValue((BoolValue(True),))))

  def test_type_of(self):
    assert type_of(StringValue("")) == ValueType.STRING
    assert type_of(make_tuple()) == ValueType.TUPLE
    assert str(ValueType.BOOL) == "bool"
