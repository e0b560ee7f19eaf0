"""
Integration tests running the example programs in both directions
"""

import pytest
from interpreter import create_interpreter
from parsing import create_parser
from semantics import create_analyzer
from values import ArrayValue, NumberValue, StringValue, TupleValue, from_python


EXAMPLES = [
    ("arithmetic.jns", StringValue("20"), StringValue("41")),
    ("greeting.jns", StringValue("hello world"), StringValue("world!")),
    ("letters.jns", StringValue("abc"), StringValue("cba")),
    ("repeat.jns", StringValue("xyxyxy"), ArrayValue((StringValue("xy"),) * 3)),
    ("swap.jns", from_python([1, 2]), TupleValue((NumberValue(2.0), NumberValue(1.0)))),
]


class TestExamplePrograms:
  """Every example runs forward to a known output and back again"""

  @pytest.fixture
  def load(self, examples_dir):
    parser = create_parser()
    analyzer = create_analyzer()

    def load_example(name):
      program = analyzer.analyze(parser.parse_file(str(examples_dir / name)))
      assert program.warnings == ()
      return program.functions

    return load_example

  @pytest.mark.parametrize("name,given,expected", EXAMPLES)
  def test_forward(self, load, name, given, expected):
    assert create_interpreter().run(load(name), given) == expected

  @pytest.mark.parametrize("name,given,expected", EXAMPLES)
  def test_backward(self, load, name, given, expected):
    assert create_interpreter().reverse(load(name), expected) == given

  def test_all_examples_covered(self, examples_dir):
    assert sorted(path.name for path in examples_dir.glob("*.jns")) == sorted(name for name, _, _ in EXAMPLES)
