"""
Tests for the command line interface and the interactive session
"""

import pytest
from main import ReplSession, create_arg_parser, main


GREETING = '''
main {
  "hello " + name -> name;
  name -> name + "!";
}
'''


class TestCommandLine:

  @pytest.fixture
  def script(self, tmp_path):
    path = tmp_path / "greeting.jns"
    path.write_text(GREETING)
    return str(path)

  def test_run_script(self, script, capsys):
    main([script, "-i", "hello world"])
    assert capsys.readouterr().out == '"world!"\n'

  def test_reverse(self, script, capsys):
    main([script, "--reverse", "-i", "world!"])
    assert capsys.readouterr().out == '"hello world"\n'

  def test_inline_program_with_value_input(self, capsys):
    main(["-e", "[a, b] -> (b, a);", "--value", "-i", "[1, 2]"])
    assert capsys.readouterr().out == "(2, 1)\n"

  def test_several_inputs(self, script, capsys):
    main([script, "-i", "hello a", "-i", "hello b", "--jobs", "2"])
    assert capsys.readouterr().out == '"hello a" => "a!"\n"hello b" => "b!"\n'

  def test_failed_input_in_batch(self, script, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main([script, "-i", "hello a", "-i", "bye b"])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert '"bye b" => error' in out
    assert "PatternMismatch" in out

  def test_runtime_error_exits(self, script, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main([script, "-i", "goodbye"])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert out.startswith("PatternMismatch:")
    assert "rule 1 of `main` (forward)" in out

  def test_parse_error_exits(self, capsys):
    with pytest.raises(SystemExit):
      main(["-e", "x -> x"])
    assert "Parse error" in capsys.readouterr().out

  def test_missing_script(self, tmp_path, capsys):
    with pytest.raises(SystemExit):
      main([str(tmp_path / "missing.jns")])
    assert "does not exist" in capsys.readouterr().out

  def test_parse_mode(self, script, capsys):
    main(["--parse", script])
    out = capsys.readouterr().out
    assert 'main {\n  "hello " + name -> name;\n  name -> name + "!";\n}' in out

  def test_analyze_mode(self, capsys):
    main(["--analyze", "-e", "n -> triple(n);"])
    out = capsys.readouterr().out
    assert "main (1 rule):" in out
    assert "triple" in out

  def test_default_jobs(self):
    args = create_arg_parser().parse_args(["prog.jns"])
    assert args.jobs == 4
    assert args.input is None


class TestReplSession:

  @pytest.fixture
  def session(self):
    return ReplSession()

  def test_define_and_run(self, session):
    assert session.handle("x -> x + \"?\";") == "Added rule to main"
    assert session.handle("why") == '=> "why?"'
    assert session.handle(':reverse "why?"') == '=> "why"'

  def test_run_literal_value(self, session):
    session.handle("double { x -> x * 2; }")
    session.handle("n -> double(n);")
    assert session.handle(":run 21") == "=> 42"

  def test_redefining_a_function_replaces_it(self, session):
    session.handle("f { x -> x; }")
    assert session.handle("f { x -> x + 1; }") == "Defined function: f"
    session.handle("n -> f(n);")
    assert session.handle(":run 1") == "=> 2"

  def test_show_and_reset(self, session):
    session.handle("x -> x;")
    assert session.handle(":show") == "x -> x;"
    assert session.handle(":reset") == "Session cleared"
    assert session.handle(":show") == "(no definitions)"

  def test_errors_are_reported(self, session):
    assert session.handle("anything").startswith("ValueError: No such function `main`")
    assert "Parse error" in session.handle(":run [1,")
    assert session.handle(":nope").startswith("Unknown command :nope")

  def test_conflicting_main_is_rejected(self, session):
    session.handle("x -> x;")
    assert session.handle("main { y -> y; }").startswith("Semantic error")
    assert session.handle("same") == '=> "same"'

  def test_load(self, session, tmp_path):
    path = tmp_path / "prog.jns"
    path.write_text(GREETING)
    assert session.handle(f":load {path}") == "Defined function: main"
    assert session.handle("hello you") == '=> "you!"'
