"""
Janus Programming Language - Main Entry Point
A bidirectional language: every function runs forward and in reverse
"""

import sys
import argparse
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from ast_nodes import FunctionDefinition, Functions, format_expr
from error_handling import (
  JanusParseError,
  JanusRuntimeError,
  JanusSemanticsError,
  format_runtime_error,
)
from interpreter import Direction, construct, create_debug_interpreter, create_interpreter
from parsing import JanusParser, create_debug_parser, create_parser, pretty_print_program
from semantics import Analyzer, Program, create_analyzer, create_debug_analyzer
from values import StringValue, Value, format_value
from variables import Variables


VERSION = "Janus v0.1.0"
HISTORY_FILE = "~/.janus_history"
REPL_COMMANDS = [":run", ":reverse", ":parse", ":show", ":load", ":reset", ":help", "exit."]


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='janus',
      description='Janus Programming Language - bidirectional evaluation',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s prog.jns -i "hello"             # Run main forward on a string
  %(prog)s prog.jns --reverse -i "olleh"   # Run main backward
  %(prog)s prog.jns --value -i "[1, 2]"    # Input is a literal expression
  %(prog)s prog.jns -i a -i b --jobs 2     # Evaluate several inputs on an actor pool
  %(prog)s -e 'x -> x + "!";' -i hi        # Program given inline
  %(prog)s --parse prog.jns                # Parse and pretty-print
  %(prog)s --analyze prog.jns              # Show functions and warnings
  %(prog)s -I                              # Interactive mode
        """
  )

  parser.add_argument('script', nargs='?', help='Janus source file')
  parser.add_argument('-e', '--eval', metavar='CODE', help='Program source given on the command line')
  parser.add_argument(
      '-i', '--input',
      action='append',
      metavar='INPUT',
      help='Input passed to main; repeat to evaluate several inputs'
  )
  parser.add_argument(
      '--value',
      action='store_true',
      help='Read inputs as literal expressions instead of strings'
  )
  parser.add_argument('--reverse', action='store_true', help='Run main backward')
  parser.add_argument(
      '--jobs',
      type=int,
      default=4,
      metavar='N',
      help='Number of evaluation actors for several inputs (default: 4)'
  )
  parser.add_argument('--parse', action='store_true', help='Parse the program and print it back')
  parser.add_argument('--analyze', action='store_true', help='Analyze the program and show its functions')
  parser.add_argument('--debug', action='store_true', help='Enable debug output for all stages')
  parser.add_argument('-I', '--interactive', action='store_true', help='Start interactive mode')
  parser.add_argument('--version', action='version', version=VERSION)

  return parser


# ============================================================================
# PROGRAM LOADING
# ============================================================================

def read_source(args: argparse.Namespace) -> Optional[Tuple[str, str]]:
  """Return (source text, filename) from the script argument or --eval"""
  if args.eval is not None:
    return args.eval, "<eval>"
  if args.script is None:
    return None
  path = Path(args.script)
  if not path.exists():
    print(f"Error: Script file '{args.script}' does not exist")
    sys.exit(1)
  try:
    return path.read_text(encoding='utf-8'), args.script
  except PermissionError:
    print(f"Error: Permission denied reading '{args.script}'")
    print(f"  Hint: Make sure you have read permissions for this file")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{args.script}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)


def load_program(source: str, filename: str, parser: JanusParser, analyzer: Analyzer) -> Program:
  """Parse and analyze a program, exiting on failure"""
  try:
    definitions = parser.parse_string(source, filename)
    program = analyzer.analyze(definitions)
  except JanusParseError as e:
    print(e)
    sys.exit(1)
  except JanusSemanticsError as e:
    print(f"Semantic analysis error in '{filename}': {e}")
    sys.exit(1)
  for warning in program.warnings:
    print(warning, file=sys.stderr)
  return program


def parse_value(text: str, parser: JanusParser, functions: Functions) -> Value:
  """Read a literal expression such as `[1, 2]` or `(3, "a")` as a value"""
  expr = parser.parse_expression(text, "<value>")
  return construct(expr, Variables(), functions)


# ============================================================================
# COMMANDS
# ============================================================================

def show_parse(source: str, filename: str, debug: bool = False) -> None:
  """Parse a program and print it back in canonical form"""
  parser = create_debug_parser() if debug else create_parser()
  try:
    definitions = parser.parse_string(source, filename)
  except JanusParseError as e:
    print(e)
    sys.exit(1)
  print(f"Parsed {len(definitions)} definitions from {filename}:")
  print("=" * 50)
  print(pretty_print_program(definitions))


def show_analysis(source: str, filename: str, debug: bool = False) -> None:
  """Analyze a program and print its function table and warnings"""
  parser = create_debug_parser() if debug else create_parser()
  analyzer = create_debug_analyzer() if debug else create_analyzer()
  program = load_program(source, filename, parser, analyzer)

  print(f"Functions in {filename}:")
  print("=" * 50)
  for name, rules in program.functions.items():
    print(f"\n{name} ({len(rules)} rule{'s' if len(rules) != 1 else ''}):")
    for index, rule in enumerate(rules, 1):
      print(f"  {index}. {format_expr(rule.destruct)} -> {format_expr(rule.construct)}")
  if program.warnings:
    print(f"\n{len(program.warnings)} warning(s):")
    for warning in program.warnings:
      print(f"  {warning}")
  else:
    print("\nNo warnings")


def run_program(source: str, filename: str, inputs: List[str], as_value: bool = False,
                reverse: bool = False, jobs: int = 4, debug: bool = False) -> None:
  """Run main on each input and print the results"""
  parser = create_debug_parser() if debug else create_parser()
  analyzer = create_debug_analyzer() if debug else create_analyzer()
  interpreter = create_debug_interpreter() if debug else create_interpreter()
  program = load_program(source, filename, parser, analyzer)

  try:
    values = [parse_value(text, parser, program.functions) if as_value else StringValue(text)
              for text in inputs]
  except JanusParseError as e:
    print(e)
    sys.exit(1)
  except JanusRuntimeError as e:
    print(f"Invalid input value:\n{format_runtime_error(e)}")
    sys.exit(1)

  direction = Direction.BACKWARD if reverse else Direction.FORWARD

  if len(values) == 1:
    try:
      if reverse:
        result = interpreter.reverse(program.functions, values[0])
      else:
        result = interpreter.run(program.functions, values[0])
    except JanusRuntimeError as e:
      print(format_runtime_error(e, show_source=True))
      sys.exit(1)
    print(format_value(result))
    return

  failed = False
  for outcome in interpreter.run_many(program.functions, values, jobs, direction):
    if outcome.ok:
      print(f"{format_value(outcome.input)} => {format_value(outcome.output)}")
    else:
      failed = True
      print(f"{format_value(outcome.input)} => error")
      for line in format_runtime_error(outcome.error).split('\n'):
        print(f"  {line}")
  if failed:
    sys.exit(1)


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

class ReplSession:
  """State of an interactive session: the definitions entered so far"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.parser = create_debug_parser() if debug else create_parser()
    self.analyzer = create_debug_analyzer() if debug else create_analyzer()
    self.interpreter = create_debug_interpreter() if debug else create_interpreter()
    self.reset()

  def reset(self) -> None:
    self.named: Dict[str, FunctionDefinition] = {}
    self.bare: List[FunctionDefinition] = []
    self.program = self.analyzer.analyze([])

  def definitions(self) -> List[FunctionDefinition]:
    return list(self.named.values()) + self.bare

  def define(self, code: str, filename: str = "<repl>") -> str:
    """Add definitions; a block with an existing name replaces the old one"""
    new_definitions = self.parser.parse_string(code, filename)
    named = dict(self.named)
    bare = list(self.bare)
    for definition in new_definitions:
      if definition.name is None:
        bare.append(definition)
      else:
        named[definition.name] = definition
    program = self.analyzer.analyze(list(named.values()) + bare)

    self.named, self.bare, self.program = named, bare, program
    lines = []
    for definition in new_definitions:
      if definition.name is None:
        lines.append("Added rule to main")
      else:
        lines.append(f"Defined function: {definition.name}")
    lines.extend(str(warning) for warning in program.warnings)
    return "\n".join(lines)

  def run(self, value: Value, reverse: bool = False) -> str:
    if reverse:
      result = self.interpreter.reverse(self.program.functions, value)
    else:
      result = self.interpreter.run(self.program.functions, value)
    return f"=> {format_value(result)}"

  def handle(self, line: str) -> str:
    """Execute one line of input and return the text to show"""
    code = line.strip()
    try:
      if code == ":help":
        return repl_help()
      if code == ":show":
        return pretty_print_program(self.definitions()) or "(no definitions)"
      if code == ":reset":
        self.reset()
        return "Session cleared"
      if code.startswith(":load "):
        path = code[6:].strip()
        try:
          source = Path(path).read_text(encoding='utf-8')
        except OSError as e:
          return f"Error: cannot read '{path}': {e}"
        return self.define(source, path)
      if code.startswith(":parse "):
        expr = self.parser.parse_expression(code[7:])
        return f"{format_expr(expr)}\n{expr!r}"
      if code.startswith(":run "):
        return self.run(parse_value(code[5:], self.parser, self.program.functions))
      if code.startswith(":reverse "):
        return self.run(parse_value(code[9:], self.parser, self.program.functions), reverse=True)
      if code.startswith(":"):
        return f"Unknown command {code.split()[0]}; type :help for commands"
      if code.endswith((";", "}")):
        return self.define(code)
      return self.run(StringValue(line))
    except JanusParseError as e:
      return str(e)
    except JanusSemanticsError as e:
      return f"Semantic error: {e}"
    except JanusRuntimeError as e:
      return format_runtime_error(e, show_source=True)

  def completions(self) -> List[str]:
    return REPL_COMMANDS + sorted(self.program.functions)


def repl_help() -> str:
  return "\n".join([
      "REPL Commands:",
      "  <text>              - Run main forward on <text> as a string",
      "  :run <value>        - Run main forward on a literal value, e.g. :run [1, 2]",
      "  :reverse <value>    - Run main backward on a literal value",
      "  :parse <expr>       - Show how an expression parses",
      "  :show               - Show the current definitions",
      "  :load <file>        - Load definitions from a file",
      "  :reset              - Forget all definitions",
      "  :help               - Show this help",
      "  exit.               - Exit REPL",
      "",
      "Definitions (lines ending in ';' or '}'):",
      "  x -> x + 1;                 - Add a rule to main",
      "  double { x -> x * 2; }      - Define a function",
  ])


def setup_readline(session: ReplSession) -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # Setup history file
  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied
  readline.set_history_length(1000)

  def completer(text, state):
    options = [word for word in session.completions() if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError:
      pass

  atexit.register(save_history)


def run_interactive_mode(debug: bool = False, preload: Optional[str] = None) -> None:
  """Run Janus in interactive mode"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit.' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  session = ReplSession(debug)
  if preload is not None:
    print(session.handle(f":load {preload}"))
  setup_readline(session)

  while True:
    try:
      line = input("janus> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if line.strip() == "exit.":
      break
    if not line.strip():
      continue
    print(session.handle(line))


def show_language_info() -> None:
  """Show Janus language information"""
  print("Janus Programming Language")
  print("=" * 50)
  print("Every function is a list of rules `pattern -> constructor;`.")
  print("Run forward, a rule matches its pattern and builds the constructor;")
  print("run in reverse, the roles swap and the rules apply last to first.")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Janus"""
  if argv is None:
    argv = sys.argv[1:]
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  # No arguments - show info and start interactive mode
  if not argv:
    show_language_info()
    print("Use 'janus --help' for command line options")
    print()
    run_interactive_mode(debug=False)
    return

  if args.interactive:
    run_interactive_mode(debug=args.debug, preload=args.script)
    return

  source = read_source(args)
  if source is None:
    arg_parser.print_help()
    print()
    show_language_info()
    return

  text, filename = source
  if args.parse:
    show_parse(text, filename, debug=args.debug)
  elif args.analyze:
    show_analysis(text, filename, debug=args.debug)
  else:
    run_program(text, filename, args.input or [""], as_value=args.value,
                reverse=args.reverse, jobs=max(1, args.jobs), debug=args.debug)


if __name__ == "__main__":
  main()
