"""
Error handling for Janus
Parse errors with source context and suggestions, and the runtime error taxonomy
raised by the evaluator. Formatting happens here, at the boundary.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Dict
from pyparsing import ParseException
import re


# ============================================================================
# PARSE ERRORS (Immutable Dictionaries)
# ============================================================================

def make_parse_error(
    message: str,
    location: int,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None,
    filename: str = "<input>"
) -> Dict:
    """Create an immutable parse error structure"""
    return {
        'message': message,
        'location': location,
        'line': line,
        'column': column,
        'expected': expected or [],
        'got': got,
        'context': context,
        'suggestions': suggestions or [],
        'filename': filename
    }


def format_parse_error(error: Dict) -> str:
    """Format parse error as string"""
    error_msg = f"Parse error in {error['filename']} at line {error['line']}, column {error['column']}:\n"
    error_msg += f"  {error['message']}\n"

    if error['expected']:
        error_msg += f"  Expected: {', '.join(error['expected'])}\n"

    if error['got']:
        error_msg += f"  Got: {error['got']}\n"

    if error['context']:
        error_msg += f"  Context:\n{error['context']}\n"

    if error['suggestions']:
        error_msg += "  Suggestions:\n"
        for suggestion in error['suggestions']:
            error_msg += f"    - {suggestion}\n"

    return error_msg.rstrip('\n')


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ Error here")

    return '\n'.join(context_parts)


def extract_expected(exc: ParseException) -> List[str]:
    """Extract expected tokens from exception"""
    # pyparsing doesn't always have .expected, so read the message
    msg = str(exc)
    expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(at|$)", msg)
    if expected_match:
        return [expected_match.group(1)]
    return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
    """Extract what was actually found at the error location"""
    lines = source_text.split('\n')

    if 0 < line_num <= len(lines):
        error_line = lines[line_num - 1]
        if col_num <= len(error_line):
            start = max(0, col_num - 1)
            end = min(len(error_line), col_num + 10)
            got_text = error_line[start:end].strip()
            if got_text:
                return f"'{got_text}'"
        return "end of line"
    return "end of input"


def generate_suggestions(got: str, expected: List[str], source_line: str = "") -> List[str]:
    """Generate helpful suggestions based on the error"""
    suggestions = []
    expected_text = ' '.join(expected)

    if "';'" in expected_text or (source_line and '->' in source_line and not source_line.rstrip().endswith((';', '{', '}'))):
        suggestions.append("Every rule must end with ';'")

    if "'->'" in expected_text:
        suggestions.append("A rule is written as `pattern -> constructor;`")

    if "=" in got and "==" not in got:
        suggestions.append("Janus has no assignment; bind names inside a pattern instead")

    if "::" in source_line and "~>" not in source_line:
        suggestions.append("Casts are written as `value::#from ~> #to`")

    if "#" in got:
        suggestions.append("Valid cast types are #string, #number, #array, #tuple and #bool")

    if got.startswith("'{") or got.startswith("'}"):
        suggestions.append("Function bodies are written as `name { rule; rule; }`")

    return suggestions


def enhance_parse_exception_dict(exc: ParseException, source_text: str, filename: str = "<input>") -> Dict:
    """Convert pyparsing exception to enhanced Janus error dict"""
    line_num = exc.lineno
    col_num = exc.column

    context = get_context_lines(source_text, line_num, col_num)
    expected = extract_expected(exc)
    got = extract_got(source_text, line_num, col_num)

    lines = source_text.split('\n')
    source_line = lines[line_num - 1] if 0 < line_num <= len(lines) else ""
    suggestions = generate_suggestions(got, expected, source_line)

    return make_parse_error(
        message=exc.msg,
        location=exc.loc,
        line=line_num,
        column=col_num,
        expected=expected,
        got=got,
        context=context,
        suggestions=suggestions,
        filename=filename
    )


class JanusParseError(Exception):
    """Parse failure with source position and context"""
    def __init__(self, message: str, location: int = 0, line: int = 0, column: int = 0,
                 expected: Optional[List[str]] = None, got: Optional[str] = None,
                 context: Optional[str] = None, suggestions: Optional[List[str]] = None,
                 filename: str = "<input>"):
        self.message = message
        self.location = location
        self.line = line
        self.column = column
        self.expected = expected or []
        self.got = got
        self.context = context
        self.suggestions = suggestions or []
        self.filename = filename
        super().__init__(message)

    @classmethod
    def from_dict(cls, error: Dict) -> "JanusParseError":
        return cls(**error)

    def __str__(self) -> str:
        error_dict = make_parse_error(
            self.message, self.location, self.line, self.column,
            self.expected, self.got, self.context, self.suggestions,
            self.filename
        )
        return format_parse_error(error_dict)


class JanusErrorHandler:
    """Turns pyparsing failures into JanusParseError for one source text"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_exception(self, exc: ParseException) -> JanusParseError:
        """Convert pyparsing exception to enhanced Janus error"""
        return JanusParseError.from_dict(
            enhance_parse_exception_dict(exc, self.source_text, self.filename)
        )


# ============================================================================
# RUNTIME ERRORS
# ============================================================================

@dataclass(frozen=True)
class RuleFrame:
    """One rule application an error propagated through"""
    function: str
    rule_index: int
    direction: str
    span: Any = None

    def __str__(self) -> str:
        where = f"rule {self.rule_index + 1} of `{self.function}` ({self.direction})"
        if self.span is not None:
            where += f" at {self.span}"
        return where


class JanusRuntimeError(Exception):
    """Base class for evaluation failures.

    Carries structured fields only; the text shown to a user is built by
    format_runtime_error.
    """
    kind = "RuntimeError"

    def __init__(self, message: str, expected: Optional[str] = None,
                 found: Optional[str] = None):
        self.message = message
        self.expected = expected
        self.found = found
        self.frames: List[RuleFrame] = []
        super().__init__(message)

    def add_frame(self, frame: RuleFrame) -> "JanusRuntimeError":
        """Record a rule the error passed through (innermost first)"""
        self.frames.append(frame)
        return self

    @property
    def span(self) -> Any:
        """Source position of the innermost failing rule, if known"""
        for frame in self.frames:
            if frame.span is not None:
                return frame.span
        return None

    def __str__(self) -> str:
        return format_runtime_error(self)


class PatternMismatchError(JanusRuntimeError):
    """A destructuring precondition failed"""
    kind = "PatternMismatch"


class JanusValueError(JanusRuntimeError):
    """An operation was applied to operand kinds it is not defined for"""
    kind = "ValueError"


class TypeMismatchError(JanusRuntimeError):
    """A cast's claimed source type does not match the value"""
    kind = "TypeMismatch"


def format_runtime_error(error: JanusRuntimeError, show_source: bool = False) -> str:
    """Render a runtime error with its expected/found details and rule frames"""
    lines = [f"{error.kind}: {error.message}"]
    if error.expected is not None:
        lines.append(f"  expected: {error.expected}")
    if error.found is not None:
        lines.append(f"  found:    {error.found}")
    for frame in error.frames:
        lines.append(f"  in {frame}")
        if show_source and frame.span is not None and getattr(frame.span, 'text', ''):
            lines.append(f"      {frame.span.text}")
    return '\n'.join(lines)


# ============================================================================
# SEMANTIC ERRORS
# ============================================================================

class JanusSemanticsError(Exception):
    """Program structure error found while building the function table"""

    def __init__(self, message: str, span: Any = None):
        self.message = message
        self.span = span
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        if self.span:
            return f"Semantics error at {self.span}: {self.message}"
        return f"Semantics error: {self.message}"
