"""
Janus Programming Language Parser
pyparsing grammar producing the syntax tree in ast_nodes, with source spans on
every rule and function block
"""

from typing import List, Union

# Import pyparsing with error handling
try:
    from pyparsing import (
        Forward, Group, Keyword, Literal, Located, OpAssoc, Optional as PyParsingOptional,
        ParseBaseException, ParserElement, QuotedString, Regex, StringEnd, Suppress,
        ZeroOrMore, col, dbl_slash_comment, infix_notation, lineno,
    )
    # Enable packrat parsing for performance
    ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from ast_nodes import (
    ArrayLiteral, BinaryOperation, BoolLiteral, Call, Cast, Expr, FunctionDefinition,
    Ident, NumberLiteral, Operator, PolyIdent, SourceSpan, StringFlag, StringLiteral,
    Transformation, TupleLiteral, UnaryOperation, UnaryOperator, Wildcard, format_rule,
)
from error_handling import JanusErrorHandler, JanusParseError
from values import ValueType


Definition = Union[FunctionDefinition, Transformation]


class JanusGrammar:
    """Janus grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.filename = "<input>"
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the Janus grammar: expressions, rules and function blocks"""

        # Forward declaration for recursive structures
        expression = Forward()

        lparen, rparen, lbrack, rbrack, lbrace, rbrace, comma, semi = map(Suppress, "()[]{},;")
        arrow = Suppress("->")

        # Keywords
        true_kw = Keyword("true")
        false_kw = Keyword("false")
        reserved = true_kw | false_kw

        # Literals
        number = Regex(r"\d[\d_]*(?:\.\d[\d_]*)?").set_parse_action(
            lambda t: NumberLiteral(float(t[0].replace("_", "")))
        )
        plain_string = QuotedString('"', esc_char='\\').set_parse_action(
            lambda t: StringLiteral(t[0])
        )
        format_string = (Suppress(Regex(r'f(?=")')) + QuotedString('"', esc_char='\\')).set_parse_action(
            lambda t: StringLiteral(t[0], StringFlag.FORMAT)
        )
        boolean = (true_kw | false_kw).set_parse_action(lambda t: BoolLiteral(t[0] == "true"))

        # Names
        identifier_base = Regex(r"[A-Za-z_][A-Za-z0-9_]*")
        wildcard = Regex(r"_(?![A-Za-z0-9_])").set_parse_action(lambda t: Wildcard())
        polyident = Regex(r"\$[A-Za-z_][A-Za-z0-9_]*").set_parse_action(lambda t: PolyIdent(t[0][1:]))
        name = ~reserved + identifier_base
        identifier = name.copy().set_parse_action(lambda t: Ident(t[0]))

        # Calls: several arguments form one tuple argument
        def make_call(tokens):
            args = list(tokens[1])
            if len(args) == 1:
                return Call(tokens[0], args[0])
            return Call(tokens[0], TupleLiteral(tuple(args)))

        arguments = Group(PyParsingOptional(expression + ZeroOrMore(comma + expression)))
        call = (name + lparen + arguments + rparen).set_parse_action(make_call)

        # Collections
        array = (
            lbrack + PyParsingOptional(expression + ZeroOrMore(comma + expression) + PyParsingOptional(comma)) + rbrack
        ).set_parse_action(lambda t: ArrayLiteral(tuple(t)))

        def make_parenthesized(tokens):
            items = tuple(item for item in tokens if not isinstance(item, str))
            trailing_comma = len(items) != len(tokens)
            if len(items) == 1 and not trailing_comma:
                return items[0]
            return TupleLiteral(items)

        # `(a)` groups, `(a,)` and `(a, b)` are tuples, `()` is the empty tuple
        parenthesized = (
            lparen
            + PyParsingOptional(expression + ZeroOrMore(comma + expression) + PyParsingOptional(Literal(",")))
            + rparen
        ).set_parse_action(make_parenthesized)

        atom = (
            number | format_string | plain_string | boolean | wildcard | polyident
            | call | identifier | array | parenthesized
        )

        # Operators
        type_tag = Regex(r"#(?:string|number|tuple|array|bool)(?![A-Za-z0-9_])").set_parse_action(
            lambda t: ValueType(t[0][1:])
        )
        cast_suffix = Suppress("::") + type_tag + Suppress("~>") + type_tag
        prefix_op = Regex(r"-(?!>)|!")
        mul_op = Regex(r"[*/]")
        add_op = Regex(r"\+|-(?!>)")

        def make_unary(tokens):
            op, operand = tokens[0]
            if op == "-" and isinstance(operand, NumberLiteral):
                return NumberLiteral(-operand.value)
            return UnaryOperation(UnaryOperator(op), operand)

        def make_cast(tokens):
            items = list(tokens[0])
            result = items[0]
            for index in range(1, len(items), 2):
                result = Cast(result, to=items[index + 1], from_=items[index])
            return result

        def make_binary(tokens):
            items = list(tokens[0])
            result = items[0]
            for index in range(1, len(items), 2):
                result = BinaryOperation(Operator(items[index]), result, items[index + 1])
            return result

        expression <<= infix_notation(atom, [
            (prefix_op, 1, OpAssoc.RIGHT, make_unary),
            (cast_suffix, 1, OpAssoc.LEFT, make_cast),
            (mul_op, 2, OpAssoc.LEFT, make_binary),
            (add_op, 2, OpAssoc.LEFT, make_binary),
            (Literal("&&"), 2, OpAssoc.LEFT, make_binary),
            (Literal("||"), 2, OpAssoc.LEFT, make_binary),
        ])

        # Rules and functions
        def make_span(text: str, start: int, end: int) -> SourceSpan:
            return SourceSpan(
                self.filename,
                lineno(start, text), col(start, text),
                lineno(end, text), col(end, text),
                text[start:end].strip()
            )

        def make_rule(text, loc, tokens):
            destruct_expr, construct_expr = tokens["value"]
            span = make_span(text, tokens["locn_start"], tokens["locn_end"])
            return Transformation(destruct_expr, construct_expr, span)

        rule = Located(expression + arrow - expression + semi).set_parse_action(make_rule)

        def make_function(text, loc, tokens):
            function_name, rules = tokens["value"]
            span = make_span(text, tokens["locn_start"], tokens["locn_end"])
            return FunctionDefinition(function_name, tuple(rules), span)

        function_def = Located(name + lbrace - Group(ZeroOrMore(rule)) + rbrace).set_parse_action(make_function)

        program = ZeroOrMore(function_def | rule) + StringEnd()
        program.ignore(dbl_slash_comment)

        standalone_expression = expression + StringEnd()
        standalone_expression.ignore(dbl_slash_comment)

        # Store the main parsers
        self.program = program
        self.expression = expression
        self.standalone_expression = standalone_expression
        self.rule = rule
        self.function_def = function_def
        self.atom = atom

    def _wrap_bare_rule(self, item: Definition) -> FunctionDefinition:
        if isinstance(item, Transformation):
            return FunctionDefinition(None, (item,), item.span)
        return item

    def parse_program(self, text: str, filename: str = "<input>") -> List[FunctionDefinition]:
        """Parse a complete Janus program into function definitions.

        Rules written outside any block come back as nameless definitions,
        one per rule, in source order.
        """
        self.filename = filename
        try:
            result = self.program.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise JanusErrorHandler(text, filename).enhance_parse_exception(e) from e

        definitions = [self._wrap_bare_rule(item) for item in result]
        if self.debug:
            print(f"Parsed {len(definitions)} definitions from {filename}")
        return definitions

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single Janus expression"""
        self.filename = filename
        try:
            result = self.standalone_expression.parse_string(text, parse_all=True)
        except ParseBaseException as e:
            raise JanusErrorHandler(text, filename).enhance_parse_exception(e) from e
        return result[0]


class JanusParser:
    """Main Janus parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = JanusGrammar(debug)

    def parse_file(self, filepath: str) -> List[FunctionDefinition]:
        """Parse a Janus source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise JanusParseError(f"File not found: {filepath}", filename=filepath)
        except UnicodeDecodeError as e:
            raise JanusParseError(f"Cannot decode file {filepath}: {e}", filename=filepath)
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[FunctionDefinition]:
        """Parse Janus source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single Janus expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> JanusParser:
    """Create a Janus parser"""
    return JanusParser(debug=debug)


def create_debug_parser() -> JanusParser:
    """Create a Janus parser with debug enabled"""
    return JanusParser(debug=True)


def pretty_print_program(definitions: List[FunctionDefinition]) -> str:
    """Render parsed definitions back to Janus source"""
    blocks = []
    for definition in definitions:
        if definition.name is None:
            blocks.extend(format_rule(rule) for rule in definition.rules)
            continue
        lines = [f"{definition.name} {{"]
        lines.extend(f"  {format_rule(rule)}" for rule in definition.rules)
        lines.append("}")
        blocks.append("\n".join(lines))
    return "\n".join(blocks)
