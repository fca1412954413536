"""Parse challenge JavaScript with tree-sitter and lower it to :mod:`js_ast` nodes."""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional

from tree_sitter_language_pack import get_parser

from .exceptions import ParseError, UnsupportedConstruct
from .sandbox import digits_to_number
from .js_ast import (
    ArrayLiteral,
    Assign,
    Binary,
    Block,
    BooleanLiteral,
    Break,
    Call,
    ComputedMember,
    Conditional,
    Continue,
    Expr,
    ExpressionStatement,
    For,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    If,
    Node,
    NullLiteral,
    NumberLiteral,
    ObjectLiteral,
    Property,
    Return,
    Sequence,
    StaticMember,
    Stmt,
    StringLiteral,
    Try,
    Unary,
    VarDeclaration,
    VarDeclarator,
    While,
)
from .visitor import link_parents

LOG = logging.getLogger(__name__)

__all__ = ["parse_function", "parse_expression", "parse_number_literal", "decode_string_literal"]

_LANGUAGE = "javascript"
_IGNORED = {"comment", "hash_bang_line"}
_FUNCTION_TYPES = {"function_expression", "function"}

_ESCAPE_RE = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-3][0-7]{0,2}|[4-7][0-7]?|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}


def parse_number_literal(text: str) -> float:
    """Convert a JavaScript numeric literal to its double value."""

    raw = text.replace("_", "")
    if raw.endswith("n"):
        raise UnsupportedConstruct(f"BigInt literal {text}")
    prefix = raw[:2].lower()
    try:
        if prefix == "0x":
            return digits_to_number(raw[2:], 16)
        if prefix == "0o":
            return digits_to_number(raw[2:], 8)
        if prefix == "0b":
            return digits_to_number(raw[2:], 2)
        if len(raw) > 1 and raw[0] == "0" and raw.isdigit():
            # legacy octal unless a digit rules it out
            if all(digit in "01234567" for digit in raw):
                return digits_to_number(raw, 8)
            return digits_to_number(raw, 10)
        return float(raw)
    except ValueError as exc:
        raise ParseError(f"invalid number literal {text!r}") from exc


def _decode_escape(match: "re.Match[str]") -> str:
    body = match.group(1)
    if body in _LINE_CONTINUATIONS:
        return ""
    if body.startswith("u{"):
        return chr(int(body[2:-1], 16))
    if body[0] == "u" and len(body) == 5:
        return chr(int(body[1:], 16))
    if body[0] == "x" and len(body) == 3:
        return chr(int(body[1:], 16))
    if body[0] in "01234567":
        return chr(int(body, 8))
    return _SIMPLE_ESCAPES.get(body, body)


def decode_string_literal(text: str) -> str:
    """Decode a quoted JavaScript string literal (quotes included)."""

    if len(text) < 2 or text[0] not in "'\"" or text[-1] != text[0]:
        raise ParseError(f"malformed string literal {text!r}")
    decoded = _ESCAPE_RE.sub(_decode_escape, text[1:-1])
    # merge escaped surrogate pairs such as "\ud83d\ude00"
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", "surrogatepass")


def _first_error(node) -> Optional[object]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _parse_tree(text: str):
    source = text.encode("utf-8")
    tree = get_parser(_LANGUAGE).parse(source)
    root = tree.root_node
    if root.has_error:
        error = _first_error(root) or root
        line, column = error.start_point
        raise ParseError(f"syntax error at line {line + 1}, column {column + 1}")
    return source, root


def _single_expression(root) -> object:
    statements = [child for child in root.named_children if child.type not in _IGNORED]
    if len(statements) != 1 or statements[0].type != "expression_statement":
        raise ParseError("input is not a single expression")
    node = _Lowering.named(statements[0])[0]
    while node.type == "parenthesized_expression":
        node = _Lowering.named(node)[0]
    return node


def parse_function(source: str) -> FunctionExpression:
    """Parse ``source`` as a single-parameter function expression.

    The text is wrapped in parentheses so ``function(a){...}`` parses as an
    expression rather than a (nameless, therefore invalid) declaration.
    """

    encoded, root = _parse_tree(f"({source})")
    node = _single_expression(root)
    if node.type not in _FUNCTION_TYPES:
        raise ParseError(f"expected a function expression, found {node.type}")
    function = _Lowering(encoded).function(node)
    if len(function.params) != 1:
        raise ParseError(f"expected exactly one parameter, found {len(function.params)}")
    link_parents(function)
    LOG.debug("parsed function with %d top-level statements", len(function.body))
    return function


def parse_expression(source: str) -> Expr:
    """Parse a standalone JavaScript expression."""

    encoded, root = _parse_tree(f"({source})")
    node = _single_expression(root)
    expression = _Lowering(encoded).expr(node)
    link_parents(expression)
    return expression


class _Lowering:
    """Translate tree-sitter nodes into :mod:`js_ast` dataclasses."""

    def __init__(self, source: bytes) -> None:
        self._source = source
        self._statements: Dict[str, Callable[[object], Optional[Stmt]]] = {
            "expression_statement": self._expression_statement,
            "variable_declaration": self._declaration,
            "lexical_declaration": self._declaration,
            "function_declaration": self._function_declaration,
            "return_statement": self._return,
            "if_statement": self._if,
            "for_statement": self._for,
            "while_statement": self._while,
            "try_statement": self._try,
            "break_statement": self._break,
            "continue_statement": self._continue,
            "statement_block": self._block,
            "empty_statement": lambda node: None,
        }
        self._expressions: Dict[str, Callable[[object], Expr]] = {
            "identifier": self._identifier,
            "undefined": self._identifier,
            "number": self._number,
            "string": self._string,
            "true": lambda node: BooleanLiteral(True),
            "false": lambda node: BooleanLiteral(False),
            "null": lambda node: NullLiteral(),
            "array": self._array,
            "object": self._object,
            "function_expression": self.function,
            "function": self.function,
            "arrow_function": self._arrow,
            "call_expression": self._call,
            "member_expression": self._member,
            "subscript_expression": self._subscript,
            "binary_expression": self._binary,
            "unary_expression": self._unary,
            "assignment_expression": self._assignment,
            "augmented_assignment_expression": self._assignment,
            "ternary_expression": self._ternary,
            "parenthesized_expression": self._parenthesized,
            "sequence_expression": self._sequence,
        }

    # -- helpers ---------------------------------------------------------
    @staticmethod
    def named(node) -> List[object]:
        return [child for child in node.named_children if child.type not in _IGNORED]

    def text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _unsupported(self, node, what: Optional[str] = None) -> UnsupportedConstruct:
        line, column = node.start_point
        label = what or node.type
        return UnsupportedConstruct(f"{label} at line {line + 1}, column {column + 1}")

    @staticmethod
    def _field(node, name: str):
        return node.child_by_field_name(name)

    def _has_child(self, node, kind: str) -> bool:
        return any(child.type == kind for child in node.children)

    # -- statements ------------------------------------------------------
    def stmt(self, node) -> Optional[Stmt]:
        handler = self._statements.get(node.type)
        if handler is None:
            raise self._unsupported(node)
        return handler(node)

    def body(self, node) -> List[Stmt]:
        """Normalise a statement or block into a statement list."""

        if node.type == "statement_block":
            children = self.named(node)
        else:
            children = [node]
        statements = []
        for child in children:
            lowered = self.stmt(child)
            if lowered is not None:
                statements.append(lowered)
        return statements

    def _expression_statement(self, node) -> Stmt:
        return ExpressionStatement(self.expr(self.named(node)[0]))

    def _declaration(self, node) -> VarDeclaration:
        kind = node.children[0].type
        declarators = []
        for child in self.named(node):
            if child.type != "variable_declarator":
                raise self._unsupported(child)
            name = self._field(child, "name")
            if name.type != "identifier":
                raise self._unsupported(name, "destructuring declaration")
            value = self._field(child, "value")
            init = self.expr(value) if value is not None else None
            declarators.append(VarDeclarator(Identifier(self.text(name)), init))
        return VarDeclaration(kind, declarators)

    def _params(self, node) -> List[Identifier]:
        params = []
        for child in self.named(node):
            if child.type != "identifier":
                raise self._unsupported(child, f"{child.type} parameter")
            params.append(Identifier(self.text(child)))
        return params

    def _check_plain_function(self, node) -> None:
        for child in node.children:
            if child.type in {"async", "*"}:
                raise self._unsupported(node, f"{child.type} function")

    def _function_declaration(self, node) -> FunctionDeclaration:
        self._check_plain_function(node)
        name = Identifier(self.text(self._field(node, "name")))
        params = self._params(self._field(node, "parameters"))
        return FunctionDeclaration(name, params, self.body(self._field(node, "body")))

    def _return(self, node) -> Return:
        children = self.named(node)
        return Return(self.expr(children[0]) if children else None)

    def _if(self, node) -> If:
        test = self.expr(self._field(node, "condition"))
        consequent = self.body(self._field(node, "consequence"))
        alternative = self._field(node, "alternative")
        alternate = None
        if alternative is not None:
            # else_clause wraps the statement
            alternate = self.body(self.named(alternative)[0])
        return If(test, consequent, alternate)

    def _loop_clause(self, node) -> Optional[Expr]:
        if node is None or node.type == "empty_statement":
            return None
        if node.type == "expression_statement":
            return self.expr(self.named(node)[0])
        return self.expr(node)

    def _for(self, node) -> For:
        initializer = self._field(node, "initializer")
        init: Optional[Node]
        if initializer is not None and initializer.type in {"variable_declaration", "lexical_declaration"}:
            init = self._declaration(initializer)
        else:
            init = self._loop_clause(initializer)
        test = self._loop_clause(self._field(node, "condition"))
        update = self._loop_clause(self._field(node, "increment"))
        return For(init, test, update, self.body(self._field(node, "body")))

    def _while(self, node) -> While:
        return While(self.expr(self._field(node, "condition")), self.body(self._field(node, "body")))

    def _try(self, node) -> Try:
        block = self.body(self._field(node, "body"))
        param = None
        handler = None
        finalizer = None
        catch = self._field(node, "handler")
        if catch is not None:
            parameter = self._field(catch, "parameter")
            if parameter is not None:
                if parameter.type != "identifier":
                    raise self._unsupported(parameter, "destructuring catch parameter")
                param = Identifier(self.text(parameter))
            handler = self.body(self._field(catch, "body"))
        finally_clause = self._field(node, "finalizer")
        if finally_clause is not None:
            finalizer = self.body(self._field(finally_clause, "body"))
        return Try(block, param, handler, finalizer)

    def _break(self, node) -> Break:
        if self.named(node):
            raise self._unsupported(node, "labelled break")
        return Break()

    def _continue(self, node) -> Continue:
        if self.named(node):
            raise self._unsupported(node, "labelled continue")
        return Continue()

    def _block(self, node) -> Block:
        return Block(self.body(node))

    # -- expressions -----------------------------------------------------
    def expr(self, node) -> Expr:
        handler = self._expressions.get(node.type)
        if handler is None:
            raise self._unsupported(node)
        return handler(node)

    def _identifier(self, node) -> Identifier:
        return Identifier(self.text(node))

    def _number(self, node) -> NumberLiteral:
        return NumberLiteral(parse_number_literal(self.text(node)))

    def _string(self, node) -> StringLiteral:
        return StringLiteral(decode_string_literal(self.text(node)))

    def _array(self, node) -> ArrayLiteral:
        children = self.named(node)
        commas = sum(1 for child in node.children if child.type == ",")
        trailing = len(node.children) >= 2 and node.children[-2].type == ","
        if commas != max(len(children) - 1, 0) + (1 if trailing and children else 0):
            raise self._unsupported(node, "array hole")
        elements = []
        for child in children:
            if child.type == "spread_element":
                raise self._unsupported(child, "spread element")
            elements.append(self.expr(child))
        return ArrayLiteral(elements)

    def _object(self, node) -> ObjectLiteral:
        properties = []
        for child in self.named(node):
            if child.type == "shorthand_property_identifier":
                name = self.text(child)
                properties.append(Property(name, Identifier(name)))
                continue
            if child.type != "pair":
                raise self._unsupported(child)
            key_node = self._field(child, "key")
            if key_node.type == "property_identifier":
                key = self.text(key_node)
            elif key_node.type == "string":
                key = decode_string_literal(self.text(key_node))
            elif key_node.type == "number":
                key = self.text(key_node)
            else:
                raise self._unsupported(key_node, "computed object key")
            properties.append(Property(key, self.expr(self._field(child, "value"))))
        return ObjectLiteral(properties)

    def function(self, node) -> FunctionExpression:
        self._check_plain_function(node)
        name_node = self._field(node, "name")
        name = Identifier(self.text(name_node)) if name_node is not None else None
        params = self._params(self._field(node, "parameters"))
        return FunctionExpression(params, self.body(self._field(node, "body")), name)

    def _arrow(self, node) -> FunctionExpression:
        self._check_plain_function(node)
        single = self._field(node, "parameter")
        if single is not None:
            if single.type != "identifier":
                raise self._unsupported(single, f"{single.type} parameter")
            params = [Identifier(self.text(single))]
        else:
            params = self._params(self._field(node, "parameters"))
        body_node = self._field(node, "body")
        if body_node.type == "statement_block":
            body = self.body(body_node)
        else:
            body = [Return(self.expr(body_node))]
        return FunctionExpression(params, body, None, is_arrow=True)

    def _call(self, node) -> Call:
        if self._has_child(node, "optional_chain"):
            raise self._unsupported(node, "optional call")
        arguments = self._field(node, "arguments")
        if arguments.type != "arguments":
            raise self._unsupported(arguments, "tagged template")
        args = []
        for child in self.named(arguments):
            if child.type == "spread_element":
                raise self._unsupported(child, "spread argument")
            args.append(self.expr(child))
        return Call(self.expr(self._field(node, "function")), args)

    def _member(self, node) -> StaticMember:
        if self._has_child(node, "optional_chain"):
            raise self._unsupported(node, "optional member access")
        prop = self._field(node, "property")
        if prop.type != "property_identifier":
            raise self._unsupported(prop, "private member access")
        return StaticMember(self.expr(self._field(node, "object")), self.text(prop))

    def _subscript(self, node) -> ComputedMember:
        if self._has_child(node, "optional_chain"):
            raise self._unsupported(node, "optional member access")
        return ComputedMember(self.expr(self._field(node, "object")), self.expr(self._field(node, "index")))

    def _binary(self, node) -> Binary:
        op = self._field(node, "operator").type
        return Binary(op, self.expr(self._field(node, "left")), self.expr(self._field(node, "right")))

    def _unary(self, node) -> Unary:
        op = self._field(node, "operator").type
        return Unary(op, self.expr(self._field(node, "argument")))

    def _assignment(self, node) -> Assign:
        left = self._field(node, "left")
        if left.type not in {"identifier", "member_expression", "subscript_expression"}:
            raise self._unsupported(left, "destructuring assignment")
        operator = self._field(node, "operator")
        op = operator.type if operator is not None else "="
        return Assign(self.expr(left), op, self.expr(self._field(node, "right")))

    def _ternary(self, node) -> Conditional:
        return Conditional(
            self.expr(self._field(node, "condition")),
            self.expr(self._field(node, "consequence")),
            self.expr(self._field(node, "alternative")),
        )

    def _parenthesized(self, node) -> Expr:
        return self.expr(self.named(node)[0])

    def _flatten_sequence(self, node, out: List[Expr]) -> None:
        for child in self.named(node):
            if child.type == "sequence_expression":
                self._flatten_sequence(child, out)
            else:
                out.append(self.expr(child))

    def _sequence(self, node) -> Sequence:
        expressions: List[Expr] = []
        self._flatten_sequence(node, expressions)
        return Sequence(expressions)
