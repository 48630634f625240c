"""
Symbol table for Bolt sources

The parser produces a lark tree, which the SymbolsBuilder walks to collect every
function, type and path definition. Method and function bodies are kept as
expression trees, they are only interpreted by the rules generator.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from lark import Token, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken
from lark.visitors import Interpreter

from ._parser import parser
from .exceptions import ParseError

BUILTIN_TYPES = ("Any", "Boolean", "Null", "Number", "Object", "String")


@dataclass(frozen=True)
class TypeExpr:
    """Union of type names, e.g. ``String | Null``"""

    names: Tuple[str, ...]

    @property
    def nullable(self) -> bool:
        """Whether the union admits a missing value"""
        return "Null" in self.names

    def __str__(self) -> str:
        return " | ".join(self.names)


@dataclass
class Method:
    """Method definition inside a path or type block"""

    name: str
    params: List[str]
    body: Tree[Token]


@dataclass
class Function:
    """Global function definition"""

    name: str
    params: List[str]
    body: Tree[Token]


@dataclass
class Schema:
    """User defined type"""

    name: str
    extends: Optional[TypeExpr] = None
    properties: Dict[str, TypeExpr] = field(default_factory=dict)
    methods: Dict[str, Method] = field(default_factory=dict)


@dataclass
class PathDefinition:
    """Path statement, with nested paths already flattened"""

    template: str
    is_type: Optional[TypeExpr] = None
    methods: Dict[str, Method] = field(default_factory=dict)

    @property
    def segments(self) -> List[str]:
        """Non-empty segments of the path template"""
        return [segment for segment in self.template.split("/") if segment]


@dataclass
class Symbols:
    """Everything defined in a Bolt source"""

    functions: Dict[str, Function] = field(default_factory=dict)
    schemas: Dict[str, Schema] = field(default_factory=dict)
    paths: List[PathDefinition] = field(default_factory=list)


def join_paths(parent: str, child: str) -> str:
    """Join a nested path template onto its parent"""
    return "/" + "/".join(segment for segment in (parent + child).split("/") if segment)


def _duplicate(kind: str, token: Token) -> ParseError:
    return ParseError(f"Duplicate {kind}: {token.value}", token.line or 0, token.column or 0)


class SymbolsBuilder(Interpreter):
    """Interpreter that collects Bolt definitions into a Symbols table.

    Definitions are visited top-down so that nested paths can be joined onto the template of
    the enclosing path. Duplicate definitions are reported as ParseError at the position of the
    offending name.
    """

    def __init__(self) -> None:
        super().__init__()
        self.symbols = Symbols()
        self.path_prefix = ""

    def _reset(self) -> None:
        self.symbols = Symbols()
        self.path_prefix = ""

    def start(self, tree: Tree[Token]) -> Symbols:
        """Entrance rule for collection"""
        self.visit_children(tree)
        result = self.symbols
        self._reset()
        return result

    def function_def(self, tree: Tree[Token]) -> None:
        """Rule for function_def"""
        name_token, *rest = tree.children
        assert isinstance(name_token, Token)
        if name_token.value in self.symbols.functions:
            raise _duplicate("function", name_token)
        params, body = self._signature(rest)
        self.symbols.functions[name_token.value] = Function(name_token.value, params, body)

    def type_def(self, tree: Tree[Token]) -> None:
        """Rule for type_def"""
        name_token, *members = tree.children
        assert isinstance(name_token, Token)
        if name_token.value in BUILTIN_TYPES:
            raise ParseError(
                f"Cannot redefine built-in type: {name_token.value}",
                name_token.line or 0,
                name_token.column or 0,
            )
        if name_token.value in self.symbols.schemas:
            raise _duplicate("type", name_token)

        schema = Schema(name_token.value)
        for member in members:
            assert isinstance(member, Tree)
            if member.data == "type_expr":
                schema.extends = self.visit(member)
            elif member.data == "property_def":
                prop_token, type_tree = member.children
                assert isinstance(prop_token, Token) and isinstance(type_tree, Tree)
                prop_name = prop_token.value
                if prop_token.type == "STRING":
                    prop_name = prop_name[1:-1]
                if prop_name in schema.properties:
                    raise _duplicate("property", prop_token)
                schema.properties[prop_name] = self.visit(type_tree)
            else:
                self._add_method(schema.methods, member)
        self.symbols.schemas[schema.name] = schema

    def path_def(self, tree: Tree[Token]) -> None:
        """Rule for path_def, nested path blocks are flattened"""
        template_token, *rest = tree.children
        assert isinstance(template_token, Token)
        path = PathDefinition(join_paths(self.path_prefix, template_token.value))
        self.symbols.paths.append(path)

        nested: List[Tree[Token]] = []
        for child in rest:
            assert isinstance(child, Tree)
            if child.data == "type_expr":
                path.is_type = self.visit(child)
                continue
            for member in child.children:
                assert isinstance(member, Tree)
                if member.data == "path_def":
                    nested.append(member)
                else:
                    self._add_method(path.methods, member)

        outer_prefix = self.path_prefix
        self.path_prefix = path.template
        for member in nested:
            self.visit(member)
        self.path_prefix = outer_prefix

    def type_expr(self, tree: Tree[Token]) -> TypeExpr:
        """Rule for type_expr"""
        names = []
        for token in tree.children:
            assert isinstance(token, Token)
            if token.value not in names:
                names.append(token.value)
        return TypeExpr(tuple(names))

    def _add_method(self, methods: Dict[str, Method], tree: Tree[Token]) -> None:
        assert tree.data == "method_def"
        name_token, *rest = tree.children
        assert isinstance(name_token, Token)
        if name_token.value in methods:
            raise _duplicate("method", name_token)
        params, body = self._signature(rest)
        methods[name_token.value] = Method(name_token.value, params, body)

    @staticmethod
    def _signature(
        children: List[Union[Token, Tree[Token]]]
    ) -> Tuple[List[str], Tree[Token]]:
        params: List[str] = []
        body = children[-1]
        assert isinstance(body, Tree) and body.data == "body"
        if len(children) == 2:
            params_tree = children[0]
            assert isinstance(params_tree, Tree)
            params = [str(token) for token in params_tree.children]
        expr = body.children[0]
        assert isinstance(expr, Tree)
        return params, expr


def _syntax_error(text: str, exc: UnexpectedInput) -> ParseError:
    """Convert a lark error into a ParseError with a message readable by users"""
    line, column = exc.line, exc.column
    if isinstance(exc, UnexpectedCharacters):
        message = f"Unexpected character {text[exc.pos_in_stream]!r}"
    elif isinstance(exc, UnexpectedToken) and exc.token.type != "$END":
        message = f"Unexpected token {exc.token.value!r}"
    else:
        message = "Unexpected end of input"
    if line is None or line < 1:
        lines = text.split("\n")
        line, column = len(lines), len(lines[-1]) + 1
    return ParseError(message, line, column)


def parse(text: str) -> Symbols:
    """Parse Bolt source text into its symbol table"""
    try:
        tree = parser.parse(text)
    except UnexpectedInput as exc:
        raise _syntax_error(text, exc) from exc
    return SymbolsBuilder().visit(tree)
