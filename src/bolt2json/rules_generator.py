"""
Generator for the JSON rules document
"""
from typing import Any, Dict, List, Optional, Tuple

from lark import Token, Tree

from .exceptions import GenerationError
from .symbols import Method, PathDefinition, Schema, Symbols, TypeExpr
from .utils import Fragment, conjoin, disjoin, serialize_expression, string_value

RulesDocument = Dict[str, Any]

BUILTIN_CONDITIONS: Dict[str, Optional[Fragment]] = {
    "Any": None,
    "Boolean": Fragment("newData.isBoolean()"),
    "Null": Fragment("newData.val() == null", 5),
    "Number": Fragment("newData.isNumber()"),
    "Object": Fragment("newData.hasChildren()"),
    "String": Fragment("newData.isString()"),
}
PATH_METHODS = ("read", "write", "validate", "index")
TYPE_METHODS = ("read", "write", "validate")
OTHER_KEY = "$other"


class RuleNode:
    """A location in the rules tree"""

    def __init__(self) -> None:
        self.read: Optional[Fragment] = None
        self.write: Optional[Fragment] = None
        self.validations: List[Fragment] = []
        self.index_on: Optional[List[str]] = None
        self.children: Dict[str, "RuleNode"] = {}

    def child(self, key: str) -> "RuleNode":
        """Return the child node at key, creating it if needed"""
        if key not in self.children:
            self.children[key] = RuleNode()
        return self.children[key]

    def wildcard(self) -> Optional[str]:
        """Key of the wildcard child, if any"""
        for key in self.children:
            if key.startswith("$"):
                return key
        return None

    def to_json(self) -> Dict[str, Any]:
        """Convert the node into its JSON rules object"""
        result: Dict[str, Any] = {}
        if self.read is not None:
            result[".read"] = self.read.text
        if self.write is not None:
            result[".write"] = self.write.text
        validate = conjoin(self.validations)
        if validate is not None:
            result[".validate"] = validate.text
        if self.index_on is not None:
            result[".indexOn"] = self.index_on
        for key, child in self.children.items():
            result[key] = child.to_json()
        return result


def _segment_key(segment: str) -> Tuple[str, bool]:
    """Rules key for a path segment, and whether it is a wildcard"""
    if segment.startswith("{") and segment.endswith("}"):
        return "$" + segment[1:-1], True
    if segment.startswith("$"):
        return segment, True
    return segment, False


class RulesGenerator:
    """Generate the rules document from Bolt symbols.

    Every path statement is placed into a tree of RuleNode objects. Types attached with ``is``
    expand into validation conditions on the node and its children, then the path methods are
    serialized with the path wildcards in scope.
    """

    def __init__(self, symbols: Symbols) -> None:
        self.symbols = symbols

    def generate(self) -> RulesDocument:
        """Generation entrance"""
        root = RuleNode()
        for path in self.symbols.paths:
            self._apply_path(root, path)
        return {"rules": root.to_json()}

    def _apply_path(self, root: RuleNode, path: PathDefinition) -> None:
        node = root
        location = ""
        scope: Dict[str, Fragment] = {}
        for segment in path.segments:
            key, is_wildcard = _segment_key(segment)
            if is_wildcard:
                self._check_wildcard(node, key, location)
                scope[key[1:]] = Fragment(key)
            node = node.child(key)
            location += "/" + segment

        if path.is_type is not None:
            self._apply_type(node, path.is_type, path.template, ())
        for method in path.methods.values():
            self._apply_method(node, method, scope, PATH_METHODS, path.template)

    @staticmethod
    def _check_wildcard(node: RuleNode, key: str, location: str) -> None:
        existing = node.wildcard()
        if existing is not None and existing != key:
            raise GenerationError(
                f"Conflicting wildcards at {location or '/'}: {existing} and {key}"
            )

    def _apply_method(
        self,
        node: RuleNode,
        method: Method,
        scope: Dict[str, Fragment],
        allowed: Tuple[str, ...],
        location: str,
    ) -> None:
        if method.name not in allowed:
            raise GenerationError(f"Unsupported method {method.name}() at {location}")
        if method.params:
            raise GenerationError(f"Method {method.name}() at {location} takes no parameters")

        if method.name == "index":
            if node.index_on is not None:
                raise GenerationError(f"Duplicate index() at {location}")
            node.index_on = self._index_fields(method.body, location)
        elif method.name == "validate":
            node.validations.append(self._serialize(method.body, scope))
        elif method.name == "read":
            if node.read is not None:
                raise GenerationError(f"Duplicate read() at {location}")
            node.read = self._serialize(method.body, scope, this_ref="data")
        else:
            if node.write is not None:
                raise GenerationError(f"Duplicate write() at {location}")
            node.write = self._serialize(method.body, scope)

    def _serialize(
        self, body: Tree[Token], scope: Dict[str, Fragment], this_ref: str = "newData"
    ) -> Fragment:
        return serialize_expression(body, self.symbols.functions, scope, this_ref)

    @staticmethod
    def _index_fields(body: Tree[Token], location: str) -> List[str]:
        items: List[Any] = [body]
        if body.data == "array":
            items = [child for arguments in body.children for child in arguments.children]
        fields = []
        for item in items:
            if not (isinstance(item, Tree) and item.data == "string"):
                raise GenerationError(
                    f"index() at {location} must return a string or an array of strings"
                )
            token = item.children[0]
            assert isinstance(token, Token)
            fields.append(string_value(token))
        return fields

    def _lookup(self, name: str) -> Optional[Schema]:
        if name in BUILTIN_CONDITIONS:
            return None
        if name not in self.symbols.schemas:
            raise GenerationError(f"Unknown type: {name}")
        return self.symbols.schemas[name]

    def _apply_type(
        self, node: RuleNode, type_expr: TypeExpr, location: str, stack: Tuple[str, ...]
    ) -> None:
        schemas = {name: self._lookup(name) for name in type_expr.names}
        concrete = [name for name in type_expr.names if name != "Null"] or ["Null"]
        user_types = [name for name in concrete if schemas[name] is not None]

        if not user_types:
            if "Any" in concrete:
                return
            conditions = [BUILTIN_CONDITIONS[name] for name in concrete]
            node.validations.append(disjoin([cond for cond in conditions if cond is not None]))
            return
        if len(concrete) > 1:
            raise GenerationError(f"Unsupported union type: {type_expr}")

        schema = schemas[user_types[0]]
        assert schema is not None
        self._apply_schema(node, schema, location, stack)

    def _schema_chain(self, schema: Schema) -> Tuple[List[Schema], Optional[str]]:
        """Schemas from the root ancestor down to schema, and the built-in type they extend"""
        chain = [schema]
        base: Optional[str] = None
        current = schema
        while current.extends is not None:
            if len(current.extends.names) != 1:
                raise GenerationError(f"{current.name} cannot extend a union type")
            parent_name = current.extends.names[0]
            parent = self._lookup(parent_name)
            if parent is None:
                base = parent_name
                break
            if parent in chain:
                names = " -> ".join([item.name for item in chain] + [parent.name])
                raise GenerationError(f"Recursive type: {names}")
            chain.append(parent)
            current = parent
        chain.reverse()
        return chain, base

    def _apply_schema(
        self, node: RuleNode, schema: Schema, location: str, stack: Tuple[str, ...]
    ) -> None:
        if schema.name in stack:
            raise GenerationError(f"Recursive type: {' -> '.join(stack + (schema.name,))}")
        stack = stack + (schema.name,)
        chain, base = self._schema_chain(schema)

        base_condition = BUILTIN_CONDITIONS.get(base) if base is not None else None
        if base_condition is not None:
            node.validations.append(base_condition)

        properties: Dict[str, TypeExpr] = {}
        methods: Dict[str, Method] = {}
        validations: List[Method] = []
        for item in chain:
            properties.update(item.properties)
            for method in item.methods.values():
                if method.name == "validate":
                    validations.append(method)
                else:
                    methods[method.name] = method

        if properties:
            required = [name for name, prop_type in properties.items() if not prop_type.nullable]
            quoted = ", ".join(f"'{name}'" for name in required)
            has_children = "newData.hasChildren()"
            if required:
                has_children = f"newData.hasChildren([{quoted}])"
            node.validations.append(Fragment(has_children))
            for name, prop_type in properties.items():
                self._apply_type(node.child(name), prop_type, f"{location}/{name}", stack)
            self._check_wildcard(node, OTHER_KEY, location)
            node.child(OTHER_KEY).validations.append(Fragment("false"))

        for method in validations + list(methods.values()):
            self._apply_method(node, method, {}, TYPE_METHODS, f"type {schema.name}")


def generate(symbols: Symbols) -> RulesDocument:
    """Generate the rules document for a symbol table"""
    return RulesGenerator(symbols).generate()
