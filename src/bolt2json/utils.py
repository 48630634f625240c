"""
Utility functions for rules generation
"""
from typing import Dict, List, NamedTuple, Optional, Tuple

from lark import Token, Tree
from lark.visitors import Interpreter, v_args

from .exceptions import GenerationError
from .symbols import Function

GLOBAL_VARIABLES = ("auth", "now")
SNAPSHOT_VARIABLES = ("root",)
VALUE_PROPERTIES = ("length",)
SNAPSHOT_METHODS = (
    "child",
    "exists",
    "hasChild",
    "hasChildren",
    "isBoolean",
    "isNumber",
    "isString",
    "parent",
    "val",
)
NAVIGATION_METHODS = ("child", "parent")


class Fragment(NamedTuple):
    """Serialized rule expression.

    ``level`` is the precedence of the outermost operator (0 for atoms), and ``snapshot`` marks
    references to a database location that still need ``.val()`` to be used as a value.
    """

    text: str
    level: int = 0
    snapshot: bool = False


def string_value(token: Token) -> str:
    """Strip the quotes off a Bolt string literal"""
    return str(token.value)[1:-1]


def conjoin(fragments: List[Fragment]) -> Optional[Fragment]:
    """Join conditions with ``&&``, parenthesizing looser operands"""
    if not fragments:
        return None
    if len(fragments) == 1:
        return fragments[0]
    level = ExpressionSerializer.precedence["and_expr"]
    texts = [
        f"({fragment.text})" if fragment.level > level else fragment.text for fragment in fragments
    ]
    return Fragment(" && ".join(texts), level)


@v_args(inline=True)
class ExpressionSerializer(Interpreter):
    """Serialize a Bolt expression tree into a rule expression string"""

    precedence = {
        "not_expr": 1,
        "neg_expr": 1,
        "mul_expr": 2,
        "add_expr": 3,
        "compare_expr": 4,
        "equality_expr": 5,
        "and_expr": 6,
        "or_expr": 7,
        "conditional_expr": 8,
    }

    def __init__(
        self,
        functions: Dict[str, Function],
        scope: Dict[str, Fragment],
        this_ref: str = "newData",
        call_stack: Tuple[str, ...] = (),
    ) -> None:
        super().__init__()
        self.functions = functions
        self.scope = scope
        self.this_ref = this_ref
        self.call_stack = call_stack

    def _fragment(self, tree: Tree[Token]) -> Fragment:
        return self._visit_tree(tree)

    def _value(self, fragment: Fragment) -> Fragment:
        if fragment.snapshot:
            return Fragment(fragment.text + ".val()")
        return fragment

    def _operand(self, fragment: Fragment, level: int) -> str:
        fragment = self._value(fragment)
        if fragment.level > level:
            return "(" + fragment.text + ")"
        return fragment.text

    def _binary_expr(
        self, this: str, operator: str, left: Tree[Token], right: Tree[Token]
    ) -> Fragment:
        level = self.precedence[this]
        left_str = self._operand(self._fragment(left), level)
        right_str = self._operand(self._fragment(right), level - 1)
        return Fragment(f"{left_str} {operator} {right_str}", level)

    def _arguments(self, arguments: Optional[Tree[Token]]) -> List[Tree[Token]]:
        if arguments is None:
            return []
        return [child for child in arguments.children if isinstance(child, Tree)]

    def conditional_expr(
        self, guard: Tree[Token], then: Tree[Token], otherwise: Tree[Token]
    ) -> Fragment:
        """Serialize conditional_expr"""
        level = self.precedence["conditional_expr"]
        guard_str = self._operand(self._fragment(guard), level - 1)
        then_str = self._operand(self._fragment(then), level)
        else_str = self._operand(self._fragment(otherwise), level)
        return Fragment(f"{guard_str} ? {then_str} : {else_str}", level)

    def or_expr(self, left: Tree[Token], right: Tree[Token]) -> Fragment:
        """Serialize or_expr"""
        return self._binary_expr("or_expr", "||", left, right)

    def and_expr(self, left: Tree[Token], right: Tree[Token]) -> Fragment:
        """Serialize and_expr"""
        return self._binary_expr("and_expr", "&&", left, right)

    def equality_expr(self, left: Tree[Token], operator: Token, right: Tree[Token]) -> Fragment:
        """Serialize equality_expr"""
        return self._binary_expr("equality_expr", operator.value, left, right)

    def compare_expr(self, left: Tree[Token], operator: Token, right: Tree[Token]) -> Fragment:
        """Serialize compare_expr"""
        return self._binary_expr("compare_expr", operator.value, left, right)

    def add_expr(self, left: Tree[Token], operator: Token, right: Tree[Token]) -> Fragment:
        """Serialize add_expr"""
        return self._binary_expr("add_expr", operator.value, left, right)

    def mul_expr(self, left: Tree[Token], operator: Token, right: Tree[Token]) -> Fragment:
        """Serialize mul_expr"""
        return self._binary_expr("mul_expr", operator.value, left, right)

    def not_expr(self, operand: Tree[Token]) -> Fragment:
        """Serialize not_expr"""
        return Fragment("!" + self._operand(self._fragment(operand), 1), 1)

    def neg_expr(self, _: Token, operand: Tree[Token]) -> Fragment:
        """Serialize neg_expr"""
        operand_str = self._operand(self._fragment(operand), 1)
        if operand_str.startswith("-"):
            operand_str = "(" + operand_str + ")"
        return Fragment("-" + operand_str, 1)

    def getattr(self, obj: Tree[Token], attr: Token) -> Fragment:
        """Serialize getattr, children of a snapshot are looked up with child()"""
        target = self._fragment(obj)
        if target.snapshot and attr.value not in VALUE_PROPERTIES:
            return Fragment(f"{target.text}.child('{attr.value}')", snapshot=True)
        return Fragment(f"{self._operand(target, 0)}.{attr.value}")

    def getitem(self, array: Tree[Token], index: Tree[Token]) -> Fragment:
        """Serialize getitem"""
        target = self._fragment(array)
        key = self._value(self._fragment(index)).text
        if target.snapshot:
            return Fragment(f"{target.text}.child({key})", snapshot=True)
        return Fragment(f"{self._operand(target, 0)}[{key}]")

    def func_call(self, callee: Tree[Token], arguments: Optional[Tree[Token]] = None) -> Fragment:
        """Serialize func_call, user functions are inlined"""
        args = self._arguments(arguments)
        if callee.data == "getattr":
            receiver, method = callee.children
            assert isinstance(receiver, Tree) and isinstance(method, Token)
            target = self._fragment(receiver)
            values = [self._value(self._fragment(arg)).text for arg in args]
            call = f"{method.value}({', '.join(values)})"
            if target.snapshot and method.value in SNAPSHOT_METHODS:
                return Fragment(
                    f"{target.text}.{call}", snapshot=method.value in NAVIGATION_METHODS
                )
            return Fragment(f"{self._operand(target, 0)}.{call}")
        if callee.data != "var_ref":
            raise GenerationError("Only named functions and methods can be called")

        name = str(callee.children[0])
        if name == "prior":
            if len(args) != 1:
                raise GenerationError(f"prior expects 1 argument, got {len(args)}")
            previous = ExpressionSerializer(self.functions, self.scope, "data", self.call_stack)
            return previous._fragment(args[0])
        if name not in self.functions:
            raise GenerationError(f"Undefined function: {name}")
        if name in self.call_stack:
            chain = " -> ".join(self.call_stack + (name,))
            raise GenerationError(f"Recursive function call: {chain}")
        function = self.functions[name]
        if len(args) != len(function.params):
            raise GenerationError(
                f"{name} expects {len(function.params)} argument(s), got {len(args)}"
            )

        bound = {param: self._fragment(arg) for param, arg in zip(function.params, args)}
        call_stack = self.call_stack + (name,)
        inliner = ExpressionSerializer(self.functions, bound, self.this_ref, call_stack)
        return inliner._fragment(function.body)

    def var_ref(self, var: Token) -> Fragment:
        """Serialize var_ref"""
        name = str(var.value)
        if name == "this":
            return Fragment(self.this_ref, snapshot=True)
        if name in self.scope:
            return self.scope[name]
        if name in SNAPSHOT_VARIABLES:
            return Fragment(name, snapshot=True)
        if name in GLOBAL_VARIABLES:
            return Fragment(name)
        raise GenerationError(f"Undefined variable: {name}")

    def array(self, arguments: Optional[Tree[Token]] = None) -> Fragment:
        """Serialize array"""
        elements = [self._value(self._fragment(arg)).text for arg in self._arguments(arguments)]
        return Fragment("[" + ", ".join(elements) + "]")

    def number(self, token: Token) -> Fragment:
        """Serialize number"""
        return Fragment(token.value)

    def string(self, token: Token) -> Fragment:
        """Serialize string"""
        return Fragment(token.value)

    def const_true(self) -> Fragment:
        """Serialize const_true"""
        return Fragment("true")

    def const_false(self) -> Fragment:
        """Serialize const_false"""
        return Fragment("false")

    def const_null(self) -> Fragment:
        """Serialize const_null"""
        return Fragment("null")


def serialize_expression(
    tree: Tree[Token],
    functions: Dict[str, Function],
    scope: Optional[Dict[str, Fragment]] = None,
    this_ref: str = "newData",
) -> Fragment:
    """Serialize an expression tree into a rule value"""
    serializer = ExpressionSerializer(functions, scope or {}, this_ref)
    return serializer._value(serializer._fragment(tree))


def disjoin(fragments: List[Fragment]) -> Fragment:
    """Join alternatives with ``||``, parenthesizing looser operands"""
    if len(fragments) == 1:
        return fragments[0]
    level = ExpressionSerializer.precedence["or_expr"]
    texts = [
        f"({fragment.text})" if fragment.level > level else fragment.text for fragment in fragments
    ]
    return Fragment(" || ".join(texts), level)
