"""
Test RulesGenerator
"""
from typing import Dict

import pytest

from bolt2json.exceptions import GenerationError
from bolt2json.rules_generator import generate
from bolt2json.symbols import parse


def rules_of(text: str) -> Dict:
    """Generate the rules object for a Bolt source"""
    return generate(parse(text))["rules"]


def validate_of(expression: str, functions: str = "") -> str:
    """Serialize an expression as a validate() rule at the root"""
    return rules_of(f"{functions}\npath / {{ validate() {{ {expression} }} }}")[".validate"]


def test_users_example(test_examples: Dict[str, str]):
    """Test the rules generated for the users example"""
    assert rules_of(test_examples["users.bolt"]) == {
        "users": {
            "$uid": {
                ".read": "true",
                ".write": "auth != null && auth.uid == $uid",
                ".validate": "newData.hasChildren(['name']) "
                "&& newData.child('name').val().length > 0",
                "name": {".validate": "newData.isString()"},
                "age": {".validate": "newData.isNumber()"},
                "$other": {".validate": "false"},
            }
        }
    }


def test_blog_example(test_examples: Dict[str, str]):
    """Test nested paths, index and prior in the blog example"""
    posts = rules_of(test_examples["blog.bolt"])["posts"]
    assert posts[".read"] == "true"
    assert posts[".indexOn"] == ["created", "author"]

    post = posts["$postId"]
    assert post[".write"] == (
        "auth != null && (data.val() == null || data.child('author').val() == auth.uid)"
    )
    assert post[".validate"] == "newData.hasChildren(['author', 'title', 'created'])"
    assert post["title"] == {".validate": "newData.isString() && newData.val().length <= 100"}
    assert list(post) == [".write", ".validate", "author", "title", "created", "$other"]


def test_members_example(test_examples: Dict[str, str]):
    """Test snapshot references, inlined functions and conditionals"""
    is_member = "root.child('groups').child($group).child('members').child(auth.uid).val() != null"
    assert rules_of(test_examples["members.bolt"]) == {
        "groups": {
            "$group": {
                ".read": is_member,
                "members": {
                    "$member": {
                        ".write": f"{is_member} && $member != auth.uid ? true : false",
                        ".validate": "newData.isBoolean()",
                    }
                },
            }
        },
        "timestamps": {
            "$id": {
                ".validate": "newData.isNumber() && newData.val() <= now && -newData.val() < 0"
            }
        },
    }


def test_empty_source():
    """A source without paths has empty rules"""
    assert generate(parse("")) == {"rules": {}}


def test_operator_parentheses():
    """Test parentheses follow operator precedence"""
    functions = """
        function mix(a, b, c) { (a + b) * c }
        function sub(a, b) { a - b }
        function negate(x) { !x }
    """
    assert validate_of("mix(1, 2, 3) > 6", functions) == "(1 + 2) * 3 > 6"
    assert validate_of("1 - sub(2, 3) == 0", functions) == "1 - (2 - 3) == 0"
    assert validate_of("negate(auth != null)", functions) == "!(auth != null)"
    assert validate_of("negate(auth.admin)", functions) == "!auth.admin"
    assert validate_of("(true || false) && true") == "(true || false) && true"
    assert validate_of("true || false && true") == "true || false && true"
    assert validate_of("(true ? 1 : 2) == 1") == "(true ? 1 : 2) == 1"


def test_this_references():
    """Test this in read, write and validate"""
    rules = rules_of(
        """
        path /doc {
            read() { this.public == true }
            write() { this.owner == auth.uid }
            validate() { this.title.contains('draft') == false }
        }
        """
    )["doc"]
    assert rules[".read"] == "data.child('public').val() == true"
    assert rules[".write"] == "newData.child('owner').val() == auth.uid"
    assert rules[".validate"] == "newData.child('title').val().contains('draft') == false"


def test_snapshot_arguments():
    """Test passing this into a function keeps it a snapshot"""
    functions = "function ownedBy(doc, uid) { doc.owner == uid }"
    assert validate_of("ownedBy(this, auth.uid)", functions) == (
        "newData.child('owner').val() == auth.uid"
    )
    assert validate_of("ownedBy(prior(this), 'x')", functions) == (
        "data.child('owner').val() == 'x'"
    )


def test_snapshot_methods():
    """Test snapshot methods keep the snapshot, navigation can be chained"""
    rules = rules_of("path /a/{b} { validate() { this.parent().child('x').exists() } }")
    assert rules["a"]["$b"][".validate"] == "newData.parent().child('x').exists()"
    assert validate_of("this.parent().owner == auth.uid") == (
        "newData.parent().child('owner').val() == auth.uid"
    )
    assert validate_of("root.users.hasChild(auth.uid)") == (
        "root.child('users').hasChild(auth.uid)"
    )
    assert validate_of("this.val() == prior(this).val()") == "newData.val() == data.val()"
    assert validate_of("this.name.startsWith('a')") == (
        "newData.child('name').val().startsWith('a')"
    )


def test_builtin_types():
    """Test built-in types and unions"""
    rules = rules_of(
        """
        path /a is String | Number { validate() { this != null } }
        path /b is Any;
        path /c is Null;
        path /d is Object | Null;
        """
    )
    assert rules["a"][".validate"] == (
        "(newData.isString() || newData.isNumber()) && newData.val() != null"
    )
    assert rules["b"] == {}
    assert rules["c"] == {".validate": "newData.val() == null"}
    assert rules["d"] == {".validate": "newData.hasChildren()"}


def test_type_inheritance():
    """Test extends merges properties and conditions"""
    rules = rules_of(
        """
        type Named { name: String }
        type Person extends Named {
            email: Email | Null,
            validate() { this.name != '' }
            write() { auth != null }
        }
        type Email extends String { validate() { this.contains('@') } }
        path /people/{id} is Person;
        """
    )
    assert rules["people"]["$id"] == {
        ".write": "auth != null",
        ".validate": "newData.hasChildren(['name']) && newData.child('name').val() != ''",
        "name": {".validate": "newData.isString()"},
        "email": {".validate": "newData.isString() && newData.val().contains('@')"},
        "$other": {".validate": "false"},
    }


def test_optional_properties_only():
    """A type with only nullable properties still requires an object"""
    rules = rules_of("type T { a: String | Null } path /t is T;")
    assert rules["t"][".validate"] == "newData.hasChildren()"


def test_determinism(test_examples: Dict[str, str]):
    """Generating twice gives the same document"""
    for example in test_examples.values():
        assert generate(parse(example)) == generate(parse(example))


def test_generation_errors():
    """Test semantic faults"""
    tests = [
        ("path /a { read() { missing() } }", "Undefined function: missing"),
        ("path /a { read() { foo } }", "Undefined variable: foo"),
        ("function f(x) { x } path /a { read() { f() } }", "f expects 1 argument(s), got 0"),
        (
            "function f() { g() } function g() { f() } path /a { read() { f() } }",
            "Recursive function call: f -> g -> f",
        ),
        ("path /a { read() { prior() } }", "prior expects 1 argument, got 0"),
        ("path /a { read() { auth[0]() } }", "Only named functions and methods can be called"),
        ("path /a is Foo;", "Unknown type: Foo"),
        ("type T { a: String } path /a is T | String;", "Unsupported union type: T | String"),
        ("type T { next: T } path /a is T;", "Recursive type: T -> T"),
        ("type A extends B {} type B extends A {} path /a is A;", "Recursive type: A -> B -> A"),
        ("type A extends String | Number {} path /a is A;", "A cannot extend a union type"),
        ("path /a { create() { true } }", "Unsupported method create() at /a"),
        ("type T { index() { 'a' } } path /a is T;", "Unsupported method index() at type T"),
        ("path /a { read(x) { true } }", "Method read() at /a takes no parameters"),
        (
            "path /a { index() { [1] } }",
            "index() at /a must return a string or an array of strings",
        ),
        ("path /a { read() { true } } path /a { read() { false } }", "Duplicate read() at /a"),
        ("path /a/{x}; path /a/{y};", "Conflicting wildcards at /a: $x and $y"),
        (
            "type T { b: String } path /a is T; path /a/{x};",
            "Conflicting wildcards at /a: $other and $x",
        ),
    ]
    for text, message in tests:
        with pytest.raises(GenerationError) as exc_info:
            generate(parse(text))
        assert exc_info.value.message == message
