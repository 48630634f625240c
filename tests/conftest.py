"""Test configuration for the project."""
import logging
from pathlib import Path
from typing import Dict

import pytest
from lark import Lark

from bolt2json.config import Config, configure_logging

TESTS_DIR = Path(__file__).parent


@pytest.fixture(scope="module")
def parser() -> Lark:
    """Load the Bolt grammar and return a parser"""
    grammar_path = TESTS_DIR.parent / "src" / "bolt2json" / "resources" / "bolt.lark"
    with open(grammar_path, encoding="utf-8") as grammar_file:
        grammar = grammar_file.read()
    return Lark(grammar, parser="lalr", propagate_positions=True)


@pytest.fixture(scope="module")
def test_examples() -> Dict[str, str]:
    """Examples of Bolt code, keyed by file name"""
    tests = {}
    for example_path in sorted((TESTS_DIR / "bolt_examples").iterdir()):
        with open(example_path, "r", encoding="utf-8") as test_file:
            tests[example_path.name] = test_file.read()
    return tests


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep debug events quiet and drop handlers bound to captured streams"""
    configure_logging(Config())
    yield
    package_logger = logging.getLogger("bolt2json")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
