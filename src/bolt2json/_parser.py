"""Create a parser for the Bolt language"""
import importlib.resources

from lark import Lark

from . import resources

with (importlib.resources.files(resources) / "bolt.lark").open("rt") as grammar_file:
    parser = Lark(grammar_file.read(), parser="lalr", propagate_positions=True)
