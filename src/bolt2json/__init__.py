"""Translate Bolt rules definitions into JSON rules"""
from ._parser import parser
from ._version import __version__
from .rules_generator import generate
from .symbols import parse
from .translator import Translator

__all__ = ["Translator", "__version__", "generate", "parse", "parser"]
