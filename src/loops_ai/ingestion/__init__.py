"""Boundary between the loop store and the scoring core."""

from .loader import JsonFileLoopSource
from .parser import LoopParseError, LoopParser

__all__ = ["JsonFileLoopSource", "LoopParseError", "LoopParser"]
