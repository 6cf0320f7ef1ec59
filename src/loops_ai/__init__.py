"""Loops AI: follow-up prioritisation for personal commitments."""

__version__ = "0.1.0"
