"""Utility functions shared across services."""

from .text import STOP_WORDS, tokenize

__all__ = ["STOP_WORDS", "tokenize"]
