"""Newswire: a NewsAPI read-through cache served over HTTP."""

__version__ = "0.1.0"
