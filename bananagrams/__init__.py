"""Bananagrams game engine with a small FastAPI surface."""

__version__ = "0.1.0"
