"""Версия webtoolkit."""

__version__ = "0.1.0"
