"""Mercado - LaLiga Fantasy market analytics"""

__version__ = "0.1.0"
