"""bondcalc - customs bond buy/sell fee calculator."""

__version__ = "0.1.0"
