"""
Isere Analyzer Package

Name resolution support for code generation: the per-function symbol table
that binds parameter names to IR values.

Author: xwest
"""

from .symbol_table import SymbolTable

__all__ = [
    "SymbolTable",
]
