"""
Isere Compiler Package

A compiler for Isere, a tiny expression language where every value is a
double. Source text is lexed, parsed into an AST and lowered to an
LLVM-style IR, either in memory or through llvmlite.

Architecture:
    isere/
    ├── lexer/           # Tokenization and lexical analysis
    ├── parser/          # Syntax analysis and AST generation
    ├── analyzer/        # Symbol table for code generation
    ├── ir/              # IR facility, in-memory IR and code generator
    ├── backend/         # llvmlite implementation of the IR facility
    ├── driver.py        # Top-level loop and error recovery
    └── cli.py           # Command-line interface

Author: xwest
License: MIT
"""

__version__ = "0.1.0-alpha"
__author__ = "xwest"
__license__ = "MIT"

from .lexer import Lexer
from .diagnostics import Diagnostic, DiagnosticSink
from .parser import Parser
from .analyzer import SymbolTable
from .ir import IRGenerator, ModuleBuilder
from .driver import Driver, DriverOptions, CompiledItem, compile_string

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "SymbolTable",
    "IRGenerator",
    "ModuleBuilder",
    "Driver",
    "DriverOptions",
    "CompiledItem",
    "compile_string",
    "Diagnostic",
    "DiagnosticSink",

    # Version info
    "__version__",
    "__author__",
    "__license__",
]
