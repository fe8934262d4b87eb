"""
Isere Intermediate Representation Package

Holds the IR-construction facility the code generator talks to, the
in-memory implementation of it and the code generator itself.

Key Features:
- Abstract ``IRBuilder`` facility shared by every backend
- In-memory SSA IR with a verifier and an evaluator
- AST to IR lowering

Author: xwest
"""

from .ir_builder import IRBuilder, BinaryOpcode
from .ir_nodes import (
    IRValue, IRConstant, IRParameter, IRInstruction, IRBinaryOp, IRBoolToFloat,
    IRCall, IRReturn, IRBasicBlock, IRFunction, IRModule, ModuleBuilder, verify_function
)
from .interpreter import IRInterpreter, DEFAULT_EXTERNALS
from .ir_generator import IRGenerator, ANONYMOUS_FUNCTION_NAME
from .errors import CodegenError, IRVerificationError, IREvaluationError, CODEGEN_ERROR_CODES

__all__ = [
    # Facility
    "IRBuilder", "BinaryOpcode",

    # In-memory IR
    "IRValue", "IRConstant", "IRParameter", "IRInstruction", "IRBinaryOp",
    "IRBoolToFloat", "IRCall", "IRReturn", "IRBasicBlock", "IRFunction",
    "IRModule", "ModuleBuilder", "verify_function",
    "IRInterpreter", "DEFAULT_EXTERNALS",

    # Code generation
    "IRGenerator", "ANONYMOUS_FUNCTION_NAME",

    # Errors
    "CodegenError", "IRVerificationError", "IREvaluationError", "CODEGEN_ERROR_CODES",
]
