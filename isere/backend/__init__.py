"""
Isere Backend Package.

Contains the llvmlite implementation of the IR-construction facility.

Author: xwest
"""

from .llvm_backend import LLVMBuilder, initialize_native_target

__all__ = ['LLVMBuilder', 'initialize_native_target']
