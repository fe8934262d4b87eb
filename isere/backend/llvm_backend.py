"""
LLVM Backend for Isere.

Implements the ``IRBuilder`` facility with llvmlite: functions are built
directly into an ``llvmlite.ir.Module``, verified through
``llvmlite.binding`` and evaluated with an MCJIT execution engine.

Author: xwest
"""

import ctypes
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import llvmlite.binding as llvm
import llvmlite.ir as ll

from ..ir.errors import IREvaluationError, IRVerificationError
from ..ir.ir_builder import BinaryOpcode, IRBuilder


DOUBLE = ll.DoubleType()

_native_target_ready = False


def initialize_native_target():
    """Initialize the native target and assembly printer once per process."""
    global _native_target_ready
    if not _native_target_ready:
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()
        _native_target_ready = True


def _process_symbol_address(name: str) -> Optional[int]:
    """Address of a C function already loaded into this process (libm included)."""
    try:
        symbol = getattr(ctypes.CDLL(None), name)
    except (AttributeError, OSError, TypeError):
        return None
    return ctypes.cast(symbol, ctypes.c_void_p).value


def _release_global_name(module: ll.Module, name: str):
    """Let a later global in ``module`` be declared under ``name`` again."""
    # llvmlite.ir has no public call to unregister a name. NameScope keeps
    # its registered names in the _useset set (checked against llvmlite 0.50).
    module.scope._useset.discard(name)


class LLVMBuilder(IRBuilder):
    """
    ``IRBuilder`` backed by llvmlite.

    Handles are ``llvmlite.ir.Function`` objects and values are llvmlite
    values. ``externals`` maps imported function names to Python callables;
    any other import is resolved against the symbols of the running process
    (``sin``, ``cos`` and the rest of libm).
    """

    def __init__(self, module_name: str = "isere", target_triple: Optional[str] = None,
                 externals: Optional[Mapping[str, Callable[..., float]]] = None):
        initialize_native_target()

        self.target_triple = target_triple or llvm.get_default_triple()
        self.module = ll.Module(name=module_name)
        self.module.triple = self.target_triple
        self.externals = dict(externals) if externals is not None else {}
        self.builder: Optional[ll.IRBuilder] = None
        self.current_function: Optional[ll.Function] = None
        # ctypes callbacks must outlive every engine that calls them
        self._callbacks: Dict[str, object] = {}

    # Functions

    def declare_function(self, name: str, params: Sequence[str]) -> ll.Function:
        func_type = ll.FunctionType(DOUBLE, [DOUBLE] * len(params))
        function = ll.Function(self.module, func_type, name=name)
        for arg, param in zip(function.args, params):
            arg.name = param
        return function

    def lookup_function(self, name: str) -> Optional[ll.Function]:
        value = self.module.globals.get(name)
        return value if isinstance(value, ll.Function) else None

    def function_name(self, function: ll.Function) -> str:
        return function.name

    def function_arity(self, function: ll.Function) -> int:
        return len(function.args)

    def has_body(self, function: ll.Function) -> bool:
        return not function.is_declaration

    def parameters(self, function: ll.Function) -> List[ll.Argument]:
        return list(function.args)

    def begin_body(self, function: ll.Function) -> None:
        block = function.append_basic_block(name="entry")
        self.builder = ll.IRBuilder(block)
        self.current_function = function

    def finalize(self, function: ll.Function) -> None:
        self.builder = None
        self.current_function = None
        try:
            self.parse_module().verify()
        except RuntimeError as e:
            raise IRVerificationError(str(e).strip(), function.name) from e

    def erase_function(self, function: ll.Function) -> None:
        if self.module.globals.get(function.name) is function:
            del self.module.globals[function.name]
            _release_global_name(self.module, function.name)
        if self.current_function is function:
            self.builder = None
            self.current_function = None

    def remove_body(self, function: ll.Function) -> None:
        del function.blocks[:]
        if self.current_function is function:
            self.builder = None
            self.current_function = None

    # Instructions

    def emit_constant(self, value: float) -> ll.Constant:
        return ll.Constant(DOUBLE, float(value))

    def emit_binary(self, opcode: BinaryOpcode, lhs, rhs, name: str = ""):
        builder = self._require_builder()
        if opcode == BinaryOpcode.FADD:
            return builder.fadd(lhs, rhs, name=name)
        if opcode == BinaryOpcode.FSUB:
            return builder.fsub(lhs, rhs, name=name)
        if opcode == BinaryOpcode.FMUL:
            return builder.fmul(lhs, rhs, name=name)
        if opcode == BinaryOpcode.FCMP_ULT:
            return builder.fcmp_unordered("<", lhs, rhs, name=name)
        raise ValueError(f"Unsupported binary opcode: {opcode}")

    def emit_bool_to_float(self, value, name: str = ""):
        return self._require_builder().uitofp(value, DOUBLE, name=name)

    def emit_call(self, function: ll.Function, args: Sequence, name: str = ""):
        return self._require_builder().call(function, list(args), name=name)

    def set_return(self, value) -> None:
        self._require_builder().ret(value)

    def _require_builder(self) -> ll.IRBuilder:
        if self.builder is None:
            raise RuntimeError("no insertion point; call begin_body() first")
        return self.builder

    # Output

    def render_function(self, function: ll.Function) -> str:
        return str(function)

    def render_module(self) -> str:
        return str(self.module)

    def print_llvm_ir(self) -> str:
        """Get the LLVM IR of the module after a round trip through LLVM's parser."""
        return str(self.parse_module())

    def parse_module(self) -> "llvm.ModuleRef":
        """Parse the module's textual IR with LLVM."""
        return llvm.parse_assembly(str(self.module))

    # Execution

    def evaluate(self, function: ll.Function, args: Sequence[float] = ()) -> float:
        if function.is_declaration:
            raise IREvaluationError(f"function '{function.name}' has no body")
        if len(args) != len(function.args):
            raise IREvaluationError(
                f"'{function.name}' takes {len(function.args)} arguments, got {len(args)}"
            )

        self._bind_externals()

        try:
            llvm_module = self.parse_module()
            llvm_module.verify()
        except RuntimeError as e:
            raise IREvaluationError(f"module failed verification: {e}") from e

        target_machine = llvm.Target.from_triple(self.target_triple).create_target_machine()
        engine = llvm.create_mcjit_compiler(llvm_module, target_machine)
        engine.finalize_object()

        address = engine.get_function_address(function.name)
        if not address:
            raise IREvaluationError(f"no code generated for '{function.name}'")
        c_func = self._c_function_type(len(function.args))(address)
        return float(c_func(*(float(arg) for arg in args)))

    def _bind_externals(self):
        """Make every declared function resolvable before jitting."""
        for function in self.module.functions:
            if not function.is_declaration:
                continue
            name = function.name
            if name in self.externals:
                if name not in self._callbacks:
                    callback = self._c_function_type(len(function.args))(self.externals[name])
                    self._callbacks[name] = callback
                    llvm.add_symbol(name, ctypes.cast(callback, ctypes.c_void_p).value)
            elif not llvm.address_of_symbol(name):
                address = _process_symbol_address(name)
                if address is None:
                    raise IREvaluationError(f"unresolved external function '{name}'")
                llvm.add_symbol(name, address)

    @staticmethod
    def _c_function_type(arity: int):
        return ctypes.CFUNCTYPE(ctypes.c_double, *([ctypes.c_double] * arity))
