"""
Isere in-memory Intermediate Representation

A small SSA IR with the same shape as the LLVM subset Isere needs: a module
of functions, each either a declaration or a single ``entry`` block of
instructions ending in ``ret``. Every value is a ``double`` except the
1-bit result of a comparison.

``ModuleBuilder`` implements the ``IRBuilder`` facility on top of these
nodes. It has no native dependencies, which makes it the backend of choice
for tests.

Author: xwest
"""

from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .errors import IRVerificationError
from .ir_builder import BinaryOpcode, IRBuilder


F64 = "double"
I1 = "i1"


class IRValue:
    """A typed SSA value."""

    def __init__(self, ir_type: str, name: str = ""):
        self.type = ir_type
        self.name = name

    @property
    def ref(self) -> str:
        """How an instruction operand refers to this value."""
        return f"%{self.name}"

    def __str__(self) -> str:
        return f"{self.type} {self.ref}"


class IRConstant(IRValue):
    """Constant double."""

    def __init__(self, value: float):
        super().__init__(F64)
        self.value = float(value)

    @property
    def ref(self) -> str:
        return repr(self.value)


class IRParameter(IRValue):
    """Formal parameter of a function."""

    def __init__(self, name: str, index: int):
        super().__init__(F64, name)
        self.index = index


class IRInstruction(IRValue):
    """Base class for instructions."""

    def __init__(self, ir_type: Optional[str], name: str, operands: List[IRValue]):
        super().__init__(ir_type or "void", name)
        self.operands = operands
        self.parent: Optional["IRBasicBlock"] = None


class IRBinaryOp(IRInstruction):
    """fadd/fsub/fmul/fcmp ult"""

    def __init__(self, opcode: BinaryOpcode, left: IRValue, right: IRValue, name: str):
        result_type = I1 if opcode == BinaryOpcode.FCMP_ULT else F64
        super().__init__(result_type, name, [left, right])
        self.opcode = opcode

    @property
    def left(self) -> IRValue:
        return self.operands[0]

    @property
    def right(self) -> IRValue:
        return self.operands[1]

    def __str__(self) -> str:
        return f"{self.ref} = {self.opcode.value} {F64} {self.left.ref}, {self.right.ref}"


class IRBoolToFloat(IRInstruction):
    """uitofp i1 -> double"""

    def __init__(self, operand: IRValue, name: str):
        super().__init__(F64, name, [operand])

    @property
    def operand(self) -> IRValue:
        return self.operands[0]

    def __str__(self) -> str:
        return f"{self.ref} = uitofp {I1} {self.operand.ref} to {F64}"


class IRCall(IRInstruction):
    """Direct call to a module function."""

    def __init__(self, function: "IRFunction", args: List[IRValue], name: str):
        super().__init__(F64, name, list(args))
        self.function = function

    @property
    def args(self) -> List[IRValue]:
        return self.operands

    def __str__(self) -> str:
        args = ", ".join(str(arg) for arg in self.args)
        return f"{self.ref} = call {F64} @{self.function.name}({args})"


class IRReturn(IRInstruction):
    """Return from function."""

    def __init__(self, value: IRValue):
        super().__init__(None, "", [value])

    @property
    def value(self) -> IRValue:
        return self.operands[0]

    def __str__(self) -> str:
        return f"ret {self.value.type} {self.value.ref}"


class IRBasicBlock:
    """Basic block containing a sequence of instructions."""

    def __init__(self, name: str):
        self.name = name
        self.instructions: List[IRInstruction] = []
        self.function: Optional["IRFunction"] = None

    def add_instruction(self, instruction: IRInstruction):
        instruction.parent = self
        self.instructions.append(instruction)

    @property
    def terminator(self) -> Optional[IRInstruction]:
        if self.instructions and isinstance(self.instructions[-1], IRReturn):
            return self.instructions[-1]
        return None

    def __str__(self) -> str:
        lines = [f"{self.name}:"]
        for instr in self.instructions:
            lines.append(f"  {instr}")
        return "\n".join(lines)


class IRFunction:
    """Function in IR: a declaration until a basic block is added."""

    def __init__(self, name: str, param_names: Sequence[str]):
        self.name = name
        self.basic_blocks: List[IRBasicBlock] = []
        self.module: Optional["IRModule"] = None
        self._used_names: Dict[str, int] = {}
        self.parameters: List[IRParameter] = [
            IRParameter(self.unique_name(param), i) for i, param in enumerate(param_names)
        ]

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_declaration(self) -> bool:
        return not self.basic_blocks

    @property
    def entry_block(self) -> Optional[IRBasicBlock]:
        return self.basic_blocks[0] if self.basic_blocks else None

    def add_basic_block(self, block: IRBasicBlock):
        block.function = self
        self.basic_blocks.append(block)

    def unique_name(self, hint: str) -> str:
        """Deduplicate a value name within this function: x, x1, x2, ..."""
        hint = hint or "tmp"
        count = self._used_names.get(hint)
        if count is None:
            self._used_names[hint] = 0
            return hint
        while True:
            count += 1
            candidate = f"{hint}{count}"
            if candidate not in self._used_names:
                self._used_names[hint] = count
                self._used_names[candidate] = 0
                return candidate

    def reset_names(self):
        """Forget instruction names, keeping the parameters' ones."""
        self._used_names = {}
        for param in self.parameters:
            self._used_names[param.name] = 0

    def instructions(self) -> List[IRInstruction]:
        return [instr for block in self.basic_blocks for instr in block.instructions]

    def __str__(self) -> str:
        params = ", ".join(str(param) for param in self.parameters)
        if self.is_declaration:
            return f"declare {F64} @{self.name}({params})"
        lines = [f"define {F64} @{self.name}({params}) {{"]
        for block in self.basic_blocks:
            lines.append(str(block))
        lines.append("}")
        return "\n".join(lines)


class IRModule:
    """Top-level container of functions."""

    def __init__(self, name: str):
        self.name = name
        self.functions: Dict[str, IRFunction] = {}

    def add_function(self, function: IRFunction):
        if function.name in self.functions:
            raise ValueError(f"function '{function.name}' already exists in module '{self.name}'")
        function.module = self
        self.functions[function.name] = function

    def get_function(self, name: str) -> Optional[IRFunction]:
        return self.functions.get(name)

    def remove_function(self, function: IRFunction):
        if self.functions.get(function.name) is function:
            del self.functions[function.name]
            function.module = None

    def __str__(self) -> str:
        lines = [f"; ModuleID = '{self.name}'"]
        for function in self.functions.values():
            lines.append("")
            lines.append(str(function))
        return "\n".join(lines) + "\n"


def verify_function(function: IRFunction) -> None:
    """
    Check the structural invariants of a defined function.

    Raises:
        IRVerificationError: On the first violation found
    """
    def fail(message: str):
        raise IRVerificationError(f"{message} in function '{function.name}'", function.name)

    if function.is_declaration:
        fail("no body")
    if len(function.basic_blocks) != 1:
        fail("expected exactly one basic block")

    block = function.entry_block
    if block.terminator is None:
        fail("entry block does not end with a return")

    defined = set(id(param) for param in function.parameters)
    for instr in block.instructions:
        if isinstance(instr, IRReturn) and instr is not block.terminator:
            fail("return before the end of the block")
        for operand in instr.operands:
            if not isinstance(operand, IRConstant) and id(operand) not in defined:
                fail(f"operand {operand.ref} used before definition")
        if isinstance(instr, IRCall):
            callee = instr.function
            if callee.module is None or callee.module is not function.module:
                fail(f"call to function '{callee.name}' outside the module")
            if len(instr.args) != callee.arity:
                fail(f"call to '{callee.name}' with {len(instr.args)} arguments, expected {callee.arity}")
        if isinstance(instr, IRBoolToFloat) and instr.operand.type != I1:
            fail("uitofp operand is not i1")
        defined.add(id(instr))

    if block.terminator.value.type != F64:
        fail("return value is not a double")


class ModuleBuilder(IRBuilder):
    """
    ``IRBuilder`` that builds an ``IRModule`` in memory.

    Imported functions are evaluated through ``externals``, a mapping from
    function name to a Python callable.
    """

    def __init__(self, module_name: str = "isere",
                 externals: Optional[Mapping[str, Callable[..., float]]] = None):
        self.module = IRModule(module_name)
        self.externals = dict(externals) if externals is not None else {}
        self.current_function: Optional[IRFunction] = None
        self.current_block: Optional[IRBasicBlock] = None

    def declare_function(self, name: str, params: Sequence[str]) -> IRFunction:
        function = IRFunction(name, params)
        self.module.add_function(function)
        return function

    def lookup_function(self, name: str) -> Optional[IRFunction]:
        return self.module.get_function(name)

    def function_name(self, function: IRFunction) -> str:
        return function.name

    def function_arity(self, function: IRFunction) -> int:
        return function.arity

    def has_body(self, function: IRFunction) -> bool:
        return not function.is_declaration

    def parameters(self, function: IRFunction) -> List[IRParameter]:
        return list(function.parameters)

    def begin_body(self, function: IRFunction) -> None:
        block = IRBasicBlock("entry")
        function.add_basic_block(block)
        self.current_function = function
        self.current_block = block

    def finalize(self, function: IRFunction) -> None:
        self.current_function = None
        self.current_block = None
        verify_function(function)

    def erase_function(self, function: IRFunction) -> None:
        self.module.remove_function(function)
        if self.current_function is function:
            self.current_function = None
            self.current_block = None

    def remove_body(self, function: IRFunction) -> None:
        function.basic_blocks.clear()
        function.reset_names()
        if self.current_function is function:
            self.current_function = None
            self.current_block = None

    def _insert(self, instruction: IRInstruction) -> IRInstruction:
        if self.current_block is None:
            raise RuntimeError("no insertion point; call begin_body() first")
        self.current_block.add_instruction(instruction)
        return instruction

    def _name(self, hint: str) -> str:
        if self.current_function is None:
            raise RuntimeError("no insertion point; call begin_body() first")
        return self.current_function.unique_name(hint)

    def emit_constant(self, value: float) -> IRConstant:
        return IRConstant(value)

    def emit_binary(self, opcode: BinaryOpcode, lhs: IRValue, rhs: IRValue, name: str = "") -> IRBinaryOp:
        return self._insert(IRBinaryOp(opcode, lhs, rhs, self._name(name)))

    def emit_bool_to_float(self, value: IRValue, name: str = "") -> IRBoolToFloat:
        return self._insert(IRBoolToFloat(value, self._name(name)))

    def emit_call(self, function: IRFunction, args: Sequence[IRValue], name: str = "") -> IRCall:
        return self._insert(IRCall(function, list(args), self._name(name)))

    def set_return(self, value: IRValue) -> None:
        self._insert(IRReturn(value))

    def render_function(self, function: IRFunction) -> str:
        return str(function)

    def render_module(self) -> str:
        return str(self.module)

    def evaluate(self, function: IRFunction, args: Sequence[float] = ()) -> float:
        from .interpreter import IRInterpreter

        return IRInterpreter(self.module, self.externals).call(function.name, args)
