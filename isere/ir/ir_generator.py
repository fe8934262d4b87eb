"""
IR Generator for Isere.

Lowers AST nodes into IR through an ``IRBuilder``. Name resolution follows
two rules:

- variable references resolve against the parameters of the function being
  lowered (a ``SymbolTable`` reset for every function);
- calls resolve against the functions already declared or defined in the
  builder's module.

Every failure raises ``CodegenError``. A function definition that fails
leaves no half-built function behind.

Author: xwest
"""

from typing import Any, List, Tuple

from ..analyzer.symbol_table import SymbolTable
from ..parser.ast_nodes import (
    NumberLiteral, VariableReference, BinaryOp, Call, Prototype, FunctionDefinition
)
from .errors import CodegenError, IRVerificationError, create_codegen_error
from .ir_builder import BinaryOpcode, IRBuilder


# IR name given to the wrapper function of a bare top-level expression
ANONYMOUS_FUNCTION_NAME = "__anon_expr"

_ARITHMETIC_OPCODES = {
    "+": (BinaryOpcode.FADD, "addtmp"),
    "-": (BinaryOpcode.FSUB, "subtmp"),
    "*": (BinaryOpcode.FMUL, "multmp"),
}


class IRGenerator:
    """
    Generates IR from Isere AST nodes.

    One generator serves a whole session: functions defined through it stay
    visible to later calls.
    """

    def __init__(self, builder: IRBuilder):
        self.builder = builder
        self.symbols = SymbolTable()

    def generate(self, node) -> Any:
        """
        Lower a top-level construct or an expression.

        Returns:
            A function handle for prototypes and definitions, an IR value
            for expressions
        """
        if isinstance(node, FunctionDefinition):
            return self.generate_function(node)
        if isinstance(node, Prototype):
            return self.generate_prototype(node)
        return self.generate_expression(node)

    # Expressions

    def generate_expression(self, expr) -> Any:
        """
        Lower an expression inside the current function body.

        Operands are lowered left to right, each before the node that uses
        it. The walk keeps its own stack, so a long operator chain does not
        deepen the Python call stack.
        """
        values: List[Any] = []
        pending: List[Tuple[Any, bool]] = [(expr, False)]
        while pending:
            node, operands_done = pending.pop()
            if isinstance(node, NumberLiteral):
                values.append(self.builder.emit_constant(node.value))
            elif isinstance(node, VariableReference):
                values.append(self._generate_variable(node))
            elif isinstance(node, BinaryOp):
                if operands_done:
                    right = values.pop()
                    left = values.pop()
                    values.append(self._generate_binary_op(node, left, right))
                else:
                    pending.append((node, True))
                    pending.append((node.right, False))
                    pending.append((node.left, False))
            elif isinstance(node, Call):
                callee = self._resolve_callee(node)
                if operands_done:
                    split = len(values) - len(node.args)
                    args = values[split:]
                    del values[split:]
                    values.append(self.builder.emit_call(callee, args, "calltmp"))
                else:
                    pending.append((node, True))
                    pending.extend((arg, False) for arg in reversed(node.args))
            else:
                raise create_codegen_error("C008", node, type(node).__name__)
        return values.pop()

    def _generate_variable(self, expr: VariableReference) -> Any:
        value = self.symbols.lookup(expr.name)
        if value is None:
            raise create_codegen_error("C001", expr, expr.name)
        return value

    def _generate_binary_op(self, expr: BinaryOp, left: Any, right: Any) -> Any:
        if expr.operator in _ARITHMETIC_OPCODES:
            opcode, name = _ARITHMETIC_OPCODES[expr.operator]
            return self.builder.emit_binary(opcode, left, right, name)
        if expr.operator == "<":
            # No boolean type in the language: widen the i1 result to 0.0/1.0
            compared = self.builder.emit_binary(BinaryOpcode.FCMP_ULT, left, right, "cmptmp")
            return self.builder.emit_bool_to_float(compared, "booltmp")
        raise create_codegen_error("C005", expr, repr(expr.operator))

    def _resolve_callee(self, expr: Call) -> Any:
        """Find the called function; checked before any argument is lowered."""
        callee = self.builder.lookup_function(expr.callee)
        if callee is None:
            raise create_codegen_error("C002", expr, expr.callee)

        arity = self.builder.function_arity(callee)
        if arity != len(expr.args):
            raise create_codegen_error(
                "C003", expr, f"'{expr.callee}' expects {arity}, got {len(expr.args)}"
            )
        return callee

    # Functions

    def generate_prototype(self, prototype: Prototype) -> Any:
        """
        Declare ``double name(double, ...)`` for a prototype.

        Repeating a declaration with the same arity returns the existing
        function.
        """
        name = self.ir_function_name(prototype)
        existing = self.builder.lookup_function(name)
        if existing is None:
            return self.builder.declare_function(name, prototype.params)
        if self.builder.function_arity(existing) != prototype.arity:
            raise create_codegen_error(
                "C006", prototype,
                f"'{prototype.name}' was declared with {self.builder.function_arity(existing)} "
                f"parameters, redeclared with {prototype.arity}"
            )
        return existing

    def generate_function(self, definition: FunctionDefinition) -> Any:
        """
        Lower a function definition.

        Reuses an earlier declaration of the same name (from an ``import``),
        refuses to redefine a function that already has a body, and removes
        whatever it built if the body fails to lower or verify.
        """
        prototype = definition.prototype
        builder = self.builder

        function = builder.lookup_function(self.ir_function_name(prototype))
        declared_here = function is None
        if declared_here:
            function = self.generate_prototype(prototype)
        elif builder.has_body(function):
            raise create_codegen_error("C004", definition, prototype.name)
        elif builder.function_arity(function) != prototype.arity:
            raise create_codegen_error(
                "C006", definition,
                f"'{prototype.name}' was declared with {builder.function_arity(function)} "
                f"parameters, defined with {prototype.arity}"
            )

        builder.begin_body(function)
        self.symbols.reset(zip(prototype.params, builder.parameters(function)),
                           function_name=prototype.name)
        try:
            return_value = self.generate_expression(definition.body)
            builder.set_return(return_value)
            builder.finalize(function)
        except (CodegenError, IRVerificationError) as e:
            self._discard(function, declared_here)
            if isinstance(e, IRVerificationError):
                raise create_codegen_error("C007", definition, e.message) from e
            raise
        finally:
            self.symbols.clear()

        return function

    def _discard(self, function: Any, declared_here: bool):
        """Drop a failed definition; an imported declaration goes back to bodiless."""
        if declared_here:
            self.builder.erase_function(function)
        else:
            self.builder.remove_body(function)

    @staticmethod
    def ir_function_name(prototype: Prototype) -> str:
        return ANONYMOUS_FUNCTION_NAME if prototype.is_anonymous else prototype.name
