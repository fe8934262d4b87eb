"""
Test suite for the in-memory IR, its verifier and its evaluator.

Tests cover:
- Building functions through ModuleBuilder
- Value naming and textual IR
- Verification failures
- Evaluation, externals and call depth

Author: xwest
"""

import math
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from isere.ir import (
    BinaryOpcode, ModuleBuilder, IRInterpreter, IRConstant, IRModule, IRFunction,
    IRVerificationError, IREvaluationError
)
from isere.ir.interpreter import DEFAULT_EXTERNALS, DEFAULT_MAX_DEPTH, _fcmp_ult


class TestModuleBuilder(unittest.TestCase):
    """Test cases for building in-memory IR."""

    def setUp(self):
        self.builder = ModuleBuilder()

    def build_add(self):
        builder = self.builder
        function = builder.declare_function("add", ["a", "b"])
        builder.begin_body(function)
        a, b = builder.parameters(function)
        builder.set_return(builder.emit_binary(BinaryOpcode.FADD, a, b, "addtmp"))
        builder.finalize(function)
        return function

    def test_declaration(self):
        function = self.builder.declare_function("sin", ["x"])
        self.assertFalse(self.builder.has_body(function))
        self.assertEqual(self.builder.function_arity(function), 1)
        self.assertEqual(self.builder.render_function(function), "declare double @sin(double %x)")
        self.assertIs(self.builder.lookup_function("sin"), function)
        self.assertIsNone(self.builder.lookup_function("cos"))

    def test_duplicate_declaration(self):
        self.builder.declare_function("f", [])
        with self.assertRaises(ValueError):
            self.builder.declare_function("f", [])

    def test_definition_text(self):
        function = self.build_add()
        self.assertTrue(self.builder.has_body(function))
        self.assertEqual(
            self.builder.render_function(function),
            "define double @add(double %a, double %b) {\n"
            "entry:\n"
            "  %addtmp = fadd double %a, %b\n"
            "  ret double %addtmp\n"
            "}"
        )

    def test_module_text(self):
        self.build_add()
        self.builder.declare_function("sin", ["x"])
        text = self.builder.render_module()
        self.assertTrue(text.startswith("; ModuleID = 'isere'"))
        self.assertIn("define double @add", text)
        self.assertIn("declare double @sin(double %x)", text)

    def test_value_names_are_unique(self):
        builder = self.builder
        function = builder.declare_function("f", ["x"])
        builder.begin_body(function)
        (x,) = builder.parameters(function)
        first = builder.emit_binary(BinaryOpcode.FMUL, x, x, "multmp")
        second = builder.emit_binary(BinaryOpcode.FMUL, first, x, "multmp")
        builder.set_return(second)
        builder.finalize(function)

        self.assertEqual(first.name, "multmp")
        self.assertEqual(second.name, "multmp1")

    def test_duplicate_parameter_names_are_renamed(self):
        function = self.builder.declare_function("f", ["x", "x"])
        self.assertEqual([p.name for p in function.parameters], ["x", "x1"])

    def test_comparison_text(self):
        builder = self.builder
        function = builder.declare_function("lt", ["a", "b"])
        builder.begin_body(function)
        a, b = builder.parameters(function)
        compared = builder.emit_binary(BinaryOpcode.FCMP_ULT, a, b, "cmptmp")
        builder.set_return(builder.emit_bool_to_float(compared, "booltmp"))
        builder.finalize(function)

        text = builder.render_function(function)
        self.assertIn("%cmptmp = fcmp ult double %a, %b", text)
        self.assertIn("%booltmp = uitofp i1 %cmptmp to double", text)

    def test_call_text(self):
        add = self.build_add()
        builder = self.builder
        caller = builder.declare_function("three", [])
        builder.begin_body(caller)
        result = builder.emit_call(add, [builder.emit_constant(1), builder.emit_constant(2)], "calltmp")
        builder.set_return(result)
        builder.finalize(caller)

        self.assertIn("%calltmp = call double @add(double 1.0, double 2.0)",
                      builder.render_function(caller))

    def test_constant_ref(self):
        self.assertEqual(IRConstant(4.5).ref, "4.5")
        self.assertEqual(str(IRConstant(1)), "double 1.0")

    def test_erase_function(self):
        function = self.build_add()
        self.builder.erase_function(function)
        self.assertIsNone(self.builder.lookup_function("add"))
        self.assertNotIn("@add", self.builder.render_module())
        # The name is free again
        self.builder.declare_function("add", ["a", "b"])

    def test_remove_body(self):
        function = self.build_add()
        self.builder.remove_body(function)
        self.assertFalse(self.builder.has_body(function))
        self.assertIs(self.builder.lookup_function("add"), function)
        self.assertEqual(self.builder.render_function(function), "declare double @add(double %a, double %b)")

    def test_emit_without_body(self):
        function = self.builder.declare_function("f", ["x"])
        (x,) = self.builder.parameters(function)
        with self.assertRaises(RuntimeError):
            self.builder.emit_binary(BinaryOpcode.FADD, x, x, "addtmp")


class TestVerifier(unittest.TestCase):
    """Test cases for IR verification."""

    def setUp(self):
        self.builder = ModuleBuilder()

    def test_missing_return(self):
        builder = self.builder
        function = builder.declare_function("f", ["x"])
        builder.begin_body(function)
        (x,) = builder.parameters(function)
        builder.emit_binary(BinaryOpcode.FADD, x, x, "addtmp")

        with self.assertRaises(IRVerificationError) as context:
            builder.finalize(function)
        self.assertEqual(context.exception.function_name, "f")
        self.assertIn("does not end with a return", context.exception.message)

    def test_declaration_has_no_body(self):
        function = self.builder.declare_function("f", [])
        with self.assertRaises(IRVerificationError):
            self.builder.finalize(function)

    def test_foreign_operand(self):
        builder = self.builder
        other = builder.declare_function("other", ["y"])
        (y,) = builder.parameters(other)

        function = builder.declare_function("f", [])
        builder.begin_body(function)
        builder.set_return(y)

        with self.assertRaises(IRVerificationError) as context:
            builder.finalize(function)
        self.assertIn("used before definition", context.exception.message)

    def test_call_outside_module(self):
        builder = self.builder
        stray = IRFunction("stray", [])
        function = builder.declare_function("f", [])
        builder.begin_body(function)
        builder.set_return(builder.emit_call(stray, [], "calltmp"))

        with self.assertRaises(IRVerificationError):
            builder.finalize(function)

    def test_returning_a_boolean(self):
        builder = self.builder
        function = builder.declare_function("f", ["a"])
        builder.begin_body(function)
        (a,) = builder.parameters(function)
        builder.set_return(builder.emit_binary(BinaryOpcode.FCMP_ULT, a, a, "cmptmp"))

        with self.assertRaises(IRVerificationError) as context:
            builder.finalize(function)
        self.assertIn("not a double", context.exception.message)


class TestInterpreter(unittest.TestCase):
    """Test cases for evaluating in-memory IR."""

    def define(self, builder, name, params, body):
        function = builder.declare_function(name, params)
        builder.begin_body(function)
        builder.set_return(body(builder, builder.parameters(function)))
        builder.finalize(function)
        return function

    def test_arithmetic(self):
        builder = ModuleBuilder()
        function = self.define(
            builder, "f", ["a", "b"],
            lambda bld, p: bld.emit_binary(
                BinaryOpcode.FSUB, bld.emit_binary(BinaryOpcode.FMUL, p[0], p[1], "multmp"),
                bld.emit_constant(1.5), "subtmp")
        )
        self.assertEqual(builder.evaluate(function, [3, 4]), 10.5)

    def test_fcmp_ult_is_unordered(self):
        self.assertTrue(_fcmp_ult(1.0, 2.0))
        self.assertFalse(_fcmp_ult(2.0, 1.0))
        self.assertTrue(_fcmp_ult(math.nan, 1.0))

    def test_default_externals(self):
        builder = ModuleBuilder()
        sqrt = builder.declare_function("sqrt", ["x"])
        function = self.define(
            builder, "root", [],
            lambda bld, p: bld.emit_call(sqrt, [bld.emit_constant(16)], "calltmp")
        )
        self.assertEqual(builder.evaluate(function), 4.0)

    def test_custom_externals(self):
        builder = ModuleBuilder(externals={"twice": lambda x: 2 * x})
        twice = builder.declare_function("twice", ["x"])
        function = self.define(
            builder, "f", [],
            lambda bld, p: bld.emit_call(twice, [bld.emit_constant(21)], "calltmp")
        )
        self.assertEqual(builder.evaluate(function), 42.0)

    def test_unresolved_external(self):
        builder = ModuleBuilder()
        missing = builder.declare_function("missing", [])
        function = self.define(builder, "f", [], lambda bld, p: bld.emit_call(missing, [], "calltmp"))
        with self.assertRaises(IREvaluationError):
            builder.evaluate(function)

    def test_unknown_function(self):
        with self.assertRaises(IREvaluationError):
            IRInterpreter(IRModule("empty")).call("nope")

    def test_wrong_argument_count(self):
        builder = ModuleBuilder()
        function = self.define(builder, "id", ["x"], lambda bld, p: p[0])
        with self.assertRaises(IREvaluationError):
            builder.evaluate(function, [])

    def test_runaway_recursion(self):
        builder = ModuleBuilder()
        function = builder.declare_function("loop", ["x"])
        builder.begin_body(function)
        builder.set_return(builder.emit_call(function, builder.parameters(function), "calltmp"))
        builder.finalize(function)

        with self.assertRaises(IREvaluationError):
            IRInterpreter(builder.module, max_depth=20).call("loop", [1])

    def test_runaway_recursion_default_depth(self):
        builder = ModuleBuilder()
        function = builder.declare_function("loop", ["x"])
        builder.begin_body(function)
        builder.set_return(builder.emit_call(function, builder.parameters(function), "calltmp"))
        builder.finalize(function)

        with self.assertRaises(IREvaluationError) as context:
            builder.evaluate(function, [1])
        self.assertIn(f"call depth exceeded {DEFAULT_MAX_DEPTH}", str(context.exception))

    def test_depth_beyond_python_stack(self):
        builder = ModuleBuilder()
        function = builder.declare_function("loop", ["x"])
        builder.begin_body(function)
        builder.set_return(builder.emit_call(function, builder.parameters(function), "calltmp"))
        builder.finalize(function)

        interpreter = IRInterpreter(builder.module, max_depth=sys.getrecursionlimit() * 10)
        with self.assertRaises(IREvaluationError):
            interpreter.call("loop", [1])
        self.assertEqual(interpreter._depth, 0)

    def test_math_externals_give_ieee_results(self):
        self.assertEqual(DEFAULT_EXTERNALS["log"](0.0), -math.inf)
        self.assertEqual(DEFAULT_EXTERNALS["log"](-0.0), -math.inf)
        self.assertTrue(math.isnan(DEFAULT_EXTERNALS["log"](-1.0)))
        self.assertTrue(math.isnan(DEFAULT_EXTERNALS["sqrt"](-4.0)))
        self.assertEqual(DEFAULT_EXTERNALS["sqrt"](16.0), 4.0)
        self.assertEqual(DEFAULT_EXTERNALS["exp"](1000.0), math.inf)
        self.assertTrue(math.isnan(DEFAULT_EXTERNALS["sin"](math.inf)))
        self.assertEqual(DEFAULT_EXTERNALS["pow"](10.0, 400.0), math.inf)
        self.assertEqual(DEFAULT_EXTERNALS["pow"](-10.0, 401.0), -math.inf)
        self.assertEqual(DEFAULT_EXTERNALS["pow"](0.0, -1.0), math.inf)
        self.assertEqual(DEFAULT_EXTERNALS["pow"](-0.0, -1.0), -math.inf)
        self.assertTrue(math.isnan(DEFAULT_EXTERNALS["pow"](-8.0, 0.5)))
        self.assertEqual(DEFAULT_EXTERNALS["pow"](2.0, 10.0), 1024.0)

    def test_log_of_zero(self):
        builder = ModuleBuilder()
        log = builder.declare_function("log", ["x"])
        function = self.define(
            builder, "f", [],
            lambda bld, p: bld.emit_call(log, [bld.emit_constant(0)], "calltmp")
        )
        self.assertEqual(builder.evaluate(function), -math.inf)

    def test_failing_custom_external(self):
        builder = ModuleBuilder(externals={"inverse": lambda x: 1 / x})
        inverse = builder.declare_function("inverse", ["x"])
        function = self.define(
            builder, "f", [],
            lambda bld, p: bld.emit_call(inverse, [bld.emit_constant(0)], "calltmp")
        )
        with self.assertRaises(IREvaluationError) as context:
            builder.evaluate(function)
        self.assertIn("external function 'inverse' failed", str(context.exception))


if __name__ == "__main__":
    unittest.main()
