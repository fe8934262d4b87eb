"""
Top-level driver for the Isere compiler.

Reads a whole program one top-level construct at a time:

- ``fn`` starts a function definition;
- ``import`` starts an external declaration;
- a stray ``;`` is skipped;
- anything else is a top-level expression, wrapped in an anonymous
  function that is dropped from the module once it has been shown (and,
  when asked for, evaluated).

Syntax errors, including expressions nested too deeply for the parser,
are reported and recovered from by skipping one token. Lowering errors
are reported and the construct is dropped. Nothing stops the loop before
end of input.

Author: xwest
"""

import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO, Union

from .diagnostics import DiagnosticSink
from .lexer import Lexer, TokenType
from .parser import Parser, ParseError
from .parser.errors import create_nesting_error
from .ir import IRBuilder, IRGenerator, ModuleBuilder, CodegenError, IREvaluationError


@dataclass
class DriverOptions:
    """Driver configuration."""
    evaluate: bool = False          # Run each top-level expression
    echo_items: bool = False        # Print the IR of each construct as it is read
    item_stream: Optional[TextIO] = None  # Where echoed items go; stderr by default
    filename: str = "<stdin>"


@dataclass
class CompiledItem:
    """One successfully lowered top-level construct."""
    kind: str                       # "definition", "import" or "expression"
    name: str
    ir: str
    value: Optional[float] = None

    @property
    def label(self) -> str:
        return _ITEM_LABELS[self.kind]


_ITEM_LABELS = {
    "definition": "Read function definition:",
    "import": "Read extern:",
    "expression": "Read top-level expression:",
}


class Driver:
    """
    Compiles a source text into the module of an ``IRBuilder``.

    The builder defaults to the in-memory ``ModuleBuilder``; pass an
    ``LLVMBuilder`` to build an LLVM module instead.
    """

    def __init__(self, source: Union[str, TextIO], builder: Optional[IRBuilder] = None,
                 sink: Optional[DiagnosticSink] = None, options: Optional[DriverOptions] = None):
        self.options = options or DriverOptions()
        self.sink = sink if sink is not None else DiagnosticSink()
        self.builder = builder if builder is not None else ModuleBuilder()
        self.lexer = Lexer(source, self.options.filename, self.sink)
        self.parser = Parser(self.lexer)
        self.generator = IRGenerator(self.builder)
        self.items: List[CompiledItem] = []

    def run(self) -> List[CompiledItem]:
        """Process the whole input and return the constructs that compiled."""
        while True:
            token = self.parser.current_token
            if token.type == TokenType.EOF:
                return self.items
            if token.is_char(";"):
                self.parser.advance()
                continue

            try:
                if token.type == TokenType.FN:
                    self.handle_definition()
                elif token.type == TokenType.IMPORT:
                    self.handle_import()
                else:
                    self.handle_top_level_expression()
            except ParseError as e:
                self.sink.report(e.diagnostic)
                # Skip token for error recovery
                self.parser.advance()
            except CodegenError as e:
                self.sink.report(e.diagnostic)
            except RecursionError:
                # Stack ran out below the parser nesting limit; recover as for P007
                self.sink.report(create_nesting_error(self.parser.current_token).diagnostic)
                self.parser.advance()
            finally:
                self._flush_parser_warnings()

    def handle_definition(self):
        definition = self.parser.parse_function_definition()
        function = self.generator.generate(definition)
        self._record("definition", function)

    def handle_import(self):
        prototype = self.parser.parse_import()
        function = self.generator.generate(prototype)
        self._record("import", function)

    def handle_top_level_expression(self):
        definition = self.parser.parse_top_level_expression()
        function = self.generator.generate(definition)
        try:
            value = None
            if self.options.evaluate:
                try:
                    value = self.builder.evaluate(function)
                except IREvaluationError as e:
                    self.sink.error(str(e), definition.location, "E001")
            self._record("expression", function, value)
        finally:
            # Remove the anonymous expression
            self.builder.erase_function(function)

    def _record(self, kind: str, function, value: Optional[float] = None) -> CompiledItem:
        item = CompiledItem(kind, self.builder.function_name(function),
                            self.builder.render_function(function), value)
        self.items.append(item)
        if self.options.echo_items:
            stream = self.options.item_stream or sys.stderr
            print(item.label, item.ir.rstrip("\n"), file=stream)
        return item

    def _flush_parser_warnings(self):
        for warning in self.parser.warnings:
            self.sink.report(warning.diagnostic)
        self.parser.warnings.clear()

    def render_module(self) -> str:
        return self.builder.render_module()

    @property
    def values(self) -> List[float]:
        """Results of the evaluated top-level expressions, in order."""
        return [item.value for item in self.items if item.value is not None]


def compile_string(source: str, builder: Optional[IRBuilder] = None,
                   sink: Optional[DiagnosticSink] = None,
                   options: Optional[DriverOptions] = None) -> Driver:
    """
    Compile ``source`` and return the finished driver.

    Diagnostics go to ``sink``; by default one that collects them without
    printing.
    """
    if sink is None:
        sink = DiagnosticSink(echo=False)
    driver = Driver(source, builder, sink, options)
    driver.run()
    return driver
