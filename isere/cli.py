"""
isere - Isere Compiler Command-Line Interface

Compiles an Isere program and prints the resulting module IR.

Usage Examples
--------------
Compile a file with the LLVM backend:
    $ isere program.is

Read from standard input, evaluate top-level expressions:
    $ echo "fn sq(x) x*x  sq(4);" | isere --run

Use the in-memory IR instead of LLVM:
    $ isere --backend memory program.is

Author: xwest
"""

import sys
from typing import TextIO

import click

from . import __version__
from .diagnostics import DiagnosticSink
from .driver import Driver, DriverOptions
from .ir import ModuleBuilder


def create_builder(backend: str):
    """Instantiate the IR-construction facility named on the command line."""
    if backend == "memory":
        return ModuleBuilder()
    from .backend import LLVMBuilder

    return LLVMBuilder()


@click.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "-b", "--backend",
    type=click.Choice(["llvm", "memory"], case_sensitive=False),
    default="llvm",
    show_default=True,
    help="IR backend: LLVM through llvmlite, or the in-memory IR",
)
@click.option(
    "--run",
    is_flag=True,
    help="Evaluate each top-level expression and print its value",
)
@click.option(
    "-q", "--quiet-items",
    is_flag=True,
    help="Do not echo the IR of each construct to stderr as it is read",
)
@click.version_option(version=__version__, prog_name="isere")
def main(source: TextIO, backend: str, run: bool, quiet_items: bool) -> None:
    """
    Compile an Isere program.

    SOURCE is the program file; standard input is read when it is omitted
    or "-". The final module IR is printed to standard output.
    """
    filename = getattr(source, "name", "-")
    if filename == "-":
        filename = "<stdin>"
    options = DriverOptions(evaluate=run, echo_items=not quiet_items, filename=filename)
    sink = DiagnosticSink()

    driver = Driver(source, create_builder(backend.lower()), sink, options)
    items = driver.run()

    if run:
        for item in items:
            if item.value is not None:
                click.echo(f"Evaluated to {item.value:f}")

    click.echo(driver.render_module().rstrip("\n"))

    if sink.has_errors():
        sys.exit(1)


if __name__ == "__main__":
    main()
