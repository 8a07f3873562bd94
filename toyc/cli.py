"""Command-line entry point: compile a source file to output.asm."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence

from toyc.codegen import CodeGen, CodegenError
from toyc.lexer import LexError, tokenize
from toyc.parser import ParseError, Parser

OUTPUT_FILE = "output.asm"


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Compile the file named in ``argv`` and return an exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: toyc <source-file>")
        return 1

    try:
        source = Path(args[0]).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as err:
        print(f"Error reading file: {err}")
        return 1

    try:
        tokens = tokenize(source)
    except LexError as err:
        print(f"Lexical error: {err}")
        return 1

    try:
        program = Parser(tokens).parse()
    except ParseError as err:
        print(f"Parse error: {err}")
        return 1

    try:
        assembly = CodeGen(program).generate()
    except CodegenError as err:
        print(f"Codegen error: {err}")
        return 1

    try:
        Path(OUTPUT_FILE).write_text(assembly, encoding="utf-8")
    except OSError as err:
        print(f"Error writing output: {err}")
        return 1

    print("Compilation successful. Assembly output written to", OUTPUT_FILE)
    return 0


if __name__ == "__main__":
    sys.exit(main())