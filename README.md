# toyc

`toyc` compiles programs written in a small C-like toy language into x86-64
assembly in NASM syntax. The generated code calls `printf`, so it is meant to be
linked against the C library.

## Installation

```
pip install .
```

## Command line

```
toyc program.toy
```

The compiler reads `program.toy` and writes the assembly to `output.asm` in the
current directory, then prints
`Compilation successful. Assembly output written to output.asm`.

It exits with status 1 and prints a message when:

- it is not given exactly one argument (`Usage: toyc <source-file>`);
- the file cannot be read (`Error reading file: ...`);
- the source has an invalid token (`Lexical error: ...`);
- the tokens do not form a program (`Parse error: ...`);
- the tree cannot be turned into assembly (`Codegen error: ...`);
- `output.asm` cannot be written (`Error writing output: ...`).

## The language

```
func add(int a, int b) {
    return a + b;
}

func main() {
    int xs[] = [1, 2, 3];
    int total = 0;
    for (int i = 0; i < xs.length; i++) {
        total = total + xs[i];
    }
    if (total == 6) {
        print("ok");
    } else {
        print(total);
    }
    print(add(total, 4));
}
```

- Functions: `func name(params) { ... }`. Parameter types (`int`, `bool`) are optional.
  The first six arguments are passed in registers.
- Declarations: `int x = expr;`, `bool b = true;`, `int a[] = [1, 2];`.
- Statements: assignment (`x = e;`, `a[i] = e;`), `x++` and `x--`, `if`/`else if`/`else`,
  `while`, `for` (each clause may be left empty), `return`, `print(expr);`, and
  function calls.
- Expressions: integer, string and boolean literals; `+ - * /`; `==` and `<`; `!`;
  array indexing; `name.length`; calls; array literals; and parentheses.
  `*` and `/` bind tighter than `+` and `-`, which bind tighter than `==` and `<`.
- `print` uses the `%s` format for a string literal and `%d` for everything else.
- Comments start with `//` and run to the end of the line.

## Library use

```python
from toyc.lexer import tokenize
from toyc.parser import parse
from toyc.codegen import compile_source

tokens = tokenize("func main() { print(1); }")    # list of Token, ending with EOF
program = parse("func main() { print(1); }")      # ASTNode of type NodeType.PROGRAM
assembly = compile_source("func main() { print(1); }")  # assembly text
```

The three stages raise `LexError`, `ParseError` and `CodegenError`. They can also
be run step by step:

```python
from toyc.lexer import Lexer
from toyc.parser import Parser
from toyc.codegen import CodeGen

tokens = Lexer(source).scan()
program = Parser(tokens).parse()
assembly = CodeGen(program).generate()
```

Tokens are `Token` values with `type` (a `TokenType`), `literal`, `line` and
`column`. Tree nodes are `ASTNode` values with `type` (a `NodeType`), `value` and
`children`. The parser writes trace messages to the `toyc.parser` logger at
debug level.

## What it does not do

- It does not assemble, link or run the output; that needs an assembler and a C
  toolchain of your own, for example `nasm -f elf64 output.asm -o out.o` followed
  by `gcc -no-pie -o run out.o`.
- It does no type checking and no checks on names: an undeclared variable or an
  unknown function is not reported, and the assembly produced for it is not valid.
- The output file name is always `output.asm`.