import re

import pytest

from toyc.codegen import CodeGen, CodegenError, compile_source
from toyc.parser import ASTNode, NodeType, parse


def _lines(asm):
    return asm.splitlines()


def _program(*functions):
    return ASTNode(NodeType.PROGRAM, children=list(functions))


def _main(*stmts):
    return ASTNode(
        NodeType.FUNCTION, "main", [ASTNode(NodeType.STMT_LIST, children=list(stmts))]
    )


def test_header_sections():
    asm = compile_source("func main() { }")
    lines = _lines(asm)
    assert lines[0] == "section .data"
    assert 'fmt_int: db "%d", 10, 0' in lines
    assert 'fmt_str: db "%s", 10, 0' in lines
    assert "extern printf" in lines
    assert "global main" in lines


def test_main_prologue_and_epilogue():
    asm = compile_source("func main() { }")
    assert "main:\npush rbp\nmov rbp, rsp\n" in asm
    assert asm.endswith("mov rsp, rbp\npop rbp\nmov rax, 0\nret\n")


def test_non_main_function_has_no_zero_return():
    asm = compile_source("func helper() { }")
    assert asm.endswith("pop rbp\nret\n")
    assert "mov rax, 0" not in _lines(asm)


def test_parameters_stored_from_registers():
    asm = compile_source(
        "func add(int a, int b) { return a + b; } func main() { print(add(1, 2)); }"
    )
    lines = _lines(asm)
    assert "mov [rbp-8], rdi" in lines
    assert "mov [rbp-16], rsi" in lines
    assert "add rax, rbx" in lines
    assert "call add" in lines
    assert lines.index("pop rsi") < lines.index("pop rdi")


def test_print_string_uses_string_format():
    asm = compile_source('func main() { print("hello"); }')
    lines = _lines(asm)
    assert "lea rdi, [rel fmt_str]" in lines
    assert "call printf" in lines
    assert any(line.endswith(': db "hello", 0') for line in lines)


def test_print_bool_uses_int_format():
    asm = compile_source("func main() { print(true); }")
    lines = _lines(asm)
    assert "mov rax, 1" in lines
    assert "lea rdi, [rel fmt_int]" in lines
    assert "lea rdi, [rel fmt_str]" not in lines


def test_unary_not():
    asm = compile_source("func main() { bool b = false; print(!b); }")
    assert "cmp rax, 0\nsete al\nmovzx rax, al\n" in asm


def test_division_clears_rdx():
    asm = compile_source("func main() { print(8 / 2); }")
    assert "xor rdx, rdx\ndiv rbx\n" in asm


def test_less_than_and_multiply():
    asm = compile_source("func main() { print(2 * 3 < 7); }")
    lines = _lines(asm)
    assert "imul rax, rbx" in lines
    assert "setl al" in lines


@pytest.mark.parametrize(
    "source",
    [
        "func main() { if (1 < 2) { print(1); } else { print(2); } }",
        "func main() { int x = 0; while (x < 3) { x = x + 1; } }",
        "func main() { for (int i = 0; i < 3; i++) { print(i); } }",
        "func main() { if (1 == 2) { print(1); } else if (2 == 2) { print(2); } }",
    ],
)
def test_labels_unique_and_jumps_resolve(source):
    asm = compile_source(source)
    defined = re.findall(r"^(\.L\d+):$", asm, re.MULTILINE)
    jumps = re.findall(r"^j\w+ (\.L\d+)$", asm, re.MULTILINE)
    assert len(defined) == len(set(defined))
    assert jumps
    assert set(jumps) <= set(defined)


def test_array_length_reads_where_it_was_stored():
    asm = compile_source(
        "func main() { int a[] = [1, 2]; print(a[1]); print(a.length); }"
    )
    stored = re.findall(r"^mov (\[rbp-?\d+-8\]), rax$", asm, re.MULTILINE)
    loaded = re.findall(r"^mov rax, (\[rbp-?\d+-8\])$", asm, re.MULTILINE)
    assert stored and stored == loaded


def test_generate_is_repeatable():
    gen = CodeGen(parse("func main() { int x = 1; print(x); }"))
    first = gen.generate()
    second = gen.generate()
    assert first == second
    lines = _lines(first)
    assert lines.count("main:") == 1
    assert "mov [rbp-8], rax" in lines
    assert "mov rax, [rbp-8]" in lines
    assert lines.count("call printf") == 1


def test_non_function_child_rejected():
    with pytest.raises(CodegenError, match="expected function node"):
        CodeGen(_program(ASTNode(NodeType.LITERAL, 1))).generate()


def test_body_must_be_statement_list():
    fn = ASTNode(NodeType.FUNCTION, "main", [ASTNode(NodeType.LITERAL, 1)])
    with pytest.raises(CodegenError, match="expected statement list node"):
        CodeGen(_program(fn)).generate()


def test_unknown_statement_type():
    with pytest.raises(CodegenError, match="unknown statement type: Literal"):
        CodeGen(_program(_main(ASTNode(NodeType.LITERAL, 1)))).generate()


def test_unknown_binary_operator():
    expr = ASTNode(
        NodeType.BINARY_EXPR,
        "%",
        [ASTNode(NodeType.LITERAL, 1), ASTNode(NodeType.LITERAL, 2)],
    )
    stmt = ASTNode(NodeType.PRINT_STMT, children=[expr])
    with pytest.raises(CodegenError, match="unknown binary operator"):
        CodeGen(_program(_main(stmt))).generate()


def test_unknown_literal_type():
    stmt = ASTNode(NodeType.PRINT_STMT, children=[ASTNode(NodeType.LITERAL, 1.5)])
    with pytest.raises(CodegenError, match="unknown literal type"):
        CodeGen(_program(_main(stmt))).generate()