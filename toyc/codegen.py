"""x86-64 (NASM syntax) code generation from the toy-language AST."""

from __future__ import annotations

import re
from typing import Optional

from toyc.parser import ASTNode, NodeType, parse

_ARG_REGISTERS = ("rdi", "rsi", "rdx", "rcx", "r8", "r9")

_HEADER = (
    "section .data",
    'fmt_int: db "%d", 10, 0',
    'fmt_str: db "%s", 10, 0',
    "section .note.GNU-stack noalloc noexec nowrite progbits",
    "section .text",
    "extern printf",
    "global main",
)

_SLOT_PATTERN = re.compile(r"\[rbp(-?\d+)\]")


class CodegenError(Exception):
    """Raised when the AST cannot be turned into assembly."""


class CodeGen:
    """Generates assembly text for a Program node."""

    def __init__(self, program: ASTNode) -> None:
        self.program = program
        self._symbols: dict[str, str] = {}
        self._sp_offset = 0
        self._label_count = 0
        self._out: list[str] = []

    def generate(self) -> str:
        """Return the assembly for the whole program."""
        self._symbols = {}
        self._sp_offset = 0
        self._label_count = 0
        self._out = []
        self._emit(*_HEADER)
        for function in self.program.children:
            self._gen_function(function)
        return "".join(self._out)

    # -- helpers --------------------------------------------------------

    def _emit(self, *lines: str) -> None:
        self._out.extend(f"{line}\n" for line in lines)

    def _new_label(self) -> str:
        self._label_count += 1
        return f".L{self._label_count}"

    def _declare(self, name: str) -> str:
        self._sp_offset -= 8
        slot = f"[rbp{self._sp_offset}]"
        self._symbols[name] = slot
        return slot

    def _offset_of(self, name: str) -> int:
        match = _SLOT_PATTERN.fullmatch(self._symbols.get(name, ""))
        return int(match.group(1)) if match else 0

    # -- functions and statements ----------------------------------------

    def _gen_function(self, function: Optional[ASTNode]) -> None:
        if function is None or function.type is not NodeType.FUNCTION:
            raise CodegenError("expected function node")
        if not function.children:
            raise CodegenError(f"function {function.value} has no body")

        name = function.value
        self._emit(f"{name}:", "push rbp", "mov rbp, rsp")

        *params, body = function.children
        self._sp_offset = 0
        for index, param in enumerate(params):
            slot = self._declare(param.value)
            if index < len(_ARG_REGISTERS):
                self._emit(f"mov {slot}, {_ARG_REGISTERS[index]}")
            else:
                stack_pos = 16 + (index - len(_ARG_REGISTERS)) * 8
                self._emit(f"mov rax, [rbp+{stack_pos}]", f"mov {slot}, rax")

        self._gen_stmt_list(body)

        self._emit("mov rsp, rbp", "pop rbp")
        if name == "main":
            self._emit("mov rax, 0")
        self._emit("ret")

    def _gen_stmt_list(self, stmt_list: Optional[ASTNode]) -> None:
        if stmt_list is None or stmt_list.type is not NodeType.STMT_LIST:
            kind = stmt_list.type if stmt_list is not None else None
            raise CodegenError(f"expected statement list node, got {kind}")
        for stmt in stmt_list.children:
            self._gen_stmt(stmt)

    def _gen_stmt(self, stmt: ASTNode) -> None:
        handlers = {
            NodeType.VAR_DECL: self._gen_var_decl,
            NodeType.ASSIGN: self._gen_assign,
            NodeType.IF_STMT: self._gen_if_stmt,
            NodeType.WHILE_STMT: self._gen_while_stmt,
            NodeType.FOR_STMT: self._gen_for_stmt,
            NodeType.RETURN_STMT: self._gen_return_stmt,
            NodeType.PRINT_STMT: self._gen_print_stmt,
            NodeType.FUNC_CALL: self._gen_call,
        }
        handler = handlers.get(stmt.type)
        if handler is None:
            raise CodegenError(f"unknown statement type: {stmt.type}")
        handler(stmt)

    def _gen_var_decl(self, decl: ASTNode) -> None:
        slot = self._declare(decl.value)
        if len(decl.children) <= 1:
            return
        init = decl.children[1]
        if init.type is NodeType.ARRAY_LITERAL:
            offset = self._sp_offset
            self._emit(f"mov rax, {len(init.children)}", f"mov [rbp{offset}-8], rax")
            for index, element in enumerate(init.children):
                self._gen_expr(element)
                self._emit(f"mov [rbp{offset}+{index * 8}], rax")
        else:
            self._gen_expr(init)
            self._emit(f"mov {slot}, rax")

    def _gen_assign(self, assign: ASTNode) -> None:
        target, expr = assign.children[0], assign.children[1]
        if target.type is NodeType.ARRAY_ACCESS:
            array, index = target.children
            self._gen_expr(index)
            self._emit("push rax")
            self._gen_expr(expr)
            self._emit("mov rbx, rax", "pop rax")
            offset = self._offset_of(array.value)
            self._emit(f"mov [rbp{offset}+rax*8], rbx")
        else:
            self._gen_expr(expr)
            self._emit(f"mov {self._symbols.get(target.value, '')}, rax")

    def _gen_if_stmt(self, if_stmt: ASTNode) -> None:
        cond, body = if_stmt.children[0], if_stmt.children[1]
        else_label = self._new_label()
        end_label = self._new_label()

        self._gen_expr(cond)
        self._emit("cmp rax, 0", f"je {else_label}")
        self._gen_stmt_list(body)
        self._emit(f"jmp {end_label}", f"{else_label}:")
        if len(if_stmt.children) > 2:
            else_body = if_stmt.children[2]
            if else_body.type is NodeType.IF_STMT:
                self._gen_if_stmt(else_body)
            else:
                self._gen_stmt_list(else_body)
        self._emit(f"{end_label}:")

    def _gen_while_stmt(self, while_stmt: ASTNode) -> None:
        cond, body = while_stmt.children[0], while_stmt.children[1]
        start_label = self._new_label()
        end_label = self._new_label()

        self._emit(f"{start_label}:")
        self._gen_expr(cond)
        self._emit("cmp rax, 0", f"je {end_label}")
        self._gen_stmt_list(body)
        self._emit(f"jmp {start_label}", f"{end_label}:")

    def _gen_for_stmt(self, for_stmt: ASTNode) -> None:
        init, cond, incr, body = for_stmt.children
        start_label = self._new_label()
        end_label = self._new_label()

        if init is not None:
            self._gen_stmt(init)
        self._emit(f"{start_label}:")
        if cond is not None:
            self._gen_expr(cond)
            self._emit("cmp rax, 0", f"je {end_label}")
        self._gen_stmt_list(body)
        if incr is not None:
            self._gen_stmt(incr)
        self._emit(f"jmp {start_label}", f"{end_label}:")

    def _gen_return_stmt(self, return_stmt: ASTNode) -> None:
        if return_stmt.children and return_stmt.children[0] is not None:
            self._gen_expr(return_stmt.children[0])
        self._emit("mov rsp, rbp", "pop rbp", "ret")

    def _gen_print_stmt(self, print_stmt: ASTNode) -> None:
        expr = print_stmt.children[0]
        self._gen_expr(expr)
        self._emit("sub rsp, 8", "mov rsi, rax")
        if expr.type is NodeType.LITERAL and isinstance(expr.value, str):
            self._emit("lea rdi, [rel fmt_str]")
        else:
            self._emit("lea rdi, [rel fmt_int]")
        self._emit("xor rax, rax", "call printf", "add rsp, 8")

    def _gen_call(self, call: ASTNode) -> None:
        self._emit("sub rsp, 8")
        for arg in call.children:
            self._gen_expr(arg)
            self._emit("push rax")
        for index in reversed(range(len(call.children))):
            if index < len(_ARG_REGISTERS):
                self._emit(f"pop {_ARG_REGISTERS[index]}")
        self._emit(f"call {call.value}", "add rsp, 8")

    # -- expressions ----------------------------------------------------

    def _gen_expr(self, expr: ASTNode) -> None:
        kind = expr.type
        if kind is NodeType.LITERAL:
            self._gen_literal(expr.value)
        elif kind is NodeType.IDENTIFIER:
            self._emit(f"mov rax, {self._symbols.get(expr.value, '')}")
        elif kind is NodeType.BINARY_EXPR:
            self._gen_binary_expr(expr)
        elif kind is NodeType.UNARY_EXPR:
            self._gen_expr(expr.children[0])
            if expr.value == "!":
                self._emit("cmp rax, 0", "sete al", "movzx rax, al")
        elif kind is NodeType.ARRAY_ACCESS:
            array, index = expr.children
            self._gen_expr(index)
            offset = self._offset_of(array.value)
            self._emit("mov rbx, rax", f"mov rax, [rbp{offset}+rbx*8]")
        elif kind is NodeType.ARRAY_LENGTH:
            offset = self._offset_of(expr.children[0].value)
            self._emit(f"mov rax, [rbp{offset}-8]")
        elif kind is NodeType.FUNC_CALL:
            self._gen_call(expr)
        elif kind is NodeType.ARRAY_LITERAL:
            size = len(expr.children)
            self._sp_offset -= 8 * (size + 1)
            offset = self._sp_offset
            self._emit(f"mov rax, {size}", f"mov [rbp{offset}], rax")
            for index, element in enumerate(expr.children):
                self._gen_expr(element)
                self._emit(f"mov [rbp{offset}+{(index + 1) * 8}], rax")
            self._emit(f"lea rax, [rbp{offset}]")
        else:
            raise CodegenError(f"unknown expression type: {kind}")

    def _gen_literal(self, value: object) -> None:
        if isinstance(value, bool):
            self._emit("mov rax, 1" if value else "mov rax, 0")
        elif isinstance(value, int):
            self._emit(f"mov rax, {value}")
        elif isinstance(value, str):
            label = self._new_label()
            self._emit("section .data", f'{label}: db "{value}", 0', "section .text")
            self._emit(f"lea rax, [rel {label}]")
        else:
            raise CodegenError(f"unknown literal type: {type(value).__name__}")

    def _gen_binary_expr(self, expr: ASTNode) -> None:
        self._gen_expr(expr.children[0])
        self._emit("push rax")
        self._gen_expr(expr.children[1])
        self._emit("mov rbx, rax", "pop rax")

        operations = {
            "+": ("add rax, rbx",),
            "-": ("sub rax, rbx",),
            "*": ("imul rax, rbx",),
            "/": ("xor rdx, rdx", "div rbx"),
            "==": ("cmp rax, rbx", "sete al", "movzx rax, al"),
            "<": ("cmp rax, rbx", "setl al", "movzx rax, al"),
        }
        lines = operations.get(expr.value)
        if lines is None:
            raise CodegenError(f"unknown binary operator: {expr.value}")
        self._emit(*lines)


def compile_source(source: str) -> str:
    """Tokenize, parse and generate assembly for ``source``."""
    return CodeGen(parse(source)).generate()