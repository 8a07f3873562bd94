"""Compiler for a small C-like toy language: lexer, parser, x86-64 NASM code generator and command."""

__version__ = "0.1.0"