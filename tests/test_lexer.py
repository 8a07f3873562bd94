import pytest

from toyc.lexer import LexError, Lexer, Token, TokenType, tokenize


def types(source):
    return [t.type for t in tokenize(source)]


@pytest.mark.parametrize(
    "word, expected",
    [
        ("func", TokenType.FUNC),
        ("int", TokenType.INT),
        ("bool", TokenType.BOOL),
        ("if", TokenType.IF),
        ("else", TokenType.ELSE),
        ("while", TokenType.WHILE),
        ("for", TokenType.FOR),
        ("return", TokenType.RETURN),
        ("print", TokenType.PRINT),
        ("length", TokenType.LENGTH),
        ("true", TokenType.TRUE),
        ("false", TokenType.FALSE),
    ],
)
def test_keywords(word, expected):
    tokens = tokenize(word)
    assert tokens[0].type is expected
    assert tokens[0].literal == word
    assert tokens[1].type is TokenType.EOF


@pytest.mark.parametrize(
    "symbol, expected",
    [
        ("(", TokenType.LPAREN),
        (")", TokenType.RPAREN),
        ("{", TokenType.LBRACE),
        ("}", TokenType.RBRACE),
        ("[", TokenType.LBRACKET),
        ("]", TokenType.RBRACKET),
        (";", TokenType.SEMICOLON),
        (",", TokenType.COMMA),
        (".", TokenType.DOT),
        ("=", TokenType.EQUAL),
        ("+", TokenType.PLUS),
        ("-", TokenType.MINUS),
        ("*", TokenType.MULTIPLY),
        ("/", TokenType.DIVIDE),
        ("!", TokenType.BANG),
        ("<", TokenType.LESS_THAN),
        ("==", TokenType.DOUBLE_EQUAL),
        ("++", TokenType.INC),
        ("--", TokenType.DEC),
    ],
)
def test_symbols(symbol, expected):
    tokens = tokenize(symbol)
    assert tokens[0] == Token(expected, symbol, 1, 1)


def test_identifiers_and_numbers():
    tokens = tokenize("foo_bar1 123abc")
    assert [(t.type, t.literal) for t in tokens[:-1]] == [
        (TokenType.IDENTIFIER, "foo_bar1"),
        (TokenType.NUMBER, "123"),
        (TokenType.IDENTIFIER, "abc"),
    ]


def test_keyword_prefix_is_identifier():
    tokens = tokenize("iffy")
    assert tokens[0].type is TokenType.IDENTIFIER
    assert tokens[0].literal == "iffy"


def test_string_literal_drops_quotes():
    tokens = tokenize('print("hello world");')
    assert tokens[2].type is TokenType.STRING
    assert tokens[2].literal == "hello world"


def test_increment_and_compound_operators():
    assert types("i++ a == b c = d") == [
        TokenType.IDENTIFIER,
        TokenType.INC,
        TokenType.IDENTIFIER,
        TokenType.DOUBLE_EQUAL,
        TokenType.IDENTIFIER,
        TokenType.IDENTIFIER,
        TokenType.EQUAL,
        TokenType.IDENTIFIER,
        TokenType.EOF,
    ]


def test_comments_are_skipped():
    source = "int x; // a comment\nx = 1;"
    literals = [t.literal for t in tokenize(source)]
    assert literals == ["int", "x", ";", "x", "=", "1", ";", ""]


def test_comment_at_end_of_input():
    assert types("x // trailing") == [TokenType.IDENTIFIER, TokenType.EOF]


def test_empty_input_gives_only_eof():
    assert tokenize("   \n\t\r ") [-1].type is TokenType.EOF
    assert len(tokenize("")) == 1


def test_columns_on_single_line():
    source = "int total = count + 42;"
    for token in tokenize(source)[:-1]:
        assert token.line == 1
        assert source[token.column - 1:].startswith(token.literal)


def test_lines_follow_newlines():
    source = "func main() {\n  print(1);\n}\n"
    lines = source.split("\n")
    for token in tokenize(source)[:-1]:
        assert lines[token.line - 1][token.column - 1:].startswith(token.literal)


def test_eof_is_always_last_and_unique():
    tokens = tokenize("func f(int a) { return a * 2; }")
    assert tokens[-1].type is TokenType.EOF
    assert sum(t.type is TokenType.EOF for t in tokens) == 1


def test_tokenize_matches_lexer_scan():
    source = "while (i < 10) { i = i + 1; }"
    assert tokenize(source) == Lexer(source).scan()


def test_invalid_character_raises():
    with pytest.raises(LexError) as info:
        tokenize("x = #;")
    assert info.value.literal == "#"
    assert info.value.line == 1
    assert "invalid token at line 1" in str(info.value)


def test_underscore_cannot_start_identifier():
    with pytest.raises(LexError) as info:
        tokenize("_x")
    assert info.value.literal == "_"


def test_unterminated_string_at_end():
    with pytest.raises(LexError) as info:
        tokenize('print("abc')
    assert info.value.literal == "unterminated string"


def test_unterminated_string_across_newline():
    with pytest.raises(LexError) as info:
        tokenize('"abc\ndef"')
    assert info.value.literal == "unterminated string"
    assert info.value.line == 1
    assert info.value.column == 1