"""Tokenizer for the EDL language.

The lexer is pull-based: the parser asks for one token at a time through
`Lexer.next_token()`. Whitespace and line comments (`//` and `#`) are
skipped before each token. Once the end of input is reached, every
further call returns the same `EOF` token.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional

from .errors import LexError


class TokenKind(Enum):
    # literals and names
    NUMBER = auto()
    STRING = auto()
    TRUE = auto()
    FALSE = auto()
    IDENTIFIER = auto()
    # keywords
    LET = auto()
    CONST = auto()
    FN = auto()
    RETURN = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    IN = auto()
    IMPORT = auto()
    PRINT = auto()
    TYPE = auto()
    STRUCT = auto()
    ENUM = auto()
    MATCH = auto()
    BREAK = auto()
    CONTINUE = auto()
    AS = auto()
    PUB = auto()
    MOD = auto()
    YIELD = auto()
    # punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    SEMICOLON = auto()
    DOT = auto()
    DOTDOT = auto()
    COLON = auto()
    # operators
    ASSIGN = auto()
    PLUS = auto()
    PLUSPLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    CARET = auto()
    BANG = auto()
    EQEQ = auto()
    BANGEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()
    AND = auto()
    OR = auto()
    # sentinels
    ERROR = auto()
    EOF = auto()


KEYWORDS = {
    'true': TokenKind.TRUE,
    'false': TokenKind.FALSE,
    'let': TokenKind.LET,
    'const': TokenKind.CONST,
    'fn': TokenKind.FN,
    'return': TokenKind.RETURN,
    'if': TokenKind.IF,
    'else': TokenKind.ELSE,
    'while': TokenKind.WHILE,
    'for': TokenKind.FOR,
    'in': TokenKind.IN,
    'import': TokenKind.IMPORT,
    'print': TokenKind.PRINT,
    'type': TokenKind.TYPE,
    'struct': TokenKind.STRUCT,
    'enum': TokenKind.ENUM,
    'match': TokenKind.MATCH,
    'break': TokenKind.BREAK,
    'continue': TokenKind.CONTINUE,
    'as': TokenKind.AS,
    'pub': TokenKind.PUB,
    'mod': TokenKind.MOD,
    'yield': TokenKind.YIELD,
}

SINGLE_CHAR_TOKENS = {
    '(': TokenKind.LPAREN,
    ')': TokenKind.RPAREN,
    '{': TokenKind.LBRACE,
    '}': TokenKind.RBRACE,
    '[': TokenKind.LBRACKET,
    ']': TokenKind.RBRACKET,
    ',': TokenKind.COMMA,
    ';': TokenKind.SEMICOLON,
    ':': TokenKind.COLON,
    '-': TokenKind.MINUS,
    '*': TokenKind.STAR,
    '/': TokenKind.SLASH,
    '%': TokenKind.PERCENT,
    '^': TokenKind.CARET,
}

# first char -> (second char, doubled kind, fallback kind)
TWO_CHAR_TOKENS = {
    '=': ('=', TokenKind.EQEQ, TokenKind.ASSIGN),
    '!': ('=', TokenKind.BANGEQ, TokenKind.BANG),
    '<': ('=', TokenKind.LTE, TokenKind.LT),
    '>': ('=', TokenKind.GTE, TokenKind.GT),
    '.': ('.', TokenKind.DOTDOT, TokenKind.DOT),
    '+': ('+', TokenKind.PLUSPLUS, TokenKind.PLUS),
}

ESCAPES = {
    'n': '\n',
    'r': '\r',
    't': '\t',
    '"': '"',
    '\\': '\\',
}


def unescape_char(ch: str) -> str:
    """Map the character after a backslash to the character it denotes.

    Unknown escapes stand for the character itself.
    """
    return ESCAPES.get(ch, ch)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Any
    line: int
    col: int

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return 'end of input'
        if self.kind is TokenKind.IDENTIFIER:
            return f"identifier '{self.value}'"
        if self.kind is TokenKind.NUMBER:
            return f"number {self.value!r}"
        if self.kind is TokenKind.STRING:
            return f"string {self.value!r}"
        if self.kind in (TokenKind.TRUE, TokenKind.FALSE):
            return "'true'" if self.value else "'false'"
        if self.kind is TokenKind.ERROR:
            return f"invalid input ({self.value})"
        return f"'{self.value}'"


def describe_kind(kind: TokenKind) -> str:
    """Human readable name for a token kind, used in 'expected ...' messages."""
    for text, k in KEYWORDS.items():
        if k is kind:
            return f"'{text}'"
    for text, k in SINGLE_CHAR_TOKENS.items():
        if k is kind:
            return f"'{text}'"
    for first, (second, doubled, single) in TWO_CHAR_TOKENS.items():
        if doubled is kind:
            return f"'{first}{second}'"
        if single is kind:
            return f"'{first}'"
    if kind is TokenKind.AND:
        return "'&&'"
    if kind is TokenKind.OR:
        return "'||'"
    if kind is TokenKind.IDENTIFIER:
        return 'an identifier'
    if kind is TokenKind.EOF:
        return 'end of input'
    return kind.name.lower()


class Lexer:
    """Produces tokens from EDL source text on demand."""
    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1

    def peek(self, offset: int = 0) -> Optional[str]:
        index = self.pos + offset
        if index < len(self.source):
            return self.source[index]
        return None

    def advance(self) -> Optional[str]:
        ch = self.peek()
        if ch is None:
            return None
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def skip_whitespace_and_comments(self) -> None:
        while True:
            ch = self.peek()
            if ch is None:
                return
            if ch.isspace():
                self.advance()
                continue
            if ch == '#' or (ch == '/' and self.peek(1) == '/'):
                while self.peek() is not None and self.peek() != '\n':
                    self.advance()
                continue
            return

    def next_token(self) -> Token:
        """Return the next token or raise `LexError`."""
        self.skip_whitespace_and_comments()
        ch = self.peek()
        line, col = self.line, self.col
        if ch is None:
            return Token(TokenKind.EOF, None, line, col)
        if ch.isdigit():
            return self.number()
        if ch.isalpha() or ch == '_':
            return self.identifier()
        if ch == '"':
            return self.string()
        if ch in TWO_CHAR_TOKENS:
            second, doubled, single = TWO_CHAR_TOKENS[ch]
            self.advance()
            if self.peek() == second:
                self.advance()
                return Token(doubled, ch + second, line, col)
            return Token(single, ch, line, col)
        if ch in ('&', '|'):
            self.advance()
            if self.peek() == ch:
                self.advance()
                kind = TokenKind.AND if ch == '&' else TokenKind.OR
                return Token(kind, ch * 2, line, col)
            raise LexError(f"unexpected character '{ch}' (did you mean '{ch * 2}'?)", line, col)
        if ch in SINGLE_CHAR_TOKENS:
            self.advance()
            return Token(SINGLE_CHAR_TOKENS[ch], ch, line, col)
        raise LexError(f"unexpected character {ch!r}", line, col)

    def number(self) -> Token:
        line, col = self.line, self.col
        start = self.pos
        while True:
            ch = self.peek()
            if ch is None:
                break
            if ch.isdigit():
                self.advance()
                continue
            # a '.' followed by another '.' belongs to the range operator
            if ch == '.' and self.peek(1) != '.':
                self.advance()
                continue
            break
        text = self.source[start:self.pos]
        try:
            value = float(text)
        except ValueError:
            raise LexError(f"invalid number literal '{text}'", line, col)
        if math.isinf(value):
            raise LexError("number literal out of range", line, col)
        return Token(TokenKind.NUMBER, value, line, col)

    def identifier(self) -> Token:
        line, col = self.line, self.col
        start = self.pos
        while self.peek() is not None and (self.peek().isalnum() or self.peek() == '_'):
            self.advance()
        text = self.source[start:self.pos]
        kind = KEYWORDS.get(text, TokenKind.IDENTIFIER)
        if kind is TokenKind.TRUE:
            return Token(kind, True, line, col)
        if kind is TokenKind.FALSE:
            return Token(kind, False, line, col)
        return Token(kind, text, line, col)

    def string(self) -> Token:
        line, col = self.line, self.col
        self.advance()  # opening quote
        chars: List[str] = []
        while True:
            ch = self.advance()
            if ch is None:
                raise LexError('unterminated string literal', line, col)
            if ch == '"':
                return Token(TokenKind.STRING, ''.join(chars), line, col)
            if ch == '\\':
                escaped = self.advance()
                if escaped is None:
                    raise LexError('unterminated string literal', line, col)
                chars.append(unescape_char(escaped))
                continue
            chars.append(ch)


def tokenize(source: str) -> List[Token]:
    """Convert a whole source text into a token list ending with EOF."""
    lexer = Lexer(source)
    tokens: List[Token] = []
    while True:
        token = lexer.next_token()
        tokens.append(token)
        if token.kind is TokenKind.EOF:
            return tokens
