"""Tokenizer for the table-literal subset of Lua."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from reassembly_shapes.errors import GrammarError


class TokenKind(str, Enum):
    NUMBER = "number"
    NAME = "name"
    STRING = "string"
    SYMBOL = "symbol"
    EOF = "eof"


@dataclass
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int


@dataclass
class LexedSource:
    tokens: list[Token]
    # first line comment on each source line, marker stripped
    comments: dict[int, str] = field(default_factory=dict)


_TOKEN_RE = re.compile(
    r"""
    (?P<newline>\r\n|\n|\r)
  | (?P<space>[ \t\f\v]+)
  | (?P<long_comment>--\[(?P<eq>=*)\[.*?\](?P=eq)\])
  | (?P<comment>--[^\r\n]*)
  | (?P<number>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<string>"(?:[^"\\\r\n]|\\.)*"|'(?:[^'\\\r\n]|\\.)*')
  | (?P<symbol>[{}\[\]=,;\-])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"', "'": "'", "0": "\0"}


def tokenize(source: str) -> LexedSource:
    tokens: list[Token] = []
    comments: dict[int, str] = {}
    line = 1
    line_start = 0
    pos = 0
    length = len(source)

    while pos < length:
        match = _TOKEN_RE.match(source, pos)
        column = pos - line_start + 1
        if match is None:
            raise GrammarError(f"Unexpected character {source[pos]!r}", line, column)
        kind = match.lastgroup
        text = match.group(0)

        if kind == "newline":
            line += 1
            line_start = match.end()
        elif kind == "long_comment":
            breaks = len(re.findall(r"\r\n|\n|\r", text))
            if breaks:
                line += breaks
                line_start = pos + max(text.rfind("\n"), text.rfind("\r")) + 1
        elif kind == "comment":
            comments.setdefault(line, text[2:].strip())
        elif kind == "number":
            tokens.append(Token(TokenKind.NUMBER, text, line, column))
        elif kind == "name":
            tokens.append(Token(TokenKind.NAME, text, line, column))
        elif kind == "string":
            tokens.append(Token(TokenKind.STRING, text, line, column))
        elif kind == "symbol":
            tokens.append(Token(TokenKind.SYMBOL, text, line, column))
        pos = match.end()

    tokens.append(Token(TokenKind.EOF, "", line, pos - line_start + 1))
    return LexedSource(tokens=tokens, comments=comments)


def decode_number(text: str) -> int | float:
    if text[:2] in ("0x", "0X"):
        return int(text, 16)
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def decode_string(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)
