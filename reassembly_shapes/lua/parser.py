"""Recursive-descent parser for Lua table-literal chunks."""

from __future__ import annotations

from reassembly_shapes.errors import GrammarError
from reassembly_shapes.lua.ast import (
    Assignment,
    Chunk,
    Expression,
    Field,
    FieldKind,
    Identifier,
    Number,
    String,
    TableConstructor,
    UnaryMinus,
)
from reassembly_shapes.lua.lexer import Token, TokenKind, decode_number, decode_string, tokenize


class TableParser:
    """Parse a chunk of table assignments and an optional ``return`` into a Chunk.

    Supported statements:
        name = expr
        local name = expr
        return expr
    """

    def __init__(self) -> None:
        self.tokens: list[Token] = []
        self.comments: dict[int, str] = {}
        self.pos = 0

    def parse(self, source: str) -> Chunk:
        lexed = tokenize(source)
        self.tokens = lexed.tokens
        self.comments = lexed.comments
        self.pos = 0
        return self._parse_chunk()

    # -- Token helpers --------------------------------------------------------

    def _cur(self) -> Token:
        return self.tokens[self.pos]

    def _prev(self) -> Token:
        return self.tokens[self.pos - 1]

    def _peek(self, offset: int = 1) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def _at(self, text: str, kind: TokenKind = TokenKind.SYMBOL) -> bool:
        tok = self._cur()
        return tok.kind == kind and tok.text == text

    def _advance(self) -> Token:
        tok = self._cur()
        if tok.kind != TokenKind.EOF:
            self.pos += 1
        return tok

    def _consume(self, expected: str, kind: TokenKind = TokenKind.SYMBOL) -> Token:
        tok = self._cur()
        if tok.kind != kind or tok.text != expected:
            raise self._error(f"Expected '{expected}', got {self._describe(tok)}", tok)
        return self._advance()

    def _consume_optional(self, text: str) -> bool:
        if self._at(text):
            self._advance()
            return True
        return False

    def _consume_name(self) -> str:
        tok = self._cur()
        if tok.kind != TokenKind.NAME:
            raise self._error(f"Expected a name, got {self._describe(tok)}", tok)
        return self._advance().text

    @staticmethod
    def _describe(tok: Token) -> str:
        return "end of input" if tok.kind == TokenKind.EOF else f"'{tok.text}'"

    @staticmethod
    def _error(message: str, tok: Token) -> GrammarError:
        return GrammarError(message, tok.line, tok.column)

    # -- Statements -----------------------------------------------------------

    def _parse_chunk(self) -> Chunk:
        chunk = Chunk()
        while self._cur().kind != TokenKind.EOF:
            if self._at("return", TokenKind.NAME):
                self._advance()
                if self._cur().kind != TokenKind.EOF and not self._at(";"):
                    chunk.returns = self._parse_expression()
                self._consume_optional(";")
                tok = self._cur()
                if tok.kind != TokenKind.EOF:
                    raise self._error(f"Expected end of input after return, got {self._describe(tok)}", tok)
                break
            chunk.statements.append(self._parse_assignment())
            self._consume_optional(";")
        return chunk

    def _parse_assignment(self) -> Assignment:
        local = False
        if self._at("local", TokenKind.NAME):
            self._advance()
            local = True
        target = self._consume_name()
        if local and not self._at("="):
            return Assignment(target=target, value=None, local=True)
        self._consume("=")
        return Assignment(target=target, value=self._parse_expression(), local=local)

    # -- Expressions ----------------------------------------------------------

    def _parse_expression(self) -> Expression:
        tok = self._cur()
        if tok.kind == TokenKind.NUMBER:
            self._advance()
            return Number(value=decode_number(tok.text), text=tok.text, line=tok.line)
        if tok.kind == TokenKind.STRING:
            self._advance()
            return String(value=decode_string(tok.text), line=tok.line)
        if tok.kind == TokenKind.NAME:
            if tok.text in ("local", "return"):
                raise self._error(f"Unexpected keyword '{tok.text}'", tok)
            self._advance()
            return Identifier(name=tok.text, line=tok.line)
        if tok.kind == TokenKind.SYMBOL and tok.text == "-":
            self._advance()
            return UnaryMinus(operand=self._parse_expression(), line=tok.line)
        if tok.kind == TokenKind.SYMBOL and tok.text == "{":
            return self._parse_table()
        raise self._error(f"Unexpected {self._describe(tok)}", tok)

    def _parse_table(self) -> TableConstructor:
        open_tok = self._consume("{")
        table = TableConstructor(line=open_tok.line)

        while not self._at("}"):
            tok = self._cur()
            if tok.kind == TokenKind.EOF:
                raise self._error(f"Unterminated table opened on line {open_tok.line}", tok)

            if self._at("["):
                self._advance()
                key = self._parse_expression()
                self._consume("]")
                self._consume("=")
                entry = Field(kind=FieldKind.INDEXED, key=key, value=self._parse_expression())
            elif tok.kind == TokenKind.NAME and self._peek().kind == TokenKind.SYMBOL and self._peek().text == "=":
                self._advance()
                self._advance()
                entry = Field(kind=FieldKind.NAMED, name=tok.text, value=self._parse_expression())
            else:
                entry = Field(kind=FieldKind.POSITIONAL, value=self._parse_expression())

            separated = self._consume_optional(",") or self._consume_optional(";")
            end_line = self._prev().line
            comment = self.comments.get(end_line)
            if comment is not None and self._cur().line != end_line:
                entry.comment = comment
            table.fields.append(entry)

            if not separated and not self._at("}"):
                bad = self._cur()
                raise self._error(f"Expected ',' or '}}' in table, got {self._describe(bad)}", bad)

        self._consume("}")
        return table
