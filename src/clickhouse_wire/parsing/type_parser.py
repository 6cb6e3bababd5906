"""Parser for ClickHouse type names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import ply.yacc as yacc

from clickhouse_wire.parsing.type_lexer import TypeLexer

TypeArg = Union["TypeSpec", str, int]


@dataclass
class TypeSpec:
    """A parsed type name: ``Name`` or ``Name(arg, ...)``.

    Arguments are nested TypeSpecs (``Array(Int8)``), quoted strings
    (``DateTime('UTC')``) or integers (``FixedString(16)``).
    """

    name: str
    args: list[TypeArg] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.args:
            return self.name
        rendered = []
        for arg in self.args:
            if isinstance(arg, str):
                escaped = arg.replace("\\", "\\\\").replace("'", "\\'")
                rendered.append(f"'{escaped}'")
            else:
                rendered.append(str(arg))
        return f"{self.name}({', '.join(rendered)})"


class TypeParser:
    """Parser for ClickHouse type names."""

    tokens = TypeLexer.tokens

    def __init__(self) -> None:
        self.lexer = TypeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def p_type_spec_simple(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER"""
        p[0] = TypeSpec(name=p[1])

    def p_type_spec_empty_args(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER LPAREN RPAREN"""
        p[0] = TypeSpec(name=p[1])

    def p_type_spec_args(self, p: yacc.YaccProduction) -> None:
        """type_spec : IDENTIFIER LPAREN arg_list RPAREN"""
        p[0] = TypeSpec(name=p[1], args=p[3])

    def p_arg_list_single(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg"""
        p[0] = [p[1]]

    def p_arg_list_multiple(self, p: yacc.YaccProduction) -> None:
        """arg_list : arg_list COMMA arg"""
        p[0] = p[1] + [p[3]]

    def p_arg(self, p: yacc.YaccProduction) -> None:
        """arg : type_spec
               | STRING
               | INTEGER"""
        p[0] = p[1]

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str) -> TypeSpec:
        """Parse a type name into a TypeSpec."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        result = self.parser.parse(data, lexer=self.lexer.lexer)
        if result is None:
            raise SyntaxError(f"Empty type name: {data!r}")
        return result
