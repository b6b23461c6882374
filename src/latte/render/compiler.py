"""Compiler contract and the default Markdown + TeX-math compiler."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, Sequence, Union

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin

from ..errors import CompileError

__all__ = [
    "CompileOptions",
    "DocumentTree",
    "Compiler",
    "MarkdownCompiler",
    "check_math",
]

LOGGER = logging.getLogger(__name__)
_MATH_TOKEN_TYPES = {"math_inline", "math_inline_double", "math_block", "math_block_label"}
_ENV_PATTERN = re.compile(r"\\(begin|end)\s*\{([^}]*)\}")


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Options handed to a compiler alongside the source text."""

    typographer: bool = True
    allow_html: bool = False
    tables: bool = True


@dataclass(frozen=True, slots=True)
class DocumentTree:
    """Structured output of a compile: the rendered body plus what was parsed."""

    body_html: str
    title: str | None = None
    tokens: tuple[Token, ...] = field(default=(), compare=False, repr=False)
    math_count: int = 0


Compiler = Callable[[str, CompileOptions], Union[DocumentTree, Awaitable[DocumentTree]]]


def check_math(tokens: Iterable[Token]) -> int:
    """Validate TeX inside math tokens and return how many were seen.

    Raises :class:`CompileError` for unbalanced braces or mismatched
    ``\\begin``/``\\end`` environments.
    """

    count = 0
    for token in tokens:
        if token.type not in _MATH_TOKEN_TYPES:
            continue
        count += 1
        line = token.map[0] if token.map else None
        _check_braces(token.content, line)
        _check_environments(token.content, line)
    return count


def _check_braces(content: str, line: int | None) -> None:
    depth = 0
    escaped = False
    for char in content:
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                raise CompileError(message=_located("Unexpected '}' in math", line), line=line)
    if depth:
        raise CompileError(message=_located("Missing '}' in math", line), line=line)


def _check_environments(content: str, line: int | None) -> None:
    stack: list[str] = []
    for match in _ENV_PATTERN.finditer(content):
        kind, name = match.group(1), match.group(2).strip()
        if kind == "begin":
            stack.append(name)
            continue
        if not stack:
            raise CompileError(
                message=_located(f"\\end{{{name}}} without matching \\begin", line), line=line
            )
        opened = stack.pop()
        if opened != name:
            raise CompileError(
                message=_located(f"\\begin{{{opened}}} ended by \\end{{{name}}}", line), line=line
            )
    if stack:
        raise CompileError(message=_located(f"\\begin{{{stack[-1]}}} is never ended", line), line=line)


def _located(message: str, line: int | None) -> str:
    return message if line is None else f"{message} (line {line + 1})"


def _first_heading(tokens: Sequence[Token]) -> str | None:
    for index, token in enumerate(tokens):
        if token.type == "heading_open" and token.tag == "h1" and index + 1 < len(tokens):
            content = tokens[index + 1].content.strip()
            if content:
                return content
    return None


class MarkdownCompiler:
    """Compiles Markdown with ``$...$`` / ``$$...$$`` math into a :class:`DocumentTree`.

    Parsers are built on first use and cached per option set.
    """

    def __init__(self) -> None:
        self._parsers: Dict[CompileOptions, MarkdownIt] = {}

    def __call__(self, source: str, options: CompileOptions | None = None) -> DocumentTree:
        opts = options or CompileOptions()
        parser = self._parser_for(opts)
        env: Dict[str, Any] = {}
        tokens = parser.parse(source, env)
        math_count = check_math(_walk(tokens))
        body = parser.renderer.render(tokens, parser.options, env)
        title = _first_heading(tokens)
        return DocumentTree(
            body_html=body,
            title=title,
            tokens=tuple(tokens),
            math_count=math_count,
        )

    def _parser_for(self, options: CompileOptions) -> MarkdownIt:
        parser = self._parsers.get(options)
        if parser is None:
            parser = MarkdownIt(
                "commonmark",
                {"html": options.allow_html, "typographer": options.typographer},
            ).enable("strikethrough")
            if options.tables:
                parser.enable("table")
            if options.typographer:
                parser.enable(["replacements", "smartquotes"])
            parser.use(dollarmath_plugin)
            self._parsers[options] = parser
            LOGGER.debug("Built markdown parser for %s", options)
        return parser


def _walk(tokens: Iterable[Token]) -> Iterable[Token]:
    for token in tokens:
        yield token
        if token.children:
            yield from _walk(token.children)
