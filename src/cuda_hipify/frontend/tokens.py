"""
CUDA/C++ Token Stream.

Provides `RawLexer`, which decomposes source text into a stream of typed
`Token` objects taken from the leaves of its tree-sitter syntax tree.
Directives are not interpreted, so tokens inside `#if 0` blocks and other
disabled regions are produced too. Macro bodies, which the grammar keeps as
opaque text, are parsed on their own and tokenized in place.

Only plain `"..."` literals are classified as `STRING_LITERAL`; prefixed
(`L"..."`, `u8"..."`) and raw string literals are `OTHER`. The file name of an
`#include` is a single `HEADER_NAME` token.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Generator, Optional

from tree_sitter import Node

from cuda_hipify.frontend.nodes import LineIndex
from cuda_hipify.frontend.syntax import SourceTree


class TokenKind(Enum):
  """Enumeration of raw token kinds."""

  IDENTIFIER = auto()  # cudaMalloc, __global__
  STRING_LITERAL = auto()  # "text"
  CHAR_LITERAL = auto()  # 'c', L'c'
  NUMERIC = auto()  # 42, 0x1f, 1.5e-3f
  COMMENT = auto()  # // ..., /* ... */
  HEADER_NAME = auto()  # <cuda.h>, "kernel.cuh" after #include
  DIRECTIVE = auto()  # #include, #  define
  PUNCTUATION = auto()  # <<<, ::, (, #
  OTHER = auto()  # raw/prefixed strings, stray characters


@dataclass(frozen=True)
class Token:
  """
  Represents a lexical unit.

  Attributes:
      kind (TokenKind): The type of token.
      text (str): The raw characters, exactly as written.
      offset (int): Offset of the first character in the file.
      line (int): Line number in source (1-based).
      column (int): Column number in source (1-based).
  """

  kind: TokenKind
  text: str
  offset: int
  line: int
  column: int

  @property
  def length(self) -> int:
    return len(self.text)

  @property
  def end(self) -> int:
    return self.offset + len(self.text)

  def is_punct(self, *texts: str) -> bool:
    return self.kind == TokenKind.PUNCTUATION and self.text in texts

  def is_ident(self, *texts: str) -> bool:
    return self.kind == TokenKind.IDENTIFIER and (not texts or self.text in texts)


# Nodes yielded whole, without descending into their children.
_ATOMIC = {
  "comment": TokenKind.COMMENT,
  "raw_string_literal": TokenKind.OTHER,
  "char_literal": TokenKind.CHAR_LITERAL,
  "number_literal": TokenKind.NUMERIC,
  "system_lib_string": TokenKind.HEADER_NAME,
  "string_literal": TokenKind.STRING_LITERAL,
}

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*\Z")
_DIRECTIVE = re.compile(r"#[ \t]*[A-Za-z_]\w*\Z")
_PUNCTUATION = re.compile(r"[{}\[\]()#;:,.?~!%^&*+\-=<>|/]+\Z")


class RawLexer:
  """
  Leaf-order tokenizer for CUDA C++ source.
  """

  def tokenize(self, text: str) -> Generator[Token, None, None]:
    """
    Tokenizes the input string.

    Whitespace is skipped; comments are yielded so callers can skip them
    explicitly.

    Args:
        text (str): Raw source code.

    Yields:
        Token: Token objects in source order.
    """
    yield from self.tokens(SourceTree(text))

  def tokens(self, tree: SourceTree, lines: Optional[LineIndex] = None) -> Generator[Token, None, None]:
    """
    Tokenizes an already parsed tree.

    Args:
        tree: The parsed file (or a nested piece of it).
        lines: Line index of the whole file; built from `tree` when omitted.

    Yields:
        Token: Token objects in source order.
    """
    if lines is None:
      lines = LineIndex(tree.text)
    stack = [tree.root]
    while stack:
      node = stack.pop()
      if node.type == "preproc_arg":
        yield from self.tokens(tree.nested(node), lines)
        continue
      if node.type not in _ATOMIC and node.child_count:
        stack.extend(reversed(node.children))
        continue

      if node.is_missing or node.start_byte == node.end_byte:
        continue
      text = tree.text_of(node)
      if not text.strip():
        continue
      offset = tree.start(node)
      line, column = lines.line_col(offset)
      yield Token(_classify(node, text), text, offset, line, column)


def _classify(node: Node, text: str) -> TokenKind:
  kind = _ATOMIC.get(node.type)
  if kind == TokenKind.STRING_LITERAL:
    if node.parent is not None and node.parent.type == "preproc_include":
      return TokenKind.HEADER_NAME
    return kind if text.startswith('"') else TokenKind.OTHER
  if kind is not None:
    return kind
  if _IDENTIFIER.match(text):
    return TokenKind.IDENTIFIER
  if _DIRECTIVE.match(text):
    return TokenKind.DIRECTIVE
  if _PUNCTUATION.match(text):
    return TokenKind.PUNCTUATION
  return TokenKind.OTHER


def unquote(literal: str) -> str:
  """
  Strips the surrounding double quotes of a plain string literal.

  Unterminated literals lose only their opening quote.
  """
  if len(literal) >= 2 and literal[0] == '"' and literal[-1] == '"':
    return literal[1:-1]
  if literal.startswith('"'):
    return literal[1:]
  return literal
