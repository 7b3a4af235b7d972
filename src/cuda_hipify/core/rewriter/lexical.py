"""
Lexical Rewriting Logic.

Rewrites raw tokens one at a time:

- identifiers found in the renames table,
- CUDA names embedded in plain string literals (`"cudaMalloc failed"`).

Tokens inside preprocessor-disabled regions are rewritten as well, since the
token stream does not interpret directives.
"""

import re
from typing import TYPE_CHECKING

from cuda_hipify.enums import ConvType
from cuda_hipify.frontend.tokens import Token, TokenKind, unquote

if TYPE_CHECKING:
  from cuda_hipify.core.action import HipifyAction

_WHITESPACE = re.compile(r"\s")


class LexicalMixin:
  """
  Mixin for token-level rewrites.

  Assumed attributes on self: `rules`, `config`, `find_and_replace`.
  """

  def rewrite_token(self: "HipifyAction", token: Token) -> None:
    if token.kind == TokenKind.IDENTIFIER:
      self.rewrite_identifier(token)
    elif token.kind == TokenKind.STRING_LITERAL:
      self.rewrite_string(token)

  def rewrite_identifier(self: "HipifyAction", token: Token) -> None:
    entry = self.rules.lookup(token.text)
    if entry is not None:
      self.find_and_replace(token.text, token.offset, entry)

  def rewrite_string(self: "HipifyAction", token: Token) -> None:
    """
    Rewrites CUDA names inside a string literal.

    A candidate starts at each occurrence of `config.string_prefix` and runs
    to the next whitespace character or the end of the content. Scanning
    resumes after that whitespace character.

    Args:
        token: A `STRING_LITERAL` token, quotes included.
    """
    content = unquote(token.text)
    prefix = self.config.string_prefix

    begin = content.find(prefix)
    while begin != -1:
      ws = _WHITESPACE.search(content, begin + len(prefix))
      end = ws.start() if ws else len(content)
      name = content[begin:end]

      entry = self.rules.lookup(name)
      if entry is not None:
        # +1 skips the opening quote.
        self.find_and_replace(name, token.offset + 1 + begin, entry, counted_as=ConvType.LITERAL)

      if ws is None:
        break
      begin = content.find(prefix, end + 1)
