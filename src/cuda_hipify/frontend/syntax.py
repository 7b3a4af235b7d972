"""
CUDA Syntax Trees.

Parses CUDA C++ with the tree-sitter CUDA grammar. tree-sitter reports byte
positions into the UTF-8 encoding of the text; `SourceTree` maps them back to
character offsets of the decoded file, which is what every other part of the
package works with.

The parser is error tolerant: files whose headers are unavailable, or whose
preprocessor branches do not form complete declarations on their own, still
produce a tree with `ERROR` nodes around the parts it could not place.
"""

from functools import lru_cache
from typing import Iterator, List, Optional

import tree_sitter_cuda as tscuda
from tree_sitter import Language, Node, Parser

from cuda_hipify.frontend.nodes import CharRange


@lru_cache(maxsize=1)
def cuda_language() -> Language:
  return Language(tscuda.language())


def _encode(text: str) -> bytes:
  return text.encode("utf-8", "surrogatepass")


def walk(node: Node) -> Iterator[Node]:
  """Yields `node` and its descendants in source order."""
  stack = [node]
  while stack:
    node = stack.pop()
    yield node
    stack.extend(reversed(node.children))


def children_between(node: Node, opener: str, closer: str) -> List[Node]:
  """Named children of `node` after the `opener` token and before `closer`."""
  found: List[Node] = []
  inside = False
  for child in node.children:
    if not child.is_named and child.type == opener:
      inside = True
    elif not child.is_named and child.type == closer:
      break
    elif inside and child.is_named and child.type != "comment":
      found.append(child)
  return found


class SourceTree:
  """
  A parsed piece of source text.

  Attributes:
      text (str): The parsed text.
      base (int): File offset of `text[0]`. Zero for a whole file; the start
          of the node for trees built by `nested`.
      root (Node): The `translation_unit` node.
  """

  def __init__(self, text: str, base: int = 0):
    self.text = text
    self.base = base
    data = _encode(text)
    self.root = Parser(cuda_language()).parse(data).root_node

    self._chars: Optional[List[int]] = None
    if len(data) != len(text):
      self._chars = []
      for i, ch in enumerate(text):
        self._chars.extend([i] * len(_encode(ch)))
      self._chars.append(len(text))

  def offset(self, byte: int) -> int:
    """File offset of a byte position of this tree."""
    char = byte if self._chars is None else self._chars[byte]
    return self.base + char

  def start(self, node: Node) -> int:
    return self.offset(node.start_byte)

  def end(self, node: Node) -> int:
    return self.offset(node.end_byte)

  def span(self, node: Node) -> CharRange:
    return CharRange(self.start(node), self.end(node))

  def text_of(self, node: Node) -> str:
    return self.text[self.start(node) - self.base : self.end(node) - self.base]

  def nested(self, node: Node) -> "SourceTree":
    """
    Parses the text of `node` on its own.

    Used for text the grammar keeps opaque, such as macro bodies.
    """
    return SourceTree(self.text_of(node), base=self.start(node))

  def starts_line(self, node: Node) -> bool:
    """True if only blanks precede `node` on its line."""
    begin = self.start(node) - self.base
    line_start = self.text.rfind("\n", 0, begin) + 1
    return not self.text[line_start:begin].strip()
