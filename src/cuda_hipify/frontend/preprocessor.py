"""
Preprocessor Directive Scanner.

Finds the directives of the main file in its syntax tree:

- `#include` / `#include_next` / `#import` with a literal file name.
- `#pragma ...` and the `_Pragma("...")` / `__pragma(...)` operators.
- `#ifndef NAME`.

It also detects the file's controlling macro: the `NAME` of an
`#ifndef NAME` (or `#if !defined(NAME)`) whose matching `#endif` closes the
file, with nothing but comments outside the pair.

Directives in disabled regions are reported as well, since the tree keeps
every branch. Includes whose name is produced by a macro are not reported.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from tree_sitter import Node

from cuda_hipify.frontend.nodes import (
  IfndefDirective,
  InclusionDirective,
  PragmaDirective,
  PragmaIntroducer,
  SourceLocation,
  SourceRange,
)
from cuda_hipify.frontend.syntax import SourceTree, walk
from cuda_hipify.frontend.tokens import unquote

PreprocessorEvent = Union[InclusionDirective, PragmaDirective, IfndefDirective]

_CONDITIONAL_ELSE = {"preproc_else", "preproc_elif", "preproc_elifdef"}
_DIRECTIVE_NAME = re.compile(r"#[ \t]*(\w+)")
_HEADER_NAME = re.compile(r'<[^>\n]*>|"[^"\n]*"')
_NOT_DEFINED = re.compile(r"!\s*defined\s*(?:\(\s*(\w+)\s*\)|(\w+))\Z")
_PRAGMA_OPERATORS = {"_Pragma": PragmaIntroducer.OPERATOR, "__pragma": PragmaIntroducer.MICROSOFT}


@dataclass
class DirectiveScan:
  """Result of scanning one file."""

  events: List[PreprocessorEvent] = field(default_factory=list)
  controlling_macro: Optional[str] = None


def directive_name(tree: SourceTree, node: Node) -> str:
  """`include` for the first child `#  include` of a directive node."""
  if not node.children:
    return ""
  match = _DIRECTIVE_NAME.match(tree.text_of(node.children[0]))
  return match.group(1) if match else ""


class DirectiveScanner:
  """
  Collects preprocessing events from a parsed file.
  """

  def __init__(self, tree: SourceTree):
    self.tree = tree

  def scan(self) -> DirectiveScan:
    """
    Runs the scan.

    Returns:
        DirectiveScan: The events in file order and the controlling macro.
    """
    result = DirectiveScan()
    for node in walk(self.tree.root):
      event = self._to_event(node)
      if event is not None:
        result.events.append(event)
    result.events.sort(key=lambda e: e.offset)
    result.controlling_macro = self._controlling_macro()
    return result

  def _to_event(self, node: Node) -> Optional[PreprocessorEvent]:
    if node.type == "call_expression":
      return self._pragma_operator(node)
    if not node.type.startswith("preproc_") or not self.tree.starts_line(node):
      return None

    name = directive_name(self.tree, node)
    if node.type == "preproc_include":
      return self._inclusion(node)
    if name in ("include_next", "import"):
      return self._inclusion_call(node)
    if name == "pragma":
      return self._pragma(node)
    if node.type == "preproc_ifdef" and name == "ifndef":
      macro = node.child_by_field_name("name")
      if macro is not None:
        return IfndefDirective(
          location=SourceLocation.at(self.tree.start(node)),
          macro_name=self.tree.text_of(macro),
          macro_name_range=SourceRange.of(*self.tree.span(macro)),
        )
    return None

  # --- Includes ---

  def _inclusion(self, node: Node) -> Optional[InclusionDirective]:
    path = node.child_by_field_name("path")
    if path is None or path.type not in ("system_lib_string", "string_literal"):
      return None
    text = self.tree.text_of(path)
    is_angled = path.type == "system_lib_string"
    if not is_angled and not text.startswith('"'):
      return None
    return InclusionDirective(
      hash_location=SourceLocation.at(self.tree.start(node)),
      file_name=text[1:-1] if is_angled else unquote(text),
      is_angled=is_angled,
      filename_range=SourceRange.of(*self.tree.span(path)),
    )

  def _inclusion_call(self, node: Node) -> Optional[InclusionDirective]:
    """`#include_next` and `#import`, which the grammar keeps as plain directives."""
    arg = node.child_by_field_name("argument")
    if arg is None:
      return None
    match = _HEADER_NAME.match(self.tree.text_of(arg))
    if match is None:
      return None
    begin = self.tree.start(arg)
    name = match.group(0)
    return InclusionDirective(
      hash_location=SourceLocation.at(self.tree.start(node)),
      file_name=name[1:-1],
      is_angled=name.startswith("<"),
      filename_range=SourceRange.of(begin, begin + len(name)),
    )

  # --- Pragmas ---

  def _pragma(self, node: Node) -> PragmaDirective:
    arg = node.child_by_field_name("argument")
    if arg is not None:
      start = self.tree.start(arg)
      text = self.tree.text_of(arg).rstrip()
    else:
      start = self.tree.end(node.children[0])
      text = ""
    return PragmaDirective(
      location=SourceLocation.at(self.tree.start(node)),
      introducer=PragmaIntroducer.HASH,
      text=text,
      text_location=SourceLocation.at(start),
    )

  def _pragma_operator(self, node: Node) -> Optional[PragmaDirective]:
    """`_Pragma("text")` and `__pragma(text)` in ordinary code."""
    function = node.child_by_field_name("function")
    args = node.child_by_field_name("arguments")
    if function is None or args is None or function.type != "identifier":
      return None
    introducer = _PRAGMA_OPERATORS.get(self.tree.text_of(function))
    if introducer is None:
      return None

    if introducer == PragmaIntroducer.OPERATOR:
      literals = [c for c in args.named_children if c.type == "string_literal"]
      if not literals or not self.tree.text_of(literals[0]).startswith('"'):
        return None
      text = unquote(self.tree.text_of(literals[0]))
      start = self.tree.start(literals[0]) + 1
    else:
      inner = self.tree.text_of(args)[1:-1]
      text = inner.strip()
      start = self.tree.start(args) + 1 + (len(inner) - len(inner.lstrip()))
    return PragmaDirective(
      location=SourceLocation.at(self.tree.start(node)),
      introducer=introducer,
      text=text,
      text_location=SourceLocation.at(start),
    )

  # --- Include guards ---

  def _controlling_macro(self) -> Optional[str]:
    top = [n for n in self.tree.root.children if n.type != "comment"]
    if len(top) != 1:
      return None
    (opener,) = top
    if any(child.type in _CONDITIONAL_ELSE for child in opener.children):
      return None

    name = directive_name(self.tree, opener)
    if opener.type == "preproc_ifdef" and name == "ifndef":
      macro = opener.child_by_field_name("name")
      return self.tree.text_of(macro) if macro is not None else None
    if opener.type == "preproc_if" and name == "if":
      condition = opener.child_by_field_name("condition")
      if condition is None:
        return None
      match = _NOT_DEFINED.match(self.tree.text_of(condition).strip())
      if match:
        return match.group(1) or match.group(2)
    return None
