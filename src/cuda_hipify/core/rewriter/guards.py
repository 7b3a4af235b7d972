"""
Include Guard Tracking and End-of-File Finalization.

CUDA headers are deleted or substituted while HIP needs its runtime header
everywhere, so a file that never substituted the runtime header receives one
`#include <hip/hip_runtime.h>` at end of file. The insertion point is chosen
from the guard information recorded during the pass:

1. Both `#pragma once` and the controlling `#ifndef` seen: the earlier one.
2. Only one of them seen: that one.
3. Neither: just after the first `#include` of the file.
4. No include at all: the start of the file.

Recorded locations are the offsets right after `once` and right after the
`#ifndef` macro name.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

from cuda_hipify.frontend.nodes import IfndefDirective, InclusionDirective, PragmaDirective, PragmaIntroducer

if TYPE_CHECKING:
  from cuda_hipify.core.action import HipifyAction


@dataclass
class MacroGuardState:
  """
  Guard-related positions of the main file.

  Attributes:
      pragma_once (Optional[int]): Offset after the first `#pragma once`.
      ifndefs (Dict[str, int]): Macro name -> offset after the name in `#ifndef NAME`.
      first_include_end (Optional[int]): Offset after the filename of the first `#include`.
  """

  pragma_once: Optional[int] = None
  ifndefs: Dict[str, int] = field(default_factory=dict)
  first_include_end: Optional[int] = None

  def record_include(self, directive: InclusionDirective) -> None:
    if self.first_include_end is None:
      self.first_include_end = directive.filename_range.end.file_offset

  def record_pragma(self, pragma: PragmaDirective) -> None:
    # Operator forms are spelled inside a string literal; nothing can be inserted there.
    if pragma.introducer != PragmaIntroducer.HASH or self.pragma_once is not None:
      return
    words = pragma.text.split()
    if words and words[0] == "once":
      start = pragma.text_location.file_offset
      self.pragma_once = start + pragma.text.index("once") + len("once")

  def record_ifndef(self, directive: IfndefDirective) -> None:
    self.ifndefs[directive.macro_name] = directive.macro_name_range.end.file_offset

  def insertion_offset(self, controlling_macro: Optional[str]) -> int:
    """
    Offset where the runtime include goes.

    Args:
        controlling_macro: The file's include-guard macro, if any.

    Returns:
        int: Position in the original text.
    """
    guard = self.ifndefs.get(controlling_macro) if controlling_macro else None
    candidates = [loc for loc in (guard, self.pragma_once) if loc is not None]
    if candidates:
      return min(candidates)
    if self.first_include_end is not None:
      return self.first_include_end
    return 0


class GuardMixin:
  """
  Mixin tracking guards and inserting the runtime include at end of file.

  Assumed attributes on self: `config`, `guard_state`, `inserted_headers`,
  `insert_replacement`.
  """

  def track_pragma(self: "HipifyAction", pragma: PragmaDirective) -> None:
    if pragma.in_main_file:
      self.guard_state.record_pragma(pragma)

  def track_ifndef(self: "HipifyAction", directive: IfndefDirective) -> None:
    if directive.in_main_file:
      self.guard_state.record_ifndef(directive)

  def finalize(self: "HipifyAction", controlling_macro: Optional[str]) -> bool:
    """
    Inserts the runtime include unless the runtime header was substituted.

    Returns:
        bool: True if an include was inserted.
    """
    if self.inserted_headers.runtime:
      return False
    offset = self.guard_state.insertion_offset(controlling_macro)
    inserted = self.insert_replacement(offset, 0, self.config.runtime_include)
    if inserted:
      self.tracer.log_header(self.config.runtime_header, "inserted")
    return inserted
