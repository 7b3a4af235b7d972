"""
Include Directive Rewriting.

For every `#include` written in the main file:

- unknown headers are left alone,
- unsupported headers get a warning,
- known headers are either *substituted* (the filename is replaced, keeping
  `<>` or `""`) or *excluded* (the directive is blanked from `#` through the
  filename).

Main library headers are substituted at most once per API category and file;
later occurrences are excluded. The first occurrence of the runtime header
also cancels the end-of-file runtime include insertion.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Set

from cuda_hipify.core.diagnostics import UNSUPPORTED_HEADER
from cuda_hipify.enums import ApiType, ConvType
from cuda_hipify.frontend.nodes import InclusionDirective
from cuda_hipify.rules import RuleEntry

if TYPE_CHECKING:
  from cuda_hipify.core.action import HipifyAction

RUNTIME = "runtime"
RAND_KERNEL_HEADER = "hiprand_kernel.h"
RAND_HOST_HEADER = "hiprand.h"

_MAIN_CATEGORIES = {
  ApiType.DRIVER: RUNTIME,
  ApiType.RUNTIME: RUNTIME,
  ApiType.BLAS: "blas",
  ApiType.DNN: "dnn",
  ApiType.FFT: "fft",
  ApiType.COMPLEX: "complex",
  ApiType.SPARSE: "sparse",
}


def header_category(entry: RuleEntry) -> Optional[str]:
  """
  Deduplication category of an include rule, if it has one.

  RAND headers are split by target filename into a device (`rand_kernel`)
  and a host (`rand`) category.
  """
  if entry.api_type == ApiType.RAND:
    if entry.hip_name == RAND_KERNEL_HEADER:
      return "rand_kernel"
    if entry.hip_name == RAND_HOST_HEADER:
      return "rand"
    return None
  if entry.conv_type != ConvType.INCLUDE_MAIN:
    return None
  return _MAIN_CATEGORIES.get(entry.api_type)


@dataclass
class InsertedHeaders:
  """Header categories already substituted in the current file."""

  categories: Set[str] = field(default_factory=set)

  @property
  def runtime(self) -> bool:
    return RUNTIME in self.categories

  def claim(self, category: str) -> bool:
    """Marks `category` as inserted. Returns False if it already was."""
    if category in self.categories:
      return False
    self.categories.add(category)
    return True


class IncludeMixin:
  """
  Mixin for `#include` rewrites.

  Assumed attributes on self: `rules`, `config`, `statistics`, `diagnostics`,
  `inserted_headers`, `guard_state`, `insert_replacement`.
  """

  def rewrite_inclusion(self: "HipifyAction", directive: InclusionDirective) -> None:
    if not directive.in_main_file:
      return
    self.guard_state.record_include(directive)

    entry = self.rules.lookup_include(directive.file_name)
    if entry is None:
      return

    to_roc = self.config.to_roc
    unsupported = entry.is_unsupported(to_roc)
    self.statistics.increment(
      directive.file_name,
      entry.conv_type,
      entry.api_type,
      unsupported=unsupported,
      deprecated=entry.is_deprecated,
    )
    if unsupported:
      self.diagnostics.report(directive.filename_range.begin.file_offset, UNSUPPORTED_HEADER)
      self.tracer.log_header(directive.file_name, "unsupported")
      return

    filename = directive.filename_range
    name_end = filename.end.file_offset
    if self.should_exclude(entry):
      hash_offset = directive.hash_location.file_offset
      self.insert_replacement(hash_offset, name_end - hash_offset, "", absorb=True)
      self.tracer.log_header(directive.file_name, "excluded")
      return

    target = entry.target_name(to_roc)
    text = f"<{target}>" if directive.is_angled else f'"{target}"'
    name_begin = filename.begin.file_offset
    self.insert_replacement(name_begin, name_end - name_begin, text, absorb=True)
    self.tracer.log_header(directive.file_name, f"substituted by {target}")

  def should_exclude(self: "HipifyAction", entry: RuleEntry) -> bool:
    """
    Decides between excluding and substituting a supported header.

    Claims the entry's category on substitution.
    """
    if not entry.target_name(self.config.to_roc):
      return True

    category = header_category(entry)
    if category is None:
      return False
    if entry.conv_type == ConvType.INCLUDE and category != "rand_kernel":
      return False
    return not self.inserted_headers.claim(category)
