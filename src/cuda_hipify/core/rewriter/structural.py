"""
Structural Rewriting Logic.

Handles the match events of the structural pass. Each event is resolved by
trying the handlers in a fixed order; the first one that accepts the event
wins:

1. `KERNEL_LAUNCH`: `k<<<g, b>>>(x)` -> `hipLaunchKernelGGL(k, dim3(g), dim3(b), 0, 0, x)`.
2. `SHARED_ARRAY`: `extern __shared__ float s[];` -> `HIP_DYNAMIC_SHARED(float, s);`.
3. `DEVICE_CALL`: a call to a device function renamed through the
   device-function table.

A handler declines (returns False) when a node it needs is missing.

Launch pieces are copied with the lexical renames already made inside them,
and the launch patch absorbs those renames.
"""

from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, Optional, Sequence, Tuple

from cuda_hipify.core.spans import write_range
from cuda_hipify.enums import ApiType, ConvType
from cuda_hipify.frontend.nodes import (
  ATTR_DEVICE,
  ATTR_GLOBAL,
  ATTR_HOST,
  ATTR_SHARED,
  Expr,
  MatchResult,
  SourceRange,
)

if TYPE_CHECKING:
  from cuda_hipify.core.action import HipifyAction


class MatchKind(str, Enum):
  """Which structural rewrite handled a match event."""

  KERNEL_LAUNCH = "kernel_launch"
  SHARED_ARRAY = "shared_array"
  DEVICE_CALL = "device_call"


_CANONICAL_SPELLINGS: Dict[str, Sequence[str]] = {
  "bool": ("bool", "_Bool"),
  "char": ("char",),
  "signed char": ("signed char",),
  "unsigned char": ("unsigned char",),
  "wchar_t": ("wchar_t",),
  "char8_t": ("char8_t",),
  "char16_t": ("char16_t",),
  "char32_t": ("char32_t",),
  "short": ("short", "short int", "signed short", "signed short int"),
  "unsigned short": ("unsigned short", "unsigned short int"),
  "int": ("int", "signed", "signed int"),
  "unsigned int": ("unsigned", "unsigned int"),
  "long": ("long", "long int", "signed long", "signed long int"),
  "unsigned long": ("unsigned long", "unsigned long int"),
  "long long": ("long long", "long long int", "signed long long", "signed long long int"),
  "unsigned long long": ("unsigned long long", "unsigned long long int"),
  "__int128": ("__int128", "signed __int128"),
  "unsigned __int128": ("unsigned __int128",),
  "float": ("float",),
  "double": ("double",),
  "long double": ("long double",),
  "_Float16": ("_Float16",),
  "__bf16": ("__bf16",),
  "__fp16": ("__fp16",),
}

# Word order does not matter in C type specifiers: key on the sorted words.
_BUILTIN_NAMES: Dict[Tuple[str, ...], str] = {
  tuple(sorted(spelling.split())): canonical
  for canonical, spellings in _CANONICAL_SPELLINGS.items()
  for spelling in spellings
}
_QUALIFIERS = frozenset({"const", "volatile", "restrict", "__restrict", "__restrict__"})


def builtin_type_name(spelling: str, extension_type_names: bool = True) -> str:
  """
  Canonical name of a builtin type.

  Args:
      spelling: Type as written, e.g. `unsigned` or `long int`.
      extension_type_names: Print `__fp16` as `half`.

  Returns:
      str: The canonical name (qualifiers dropped), or "" when the words do
      not form a known builtin type.
  """
  words = tuple(sorted(w for w in spelling.split() if w not in _QUALIFIERS))
  name = _BUILTIN_NAMES.get(words, "")
  if name == "__fp16" and extension_type_names:
    return "half"
  return name


class StructuralMixin:
  """
  Mixin for match-event rewrites.

  Assumed attributes on self: `rules`, `config`, `statistics`,
  `insert_replacement`, `read_source`, `find_and_replace`.
  """

  def run_match(self: "HipifyAction", match: MatchResult) -> Optional[MatchKind]:
    """
    Resolves one match event.

    Args:
        match: Nodes bound by the frontend.

    Returns:
        Optional[MatchKind]: The rewrite that handled the event, or None.
    """
    handlers: Sequence[Tuple[MatchKind, Callable[[MatchResult], bool]]] = (
      (MatchKind.KERNEL_LAUNCH, self.rewrite_kernel_launch),
      (MatchKind.SHARED_ARRAY, self.rewrite_shared_array),
      (MatchKind.DEVICE_CALL, self.rewrite_device_call),
    )
    for kind, handler in handlers:
      if handler(match):
        return kind
    return None

  # --- Kernel launch ---

  def rewrite_kernel_launch(self: "HipifyAction", match: MatchResult) -> bool:
    launch = match.kernel_launch
    if launch is None or launch.callee is None or launch.callee.range is None or launch.callee_decl is None:
      return False
    config = launch.config or []
    if len(config) < 2 or config[0].range is None or config[1].range is None:
      return False

    callee = self.read_source(launch.callee.range)
    if launch.callee_decl.is_template_instantiation:
      callee = f"({callee})"

    parts = [
      callee,
      f"dim3({self.read_source(config[0].range)})",
      f"dim3({self.read_source(config[1].range)})",
      self._optional_config(config, 2),
      self._optional_config(config, 3),
    ]
    args = [a for a in launch.args if a.range is not None]
    if args:
      parts.append(self.read_source(SourceRange(args[0].range.begin, args[-1].range.end)))

    macro = self.config.launch_macro
    span = write_range(launch.range)
    self.insert_replacement(span.begin, span.length, f"{macro}({', '.join(parts)})", absorb=True)
    self.statistics.increment(macro, ConvType.EXECUTION, ApiType.RUNTIME)
    self.tracer.log_match("<<<>>>", macro, MatchKind.KERNEL_LAUNCH.value)
    return True

  def _optional_config(self: "HipifyAction", config: Sequence[Expr], index: int) -> str:
    if index >= len(config) or config[index].is_default_arg or config[index].range is None:
      return "0"
    return self.read_source(config[index].range)

  # --- Shared arrays ---

  def rewrite_shared_array(self: "HipifyAction", match: MatchResult) -> bool:
    var = match.shared_var
    if var is None or not var.has_external_linkage or ATTR_SHARED not in var.attributes:
      return False
    if not var.type.is_incomplete_array or var.type.element_type is None:
      return False

    element = var.type.element_type
    if element.is_builtin:
      type_name = builtin_type_name(element.spelling, self.config.extension_type_names)
    else:
      type_name = element.spelling
    if not type_name:
      return True

    macro = self.config.shared_macro
    span = write_range(SourceRange(var.outer_begin, var.type_end))
    # type_end is the last character of the type, inclusive.
    self.insert_replacement(span.begin, span.length + 1, f"{macro}({type_name}, {var.name})")
    self.statistics.increment(macro, ConvType.MEMORY, ApiType.RUNTIME)
    self.tracer.log_match(var.name, macro, MatchKind.SHARED_ARRAY.value)
    return True

  # --- Device calls ---

  def rewrite_device_call(self: "HipifyAction", match: MatchResult) -> bool:
    call = match.device_call
    if call is None or call.callee_decl is None:
      return False
    decl = call.callee_decl
    if not (decl.has_attr(ATTR_DEVICE) or decl.has_attr(ATTR_GLOBAL)) or decl.has_attr(ATTR_HOST):
      return False

    entry = self.rules.lookup_device_function(decl.name)
    if entry is not None:
      self.find_and_replace(decl.name, call.name_location.file_offset, entry)
    return True
