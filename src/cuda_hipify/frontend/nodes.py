"""
Source Model and Syntax Nodes.

Defines the data structures exchanged between a frontend (parser/matcher) and
the rewriting core:

- `SourceLocation` / `SourceRange`: logical positions, aware of macro expansion.
- `CharRange`: a physical, half-open character span in the main file.
- Syntax nodes bound by structural matches (`KernelLaunchExpr`, `VarDecl`,
  `CallExpr`) and the `MatchResult` carrying them.
- Preprocessing events (`InclusionDirective`, `PragmaDirective`,
  `IfndefDirective`).

All nodes are read-only to the core.
"""

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, NamedTuple, Optional, Tuple

# Function/variable attributes recognised by the structural rewriter.
ATTR_DEVICE = "device"
ATTR_GLOBAL = "global"
ATTR_HOST = "host"
ATTR_SHARED = "shared"


class CharRange(NamedTuple):
  """Half-open `[begin, end)` span of characters in the main file."""

  begin: int
  end: int

  @property
  def length(self) -> int:
    return self.end - self.begin


@dataclass(frozen=True)
class SourceLocation:
  """
  A logical source position.

  For text written directly in the file, `file_offset` and `spelling_offset`
  coincide. For tokens produced by a macro expansion, `file_offset` is the
  position of the expansion in the file, `spelling_offset` is where the token
  is spelled (usually inside the macro definition), and the macro flags say
  whether the token comes from a macro body and sits at an edge of it.

  Attributes:
      file_offset (int): Position after mapping to the file (expansion site).
      spelling_offset (Optional[int]): Position of the spelled characters.
      in_macro_body (bool): True if the token was produced by a macro body.
      at_macro_start (bool): True if the token begins the macro expansion.
      at_macro_end (bool): True if the token ends the macro expansion.
  """

  file_offset: int
  spelling_offset: Optional[int] = None
  in_macro_body: bool = False
  at_macro_start: bool = False
  at_macro_end: bool = False

  @property
  def spelling(self) -> int:
    return self.file_offset if self.spelling_offset is None else self.spelling_offset

  @classmethod
  def at(cls, offset: int) -> "SourceLocation":
    """Location of text written directly in the file."""
    return cls(file_offset=offset)


@dataclass(frozen=True)
class SourceRange:
  """
  A logical range; `end` is exclusive (points just past the last character).
  """

  begin: SourceLocation
  end: SourceLocation

  @classmethod
  def of(cls, begin: int, end: int) -> "SourceRange":
    """Range over plain file text `[begin, end)`."""
    return cls(SourceLocation.at(begin), SourceLocation.at(end))


class LineIndex:
  """
  Maps character offsets to 1-based (line, column) pairs.
  """

  def __init__(self, text: str):
    self._starts: List[int] = [0]
    for i, ch in enumerate(text):
      if ch == "\n":
        self._starts.append(i + 1)

  def line_col(self, offset: int) -> Tuple[int, int]:
    line = bisect_right(self._starts, offset)
    return line, offset - self._starts[line - 1] + 1

  def line(self, offset: int) -> int:
    return bisect_right(self._starts, offset)


# --- Declarations & Expressions ---


@dataclass(frozen=True)
class FunctionDecl:
  """
  A resolved callee declaration.

  Attributes:
      name (str): Declared name (unqualified).
      attributes (FrozenSet[str]): Execution-space attributes (`device`, `global`, `host`).
      is_template_instantiation (bool): True for instantiations of a function template.
  """

  name: str
  attributes: FrozenSet[str] = frozenset()
  is_template_instantiation: bool = False

  def has_attr(self, attr: str) -> bool:
    return attr in self.attributes


@dataclass(frozen=True)
class Expr:
  """
  An expression reduced to its source range.

  `is_default_arg` marks an argument the compiler supplied because the source
  omitted it; such arguments have no range.
  """

  range: Optional[SourceRange] = None
  is_default_arg: bool = False

  @classmethod
  def default_arg(cls) -> "Expr":
    return cls(range=None, is_default_arg=True)


@dataclass(frozen=True)
class KernelLaunchExpr:
  """
  A `callee<<<grid, block[, stream[, shmem]]>>>(args...)` launch.

  Attributes:
      range (SourceRange): The whole launch expression.
      callee (Optional[Expr]): The callee expression before `<<<`.
      callee_decl (Optional[FunctionDecl]): The directly called kernel, if resolvable.
      config (Optional[List[Expr]]): Configuration arguments; omitted trailing
          arguments are present as default-argument expressions.
      args (List[Expr]): Ordinary call arguments.
  """

  range: SourceRange
  callee: Optional[Expr]
  callee_decl: Optional[FunctionDecl]
  config: Optional[List[Expr]]
  args: List[Expr] = field(default_factory=list)


@dataclass(frozen=True)
class QualType:
  """
  A (simplified) resolved type.

  Attributes:
      spelling (str): Type as printed, qualifiers included.
      is_builtin (bool): True for fundamental arithmetic types.
      is_incomplete_array (bool): True for `T[]`.
      element_type (Optional[QualType]): Element type of an array type.
  """

  spelling: str
  is_builtin: bool = False
  is_incomplete_array: bool = False
  element_type: Optional["QualType"] = None


@dataclass(frozen=True)
class VarDecl:
  """
  A variable declaration.

  Attributes:
      name (str): Variable name.
      outer_begin (SourceLocation): Start of the declaration, storage class included.
      type_end (SourceLocation): Location of the last character of the type as
          written (for `float x[]` this is the closing bracket).
      type (QualType): Declared type.
      has_external_linkage (bool): True for `extern` declarations.
      attributes (FrozenSet[str]): Memory-space attributes (`shared`).
  """

  name: str
  outer_begin: SourceLocation
  type_end: SourceLocation
  type: QualType
  has_external_linkage: bool = False
  attributes: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class CallExpr:
  """
  A call expression with its resolved direct callee.

  `callee_location` is where the callee's unqualified name is written; it
  defaults to the start of the call.
  """

  range: SourceRange
  callee_decl: Optional[FunctionDecl] = None
  callee_location: Optional[SourceLocation] = None

  @property
  def name_location(self) -> SourceLocation:
    return self.callee_location if self.callee_location is not None else self.range.begin


@dataclass(frozen=True)
class MatchResult:
  """
  Nodes bound by one structural match event.

  A frontend binds at most one node per event; the core still resolves them in
  a fixed priority order.
  """

  kernel_launch: Optional[KernelLaunchExpr] = None
  shared_var: Optional[VarDecl] = None
  device_call: Optional[CallExpr] = None

  @property
  def offset(self) -> int:
    """File position of the bound node, used to order events."""
    if self.kernel_launch is not None:
      return self.kernel_launch.range.begin.file_offset
    if self.shared_var is not None:
      return self.shared_var.outer_begin.file_offset
    if self.device_call is not None:
      return self.device_call.range.begin.file_offset
    return 0


# --- Preprocessing Events ---


class PragmaIntroducer(str, Enum):
  """How a pragma was introduced."""

  HASH = "#pragma"
  OPERATOR = "_Pragma"
  MICROSOFT = "__pragma"


@dataclass(frozen=True)
class InclusionDirective:
  """
  An `#include` directive.

  Attributes:
      hash_location (SourceLocation): Location of the `#`.
      file_name (str): Name between the delimiters.
      is_angled (bool): True for `<...>`, False for `"..."`.
      filename_range (SourceRange): Span of the name including its delimiters.
      in_main_file (bool): False when the directive belongs to an included file
          or was produced by macro expansion.
  """

  hash_location: SourceLocation
  file_name: str
  is_angled: bool
  filename_range: SourceRange
  in_main_file: bool = True

  @property
  def offset(self) -> int:
    return self.hash_location.file_offset


@dataclass(frozen=True)
class PragmaDirective:
  """
  A pragma; `text` is the raw text after the `pragma` keyword, starting at
  `text_location`.
  """

  location: SourceLocation
  introducer: PragmaIntroducer
  text: str
  text_location: SourceLocation
  in_main_file: bool = True

  @property
  def offset(self) -> int:
    return self.location.file_offset


@dataclass(frozen=True)
class IfndefDirective:
  """An `#ifndef NAME` directive; `macro_name_range` spans `NAME`."""

  location: SourceLocation
  macro_name: str
  macro_name_range: SourceRange
  in_main_file: bool = True

  @property
  def offset(self) -> int:
    return self.location.file_offset
