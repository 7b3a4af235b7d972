"""
Patch Ledger.

Collects the `Replacement` patches proposed by the rewriters for one file and
applies them at the end. Patches address the ORIGINAL text, so applying them
never shifts another patch's offsets.

Acceptance rules:

- A patch must lie within the file.
- A patch overlapping an accepted one is rejected (logged, kept in
  `rejected`, never applied). Zero-length insertions at the edge of a
  replacement do not overlap it; an insertion strictly inside one does.
- Re-adding an identical patch is a no-op.
- Several insertions at one offset are applied in the order they were added,
  before any replacement starting at the same offset.

A rewrite that rebuilds a whole construct from its pieces (a kernel launch)
reads the pieces through `render`, which includes the patches already
accepted inside them, and adds its patch with `absorb=True`: accepted
patches lying wholly inside the new span are then folded into it instead of
conflicting with it.
"""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from cuda_hipify.core.statistics import Statistics
from cuda_hipify.frontend.nodes import LineIndex
from cuda_hipify.utils.console import log_warning


@dataclass(frozen=True)
class Replacement:
  """
  Replace `length` characters at `offset` of the original text with `text`.

  A zero `length` is a pure insertion.
  """

  offset: int
  length: int
  text: str

  @property
  def end(self) -> int:
    return self.offset + self.length

  @property
  def is_insertion(self) -> bool:
    return self.length == 0


class PatchLedger:
  """
  Ordered, conflict-checked collection of replacements for one file.
  """

  def __init__(self, text: str, statistics: Optional[Statistics] = None):
    """
    Args:
        text: The original file content patches refer to.
        statistics: Accumulator notified of every accepted patch.
    """
    self.text = text
    self.statistics = statistics if statistics is not None else Statistics()
    self._lines = LineIndex(text)
    # Parallel lists kept sorted by (offset, replacement-after-insertion, seq).
    self._keys: List[Tuple[int, int, int]] = []
    self._starts: List[int] = []
    self._items: List[Replacement] = []
    self._seen: Set[Replacement] = set()
    self._seq = 0
    self.rejected: List[Replacement] = []

  @property
  def replacements(self) -> List[Replacement]:
    """Accepted patches in application order."""
    return list(self._items)

  def __len__(self) -> int:
    return len(self._items)

  def add(self, replacement: Replacement, absorb: bool = False) -> bool:
    """
    Records a patch.

    Args:
        replacement: The patch to add.
        absorb: Fold accepted patches lying wholly inside the new span into
            it. Their text must already be part of `replacement.text`
            (see `render`). Absorbed patches stay counted in the statistics.

    Returns:
        bool: True if the patch is (or already was) part of the ledger.
    """
    if replacement in self._seen:
      return True

    if replacement.offset < 0 or replacement.length < 0 or replacement.end > len(self.text):
      self._reject(replacement, "out of bounds")
      return False

    absorbed = self._contained(replacement) if absorb and not replacement.is_insertion else []
    clash = self._find_conflict(replacement, ignore=absorbed)
    if clash is not None:
      self._reject(replacement, f"overlaps [{clash.offset}, {clash.end})")
      return False

    for idx in reversed(absorbed):
      self._seen.discard(self._items[idx])
      del self._keys[idx], self._starts[idx], self._items[idx]

    key = (replacement.offset, 0 if replacement.is_insertion else 1, self._seq)
    self._seq += 1
    idx = bisect_right(self._keys, key)
    self._keys.insert(idx, key)
    self._starts.insert(idx, replacement.offset)
    self._items.insert(idx, replacement)
    self._seen.add(replacement)

    self.statistics.line_touched(self._lines.line(replacement.offset))
    self.statistics.patch_applied(replacement.length)
    return True

  def apply(self) -> str:
    """
    Produces the patched text.

    Returns:
        str: The original text with every accepted patch applied.
    """
    out: List[str] = []
    cursor = 0
    for rep in self._items:
      out.append(self.text[cursor : rep.offset])
      out.append(rep.text)
      cursor = max(cursor, rep.end)
    out.append(self.text[cursor:])
    return "".join(out)

  def render(self, begin: int, end: int) -> str:
    """
    Text of the original span `[begin, end)` with the accepted patches lying
    wholly inside it applied.

    Insertions at either edge of the span are left out.
    """
    out: List[str] = []
    cursor = begin
    for rep in self._items[bisect_left(self._starts, begin) :]:
      if rep.offset >= end:
        break
      if rep.end > end or (rep.is_insertion and rep.offset == begin):
        continue
      out.append(self.text[cursor : rep.offset])
      out.append(rep.text)
      cursor = max(cursor, rep.end)
    out.append(self.text[cursor:end])
    return "".join(out)

  def _contained(self, rep: Replacement) -> List[int]:
    """Indices of accepted patches that `rep` can absorb."""
    a, b = rep.offset, rep.end
    return [
      idx
      for idx in range(bisect_left(self._starts, a), bisect_left(self._starts, b))
      if self._items[idx].end <= b and not (self._items[idx].is_insertion and self._items[idx].offset == a)
    ]

  def _find_conflict(self, rep: Replacement, ignore: Sequence[int] = ()) -> Optional[Replacement]:
    a, b = rep.offset, rep.end
    lo = bisect_left(self._starts, a)
    skipped = set(ignore)

    if not rep.is_insertion:
      for idx in range(lo, bisect_left(self._starts, b)):
        other = self._items[idx]
        # Accepted patches starting inside [a, b): only an insertion exactly at `a` may stay.
        if idx not in skipped and (not other.is_insertion or other.offset > a):
          return other

    # At most one accepted replacement starting before `a` can reach past it.
    j = lo - 1
    while j >= 0 and self._items[j].is_insertion:
      j -= 1
    if j >= 0 and self._items[j].end > a:
      return self._items[j]
    return None

  def _reject(self, rep: Replacement, reason: str) -> None:
    self.rejected.append(rep)
    line, col = self._lines.line_col(min(max(rep.offset, 0), len(self.text)))
    log_warning(f"Patch rejected at {line}:{col} ({reason}): {rep.text!r}")
