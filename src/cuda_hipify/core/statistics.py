"""
Conversion Statistics.

`Statistics` is an explicit accumulator: every file conversion owns one and
callers merge per-file results into their own running total with `merge()`.
There are no process-wide counters.
"""

from typing import Dict

from pydantic import BaseModel, Field, PrivateAttr

from cuda_hipify.enums import ApiType, ConvType


class Statistics(BaseModel):
  """
  Occurrence counters and change volume for one or more conversions.
  """

  name_counts: Dict[str, int] = Field(default_factory=dict, description="Occurrences per CUDA name.")
  conv_counts: Dict[ConvType, int] = Field(default_factory=dict, description="Occurrences per conversion kind.")
  api_counts: Dict[ApiType, int] = Field(default_factory=dict, description="Occurrences per API family.")
  unsupported_counts: Dict[str, int] = Field(default_factory=dict, description="Unsupported names encountered.")
  deprecated_counts: Dict[str, int] = Field(default_factory=dict, description="Deprecated names encountered.")
  replacements: int = Field(0, description="Accepted patches.")
  lines_touched: int = Field(0, description="Distinct lines carrying at least one patch.")
  bytes_changed: int = Field(0, description="Total characters removed by patches.")
  files: int = Field(0, description="Files processed.")
  total_lines: int = Field(0, description="Lines of input processed.")
  total_bytes: int = Field(0, description="Characters of input processed.")

  _touched: set = PrivateAttr(default_factory=set)

  def record_file(self, text: str) -> None:
    """Registers the input of a conversion."""
    self.files += 1
    self.total_bytes += len(text)
    self.total_lines += text.count("\n") + (0 if text.endswith("\n") or not text else 1)

  def increment(
    self,
    name: str,
    conv_type: ConvType,
    api_type: ApiType,
    unsupported: bool = False,
    deprecated: bool = False,
  ) -> None:
    """
    Counts one occurrence of a matched rule.

    Args:
        name: The CUDA name (or a synthetic name for structural rewrites).
        conv_type: Conversion kind bucket.
        api_type: API family bucket.
        unsupported: Also count the name as unsupported.
        deprecated: Also count the name as deprecated.
    """
    _bump(self.name_counts, name)
    _bump(self.conv_counts, conv_type)
    _bump(self.api_counts, api_type)
    if unsupported:
      _bump(self.unsupported_counts, name)
    if deprecated:
      _bump(self.deprecated_counts, name)

  def line_touched(self, line: int) -> None:
    if line not in self._touched:
      self._touched.add(line)
      self.lines_touched += 1

  def patch_applied(self, removed: int) -> None:
    self.replacements += 1
    self.bytes_changed += removed

  @property
  def total_matches(self) -> int:
    return sum(self.name_counts.values())

  @property
  def total_unsupported(self) -> int:
    return sum(self.unsupported_counts.values())

  def merge(self, other: "Statistics") -> "Statistics":
    """
    Adds another accumulator into this one.

    Args:
        other: Per-file statistics to fold in.

    Returns:
        Statistics: self, for chaining.
    """
    for target, source in (
      (self.name_counts, other.name_counts),
      (self.conv_counts, other.conv_counts),
      (self.api_counts, other.api_counts),
      (self.unsupported_counts, other.unsupported_counts),
      (self.deprecated_counts, other.deprecated_counts),
    ):
      for key, count in source.items():
        _bump(target, key, count)

    self.replacements += other.replacements
    self.lines_touched += other.lines_touched
    self.bytes_changed += other.bytes_changed
    self.files += other.files
    self.total_lines += other.total_lines
    self.total_bytes += other.total_bytes
    return self


def _bump(counter: dict, key, amount: int = 1) -> None:
  counter[key] = counter.get(key, 0) + amount
