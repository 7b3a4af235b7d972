"""
Rule Tables.

Immutable, exact-match lookup of CUDA names. Three independent tables share
the `RuleEntry` shape:

- renames: identifiers (and names embedded in string literals),
- includes: header filenames,
- device functions: callees of `__device__` / `__global__` functions.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from cuda_hipify.rules.loader import RuleTableLoader
from cuda_hipify.rules.schema import RuleEntry, TableKind


class RuleTables:
  """
  Read-only container of the three lookup tables.

  Loaded once per process and shared by every file conversion.
  """

  def __init__(
    self,
    renames: Mapping[str, RuleEntry],
    includes: Mapping[str, RuleEntry],
    device_functions: Mapping[str, RuleEntry],
  ):
    self._renames = MappingProxyType(dict(renames))
    self._includes = MappingProxyType(dict(includes))
    self._device_functions = MappingProxyType(dict(device_functions))

  @classmethod
  def load(cls, overlay_dir: Optional[Path] = None) -> "RuleTables":
    """
    Builds tables from the packaged JSON files plus an optional overlay.

    Args:
        overlay_dir: Directory of additional rule files.

    Returns:
        RuleTables: The populated tables.

    Raises:
        RuleTableError: If a rule file is malformed.
    """
    data = RuleTableLoader(overlay_dir).load()
    return cls(
      renames=data[TableKind.RENAMES],
      includes=data[TableKind.INCLUDES],
      device_functions=data[TableKind.DEVICE_FUNCTIONS],
    )

  @classmethod
  def from_entries(
    cls,
    renames: Iterable[RuleEntry] = (),
    includes: Iterable[RuleEntry] = (),
    device_functions: Iterable[RuleEntry] = (),
  ) -> "RuleTables":
    """
    Builds tables in memory, keyed by each entry's `source_name`.
    """
    return cls(
      renames=_index(renames),
      includes=_index(includes),
      device_functions=_index(device_functions),
    )

  def lookup(self, name: str) -> Optional[RuleEntry]:
    """Finds an identifier in the renames table."""
    return self._renames.get(name)

  def lookup_include(self, filename: str) -> Optional[RuleEntry]:
    """Finds a header filename (as written between the delimiters)."""
    return self._includes.get(filename)

  def lookup_device_function(self, name: str) -> Optional[RuleEntry]:
    """Finds the declared name of a device-side callee."""
    return self._device_functions.get(name)

  @property
  def device_function_names(self) -> frozenset:
    """Names of every known device function, for frontends that resolve callees."""
    return frozenset(self._device_functions)

  def __len__(self) -> int:
    return len(self._renames) + len(self._includes) + len(self._device_functions)


def _index(entries: Iterable[RuleEntry]) -> Dict[str, RuleEntry]:
  return {e.source_name: e for e in entries}
