"""
File Loading Logic for Rule Tables.

This module handles discovery and deserialization of the JSON rule files.
Packaged tables are loaded first; an optional overlay directory (configured via
`RuntimeConfig.rules_dir`) is loaded afterwards so user entries replace
packaged ones with the same CUDA name.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from cuda_hipify.rules.paths import resolve_rules_dir
from cuda_hipify.rules.schema import RuleEntry, RuleTableFile, TableKind

logger = logging.getLogger(__name__)

TableData = Dict[TableKind, Dict[str, RuleEntry]]


class RuleTableError(Exception):
  """Raised when a rule file cannot be read or fails schema validation."""

  def __init__(self, path: Path, reason: str):
    super().__init__(f"Invalid rule table {path.name}: {reason}")
    self.path = path
    self.reason = reason


class RuleTableLoader:
  """
  Handles the I/O operations for populating `RuleTables`.
  """

  def __init__(self, overlay_dir: Optional[Path] = None):
    """
    Initialize the loader.

    Args:
        overlay_dir: Optional directory of extra JSON rule files.
    """
    self.overlay_dir = overlay_dir

  def load(self) -> TableData:
    """
    Reads packaged tables, then the overlay directory.

    Returns:
        TableData: Entries grouped by table kind.

    Raises:
        RuleTableError: If any file is malformed or the overlay is missing.
    """
    data: TableData = {kind: {} for kind in TableKind}
    self._load_dir(resolve_rules_dir(), data)

    if self.overlay_dir is not None:
      if not self.overlay_dir.is_dir():
        raise RuleTableError(self.overlay_dir, "overlay path is not a directory")
      self._load_dir(self.overlay_dir, data)

    return data

  def _load_dir(self, directory: Path, data: TableData) -> None:
    if not directory.exists():
      logger.debug("Rule directory %s does not exist, skipping", directory)
      return

    for fpath in sorted(directory.glob("*.json")):
      kind, entries = self.read_file(fpath)
      data[kind].update(entries)
      logger.debug("Loaded %d %s entries from %s", len(entries), kind.value, fpath.name)

  @staticmethod
  def read_file(fpath: Path) -> Tuple[TableKind, Dict[str, RuleEntry]]:
    """
    Deserializes and validates a single rule file.

    Args:
        fpath: Path to the JSON file.

    Returns:
        The table kind and its validated entries.

    Raises:
        RuleTableError: On I/O, JSON or schema errors.
    """
    try:
      with open(fpath, "r", encoding="utf-8") as f:
        content = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
      raise RuleTableError(fpath, str(e)) from e

    try:
      table = RuleTableFile.model_validate(content)
      return table.table, table.to_entries()
    except ValidationError as e:
      raise RuleTableError(fpath, str(e)) from e
