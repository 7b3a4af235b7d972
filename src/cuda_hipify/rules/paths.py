"""
Path Resolution Utilities for Rule Tables.

Handles locating the packaged `data/` directory holding the JSON rule files.
"""

from importlib.resources import files
from pathlib import Path


def resolve_rules_dir() -> Path:
  """
  Locates the directory containing the packaged JSON rule tables.

  Prioritizes the local file system (relative to this file) so tests and
  editable installs find the source of truth. Falls back to package resources
  for installed distributions.

  Returns:
      Path: The absolute path to the `data` directory.
  """
  local_path = Path(__file__).parent / "data"
  if (local_path / "cuda_renames.json").exists():
    return local_path

  try:
    return Path(str(files("cuda_hipify.rules").joinpath("data")))
  except ModuleNotFoundError:
    return local_path
