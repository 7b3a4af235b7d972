"""
Runtime Configuration Store.

`RuntimeConfig` holds every knob of a conversion. Values are resolved in
order: explicit arguments to `RuntimeConfig.load`, then the
`[tool.cuda_hipify]` table of the nearest `pyproject.toml`, then defaults.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

DEFAULT_EXTENSIONS = [".cu", ".cuh", ".cpp", ".h", ".hpp"]


class RuntimeConfig(BaseModel):
  """
  Configuration for one conversion run.
  """

  to_roc: bool = Field(False, description="Prefer ROC library names over HIP ones where a rule has both.")
  print_stats: bool = Field(False, description="Print a statistics summary after conversion.")
  string_prefix: str = Field("cu", description="Marker that starts a CUDA name inside string literals.")
  runtime_header: str = Field("hip/hip_runtime.h", description="Header injected when no runtime include exists.")
  launch_macro: str = Field("hipLaunchKernelGGL", description="Macro replacing `<<<...>>>` launches.")
  shared_macro: str = Field("HIP_DYNAMIC_SHARED", description="Macro replacing extern shared arrays.")
  extension_type_names: bool = Field(True, description="Print `__fp16` as `half` in shared array types.")
  rules_dir: Optional[Path] = Field(None, description="Directory of JSON rule tables overlaying the packaged ones.")
  extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS), description="Suffixes converted when walking directories.")

  @field_validator("string_prefix", "runtime_header", "launch_macro", "shared_macro")
  @classmethod
  def validate_not_empty(cls, v: str) -> str:
    """
    Rejects empty markers and macro names.

    Raises:
        ValueError: If the value is blank.
    """
    if not v.strip():
      raise ValueError("value must not be empty")
    return v.strip()

  @field_validator("extensions")
  @classmethod
  def normalize_extensions(cls, v: List[str]) -> List[str]:
    return [e if e.startswith(".") else f".{e}" for e in (x.strip().lower() for x in v) if e]

  @property
  def runtime_include(self) -> str:
    """Text inserted when the runtime header is missing."""
    return f"\n#include <{self.runtime_header}>\n"

  @classmethod
  def load(
    cls,
    to_roc: Optional[bool] = None,
    print_stats: Optional[bool] = None,
    rules_dir: Optional[Path] = None,
    search_path: Optional[Path] = None,
    **overrides: Any,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        to_roc (Optional[bool]): Override for ROC naming.
        print_stats (Optional[bool]): Override for statistics output.
        rules_dir (Optional[Path]): Override for the rule overlay directory.
        search_path (Optional[Path]): Directory to start searching for TOML config.
        **overrides: Any other field, taking precedence over the TOML value.

    Returns:
        RuntimeConfig: The fully resolved configuration object.
    """
    start_dir = search_path or Path.cwd()
    settings, toml_dir = _load_toml_settings(start_dir)

    if to_roc is not None:
      settings["to_roc"] = to_roc
    if print_stats is not None:
      settings["print_stats"] = print_stats

    if rules_dir is not None:
      settings["rules_dir"] = Path(rules_dir)
    elif "rules_dir" in settings:
      raw = Path(settings["rules_dir"])
      settings["rules_dir"] = (toml_dir / raw).resolve() if toml_dir and not raw.is_absolute() else raw

    settings.update({k: v for k, v in overrides.items() if v is not None})
    return cls(**settings)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches `start_path` and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The `[tool.cuda_hipify]` table and the
      directory it was found in. Unreadable files yield an empty table.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError):
        return {}, None
      return dict(data.get("tool", {}).get("cuda_hipify", {})), parent

  return {}, None
