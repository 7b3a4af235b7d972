"""
Pydantic Schemas for the Rule Tables.

This module defines the data structure of the JSON rule files
(`cuda_renames.json`, `cuda_includes.json`, `cuda_device_functions.json`).

Each file maps CUDA names to a `RuleEntry` body::

    {
      "__table__": "renames",
      "entries": {
        "cudaMalloc": {"hip": "hipMalloc", "api": "runtime", "conv": "memory"}
      }
    }
"""

from enum import Enum
from typing import Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from cuda_hipify.enums import ApiType, ConvType, SupportDegree


class TableKind(str, Enum):
  """The three independent lookup tables."""

  RENAMES = "renames"
  INCLUDES = "includes"
  DEVICE_FUNCTIONS = "device_functions"


class RuleEntry(BaseModel):
  """
  One row of a rule table: a CUDA name and its HIP/ROC equivalents.

  Entries are immutable and hashable so they can key statistics counters.
  """

  model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

  source_name: str = Field(..., description="The CUDA identifier or header filename.")
  hip_name: str = Field("", alias="hip", description="Replacement in the HIP dialect.")
  roc_name: str = Field("", alias="roc", description="Replacement in the ROC dialect, if it differs.")
  api_type: ApiType = Field(ApiType.RUNTIME, alias="api", description="API family of the entry.")
  conv_type: ConvType = Field(ConvType.TYPE, alias="conv", description="Kind of conversion performed.")
  support: SupportDegree = Field(SupportDegree.FULL, description="Support degree in the target dialect.")

  def uses_roc(self, to_roc: bool) -> bool:
    """
    Whether the ROC variant applies to this entry for the current run.

    Only entries that define a ROC name switch variant.
    """
    return to_roc and bool(self.roc_name)

  def target_name(self, to_roc: bool) -> str:
    """
    Returns the active replacement name.

    Args:
        to_roc (bool): Global translation mode; True selects ROC names.

    Returns:
        str: The replacement text, possibly empty for headers with no counterpart.
    """
    return self.roc_name if self.uses_roc(to_roc) else self.hip_name

  def dialect(self, to_roc: bool) -> str:
    """Name of the output dialect used in diagnostics ("HIP" or "ROC")."""
    return "ROC" if self.uses_roc(to_roc) else "HIP"

  def is_unsupported(self, to_roc: bool) -> bool:
    """
    Checks whether this entry must not produce a patch in the current mode.

    Args:
        to_roc (bool): Global translation mode.

    Returns:
        bool: True if the entry is unsupported for the active dialect.
    """
    if self.support == SupportDegree.UNSUPPORTED:
      return True
    if self.support == SupportDegree.HIP_UNSUPPORTED:
      return not self.uses_roc(to_roc)
    if self.support == SupportDegree.ROC_UNSUPPORTED:
      return self.uses_roc(to_roc)
    return False

  @property
  def is_deprecated(self) -> bool:
    return self.support == SupportDegree.DEPRECATED


class RuleTableFile(BaseModel):
  """
  Top-level layout of a rule JSON file.
  """

  model_config = ConfigDict(populate_by_name=True)

  table: TableKind = Field(..., alias="__table__", description="Which lookup table the file feeds.")
  entries: Dict[str, Dict[str, Any]] = Field(default_factory=dict, description="Map of CUDA name -> entry body.")

  def to_entries(self) -> Dict[str, RuleEntry]:
    """
    Materialises the entry bodies into validated `RuleEntry` objects.

    Returns:
        Dict[str, RuleEntry]: Mapping keyed by CUDA name.
    """
    return {name: RuleEntry.model_validate({"source_name": name, **body}) for name, body in self.entries.items()}
