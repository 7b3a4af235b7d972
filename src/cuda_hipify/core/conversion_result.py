"""
Data structures representing the output of the conversion pipeline.

This module defines the `ConversionResult` Pydantic model, which encapsulates
the converted code, the accepted patches, diagnostics, statistics and the
execution trace.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from cuda_hipify.core.diagnostics import Diagnostic
from cuda_hipify.core.ledger import Replacement
from cuda_hipify.core.statistics import Statistics


class ConversionResult(BaseModel):
  """
  Container for the results of converting one file.
  """

  code: str = Field(default="", description="The converted source code.")
  file_name: str = Field(default="<input>", description="Name of the converted file.")
  replacements: List[Replacement] = Field(default_factory=list, description="Accepted patches, in application order.")
  rejected: List[Replacement] = Field(default_factory=list, description="Patches refused by the ledger.")
  diagnostics: List[Diagnostic] = Field(default_factory=list, description="Warnings about unsupported constructs.")
  statistics: Statistics = Field(default_factory=Statistics, description="Counters for this file.")
  errors: List[str] = Field(default_factory=list, description="List of error messages encountered.")
  success: bool = Field(
    default=True,
    description="True if the pipeline completed without fatal crashes.",
  )
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_errors(self) -> bool:
    """
    Check if the result contains any error messages.

    Returns:
        True if one or more errors are present.
    """
    return len(self.errors) > 0

  @property
  def changed(self) -> bool:
    return bool(self.replacements)
