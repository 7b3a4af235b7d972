"""
Conversion Diagnostics.

Warnings raised while converting a file ("CUDA identifier is unsupported in
HIP.", "Unsupported CUDA header.") are kept as structured `Diagnostic`
records on the result and echoed through the logging console.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel

from cuda_hipify.frontend.nodes import LineIndex
from cuda_hipify.utils.console import log_error, log_warning

UNSUPPORTED_IDENTIFIER = "CUDA identifier is unsupported in {dialect}."
UNSUPPORTED_HEADER = "Unsupported CUDA header."


class Severity(str, Enum):
  WARNING = "warning"
  ERROR = "error"


class Diagnostic(BaseModel):
  """A message attached to a position of the input file."""

  severity: Severity = Severity.WARNING
  message: str
  offset: int
  line: int
  column: int

  def format(self, file_name: str = "<input>") -> str:
    return f"{file_name}:{self.line}:{self.column}: {self.severity.value}: {self.message}"


class DiagnosticsEngine:
  """
  Collects diagnostics for one file.
  """

  def __init__(self, text: str, file_name: str = "<input>"):
    self.file_name = file_name
    self._lines = LineIndex(text)
    self.diagnostics: List[Diagnostic] = []

  def report(self, offset: int, message: str, severity: Severity = Severity.WARNING) -> Diagnostic:
    """
    Records a diagnostic and logs it.

    Args:
        offset: File offset the message refers to.
        message: Human-readable text.
        severity: Warning or error.

    Returns:
        Diagnostic: The stored record.
    """
    line, column = self._lines.line_col(offset)
    diag = Diagnostic(severity=severity, message=message, offset=offset, line=line, column=column)
    self.diagnostics.append(diag)

    text = diag.format(self.file_name)
    if severity == Severity.ERROR:
      log_error(text)
    else:
      log_warning(text)
    return diag

  def __len__(self) -> int:
    return len(self.diagnostics)
