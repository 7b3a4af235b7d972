"""
Base Rewriter State.

`BaseRewriter` owns the per-file state shared by the rewriter mixins:

- the original text and its `PatchLedger`,
- the `Statistics` accumulator of the run,
- the `DiagnosticsEngine` collecting warnings,
- the `TraceLogger`.

It also implements the rule application step common to identifiers, string
literals and device-function calls (`find_and_replace`).
"""

from typing import Optional

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.core.diagnostics import UNSUPPORTED_IDENTIFIER, DiagnosticsEngine
from cuda_hipify.core.ledger import PatchLedger, Replacement
from cuda_hipify.core.spans import read_range
from cuda_hipify.core.statistics import Statistics
from cuda_hipify.core.tracer import TraceLogger
from cuda_hipify.enums import ConvType
from cuda_hipify.frontend.nodes import SourceRange
from cuda_hipify.rules import RuleEntry, RuleTables


class BaseRewriter:
  """
  Per-file state and patch helpers used by every rewriter mixin.
  """

  def __init__(
    self,
    text: str,
    rules: RuleTables,
    config: Optional[RuntimeConfig] = None,
    statistics: Optional[Statistics] = None,
    tracer: Optional[TraceLogger] = None,
    file_name: str = "<input>",
  ):
    """
    Args:
        text: Original content of the file being converted.
        rules: Rule tables shared by every file of the run.
        config: Conversion settings.
        statistics: Accumulator for this file; a fresh one if omitted.
        tracer: Trace recorder; a disabled one if omitted.
        file_name: Name used in diagnostics.
    """
    self.text = text
    self.rules = rules
    self.config = config or RuntimeConfig()
    self.statistics = statistics if statistics is not None else Statistics()
    self.tracer = tracer or TraceLogger(enabled=False)
    self.file_name = file_name
    self.ledger = PatchLedger(text, self.statistics)
    self.diagnostics = DiagnosticsEngine(text, file_name)

  def insert_replacement(self, offset: int, length: int, text: str, absorb: bool = False) -> bool:
    """
    Proposes a patch to the ledger.

    Args:
        offset: Start of the replaced span in the original text.
        length: Characters removed; 0 for an insertion.
        text: Replacement text.
        absorb: Fold accepted patches inside the span into this one.

    Returns:
        bool: True if the ledger accepted it.
    """
    accepted = self.ledger.add(Replacement(offset, length, text), absorb=absorb)
    self.tracer.log_patch(offset, length, text, accepted)
    return accepted

  def read_source(self, source_range: SourceRange) -> str:
    """Text of a logical range, read with the patches already accepted inside it."""
    span = read_range(source_range)
    return self.ledger.render(span.begin, span.end)

  def find_and_replace(self, name: str, offset: int, entry: RuleEntry, counted_as: Optional[ConvType] = None) -> bool:
    """
    Applies a matched rule to the `name` written at `offset`.

    The match is always counted. Unsupported entries produce a warning and
    no patch; supported ones replace `name` with the active target name.

    Args:
        name: The CUDA name as written.
        offset: Position of `name` in the file.
        entry: The matched rule.
        counted_as: Statistics bucket overriding the entry's conversion kind.

    Returns:
        bool: True if a patch was accepted.
    """
    to_roc = self.config.to_roc
    unsupported = entry.is_unsupported(to_roc)
    self.statistics.increment(
      name,
      counted_as or entry.conv_type,
      entry.api_type,
      unsupported=unsupported,
      deprecated=entry.is_deprecated,
    )

    if unsupported:
      message = UNSUPPORTED_IDENTIFIER.format(dialect=entry.dialect(to_roc))
      self.diagnostics.report(offset, message)
      self.tracer.log_warning(f"{name}: {message}")
      return False

    target = entry.target_name(to_roc)
    self.tracer.log_match(name, target, entry.conv_type.value)
    return self.insert_replacement(offset, len(name), target)
