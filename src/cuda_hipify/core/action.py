"""
Per-File Conversion Action.

`HipifyAction` is the core's implementation of `HipifyCallbacks`. One
instance converts one file: it is composed of the rewriter mixins and owns
all per-file state (patch ledger, inserted header categories, guard state).

Events must arrive in the documented order: all tokens first, then
preprocessing events and matches, then end of file. Out-of-order delivery is
a frontend bug and raises `CallbackOrderError`.
"""

from enum import IntEnum
from typing import Optional

from cuda_hipify.config import RuntimeConfig
from cuda_hipify.core.callbacks import HipifyCallbacks
from cuda_hipify.core.rewriter import GuardMixin, IncludeMixin, LexicalMixin, StructuralMixin
from cuda_hipify.core.rewriter.base import BaseRewriter
from cuda_hipify.core.rewriter.guards import MacroGuardState
from cuda_hipify.core.rewriter.includes import InsertedHeaders
from cuda_hipify.core.rewriter.structural import MatchKind
from cuda_hipify.core.statistics import Statistics
from cuda_hipify.core.tracer import TraceLogger
from cuda_hipify.frontend.nodes import IfndefDirective, InclusionDirective, MatchResult, PragmaDirective
from cuda_hipify.frontend.tokens import Token
from cuda_hipify.rules import RuleTables


class CallbackOrderError(RuntimeError):
  """Raised when a frontend delivers events out of order."""


class Phase(IntEnum):
  LEXICAL = 1
  STRUCTURAL = 2
  FINISHED = 3


class HipifyAction(
  GuardMixin,
  IncludeMixin,
  StructuralMixin,
  LexicalMixin,
  BaseRewriter,
  HipifyCallbacks,
):
  """
  Converts one CUDA file into HIP by collecting patches from frontend events.
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
    super().__init__(text, rules, config, statistics, tracer, file_name)
    self.guard_state = MacroGuardState()
    self.inserted_headers = InsertedHeaders()
    self.phase = Phase.LEXICAL
    self.tracer.start_phase("Lexical", file_name)

  def _enter(self, phase: Phase) -> None:
    if phase < self.phase or self.phase == Phase.FINISHED:
      raise CallbackOrderError(f"{phase.name.lower()} event received during {self.phase.name.lower()} phase")
    if phase != self.phase:
      self.tracer.end_phase()
      if phase == Phase.STRUCTURAL:
        self.tracer.start_phase("Structural", self.file_name)
      self.phase = phase

  # --- HipifyCallbacks ---

  def on_token(self, token: Token) -> None:
    self._enter(Phase.LEXICAL)
    self.rewrite_token(token)

  def on_inclusion_directive(self, directive: InclusionDirective) -> None:
    self._enter(Phase.STRUCTURAL)
    self.rewrite_inclusion(directive)

  def on_pragma(self, pragma: PragmaDirective) -> None:
    self._enter(Phase.STRUCTURAL)
    self.track_pragma(pragma)

  def on_ifndef(self, directive: IfndefDirective) -> None:
    self._enter(Phase.STRUCTURAL)
    self.track_ifndef(directive)

  def on_match(self, match: MatchResult) -> Optional[MatchKind]:
    self._enter(Phase.STRUCTURAL)
    return self.run_match(match)

  def on_end_of_file(self, controlling_macro: Optional[str]) -> None:
    self._enter(Phase.FINISHED)
    self.tracer.start_phase("Finalize", self.file_name)
    self.finalize(controlling_macro)
    self.tracer.end_phase()

  # --- Results ---

  def apply(self) -> str:
    """Returns the converted text. Valid once end of file was signalled."""
    if self.phase != Phase.FINISHED:
      raise CallbackOrderError("end of file was not signalled")
    return self.ledger.apply()
