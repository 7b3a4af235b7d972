"""
Frontend Callback Interface.

A frontend (the parser driving a conversion) reports what it sees through the
`HipifyCallbacks` methods, in this order:

1. `on_token` for every raw token of the main file, in file order.
2. Preprocessing events (`on_inclusion_directive`, `on_pragma`, `on_ifndef`)
   and structural matches (`on_match`) interleaved in file order.
3. `on_end_of_file` exactly once.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cuda_hipify.frontend.nodes import IfndefDirective, InclusionDirective, MatchResult, PragmaDirective
from cuda_hipify.frontend.tokens import Token


class HipifyCallbacks(ABC):
  """
  Receiver of frontend events for one file.
  """

  @abstractmethod
  def on_token(self, token: Token) -> None:
    pass

  @abstractmethod
  def on_inclusion_directive(self, directive: InclusionDirective) -> None:
    pass

  @abstractmethod
  def on_pragma(self, pragma: PragmaDirective) -> None:
    pass

  @abstractmethod
  def on_ifndef(self, directive: IfndefDirective) -> None:
    pass

  @abstractmethod
  def on_match(self, match: MatchResult) -> None:
    pass

  @abstractmethod
  def on_end_of_file(self, controlling_macro: Optional[str]) -> None:
    """
    Signals the end of the main file.

    Args:
        controlling_macro: Name of the include-guard macro wrapping the whole
            file, if the frontend detected one.
    """
