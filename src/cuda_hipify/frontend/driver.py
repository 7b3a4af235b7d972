"""
Frontend Driver.

Parses one file with tree-sitter and feeds it through a `HipifyCallbacks`
receiver:

1. Every raw token, in file order.
2. Preprocessing events and structural matches, merged by file offset.
3. End of file, with the detected controlling macro.

The driver only sequences calls; all rewrite decisions belong to the
receiver.
"""

from typing import FrozenSet, List, Union

from cuda_hipify.core.callbacks import HipifyCallbacks
from cuda_hipify.frontend.matcher import StructuralMatcher
from cuda_hipify.frontend.nodes import IfndefDirective, InclusionDirective, LineIndex, MatchResult, PragmaDirective
from cuda_hipify.frontend.preprocessor import DirectiveScanner
from cuda_hipify.frontend.syntax import SourceTree
from cuda_hipify.frontend.tokens import RawLexer

FrontendEvent = Union[InclusionDirective, PragmaDirective, IfndefDirective, MatchResult]


def run_frontend(text: str, callbacks: HipifyCallbacks, device_functions: FrozenSet[str] = frozenset()) -> None:
  """
  Drives `callbacks` over `text`.

  Args:
      text: Full content of the main file.
      callbacks: Receiver of the events.
      device_functions: Names the matcher treats as `__device__` functions
          even without a declaration in the file.
  """
  tree = SourceTree(text)
  for token in RawLexer().tokens(tree, LineIndex(text)):
    callbacks.on_token(token)

  scan = DirectiveScanner(tree).scan()
  matches = StructuralMatcher(tree, device_functions).matches()

  events: List[FrontendEvent] = [*scan.events, *matches]
  events.sort(key=lambda e: e.offset)
  for event in events:
    if isinstance(event, InclusionDirective):
      callbacks.on_inclusion_directive(event)
    elif isinstance(event, PragmaDirective):
      callbacks.on_pragma(event)
    elif isinstance(event, IfndefDirective):
      callbacks.on_ifndef(event)
    else:
      callbacks.on_match(event)

  callbacks.on_end_of_file(scan.controlling_macro)
