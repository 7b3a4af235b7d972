"""
Conversion Trace Logger.

Records the step-by-step execution of a conversion:
1. Lifecycle phases (Lexical, Structural, Finalize).
2. Rule matches (`cudaMalloc` -> `hipMalloc`).
3. Patches proposed to the ledger, accepted or rejected.

The output is a list of event dictionaries suitable for JSON serialization.
A `TraceLogger` is created per conversion and passed to the action.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  RULE_MATCH = "rule_match"
  PATCH = "patch"
  HEADER_DECISION = "header_decision"
  WARNING = "warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Records conversion events for inspection (`--json-trace`).
  """

  def __init__(self, enabled: bool = True):
    self.enabled = enabled
    self._events: List[TraceEvent] = []
    self._active_phases: List[str] = []

  def start_phase(self, name: str, description: str = "") -> str:
    """Starts a nested phase. Returns Phase ID."""
    phase_id = str(uuid.uuid4())
    parent = self._active_phases[-1] if self._active_phases else None
    if self.enabled:
      self._events.append(
        TraceEvent(
          id=phase_id,
          type=TraceEventType.PHASE_START,
          timestamp=time.time(),
          description=name,
          parent_id=parent,
          metadata={"detail": description},
        )
      )
    self._active_phases.append(phase_id)
    return phase_id

  def end_phase(self) -> None:
    """Ends the current active phase."""
    if not self._active_phases:
      return
    phase_id = self._active_phases.pop()
    if self.enabled:
      self._events.append(
        TraceEvent(
          id=str(uuid.uuid4()),
          type=TraceEventType.PHASE_END,
          timestamp=time.time(),
          description="End Phase",
          parent_id=phase_id,
        )
      )

  def log_match(self, source_name: str, target_name: str, kind: str) -> None:
    self._log_simple(
      TraceEventType.RULE_MATCH,
      f"Mapped {source_name} -> {target_name}",
      {"source": source_name, "target": target_name, "kind": kind},
    )

  def log_patch(self, offset: int, length: int, text: str, accepted: bool) -> None:
    """Logs a patch proposed to the ledger."""
    self._log_simple(
      TraceEventType.PATCH,
      f"{'Patched' if accepted else 'Rejected'} [{offset}, {offset + length})",
      {"offset": offset, "length": length, "text": text, "accepted": accepted},
    )

  def log_header(self, header: str, decision: str) -> None:
    self._log_simple(TraceEventType.HEADER_DECISION, f"{decision} {header}", {"header": header, "decision": decision})

  def log_warning(self, message: str) -> None:
    self._log_simple(TraceEventType.WARNING, message, {"level": "warning"})

  def _log_simple(self, evt_type: TraceEventType, desc: str, meta: Dict[str, Any]) -> None:
    if not self.enabled:
      return
    parent = self._active_phases[-1] if self._active_phases else None
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()), type=evt_type, timestamp=time.time(), description=desc, parent_id=parent, metadata=meta
      )
    )

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]
