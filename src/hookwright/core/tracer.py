"""
Call Trace Recorder.

Records the lifecycle of intercepted calls. Every event carries the
member name and the chronicle tag of the decoration that produced it, so the
calls belonging to one `decorate` invocation can be pulled out of a shared
trace with :meth:`CallTracer.for_chronicle`.

The output is a structured list of event dictionaries suitable for JSON serialization.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  CALL_START = "call_start"
  CALL_SUCCESS = "call_success"
  CALL_ERROR = "call_error"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  method: Optional[str]
  chronicle: Any = None
  call_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class CallTracer:
  """
  Collects trace events emitted by interception wrappers.
  Injected into `decorate`, or enabled globally via ``EngineSettings.trace_calls``.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []

  def start_call(self, method: Optional[str], chronicle: Any, params: Any) -> str:
    """Records the start of a call. Returns the call ID that links its settlement event."""
    call_id = str(uuid.uuid4())
    self._record(TraceEventType.CALL_START, method, chronicle, call_id, {"params": repr(params)})
    return call_id

  def end_call(self, call_id: str, method: Optional[str], chronicle: Any, result: Any) -> None:
    """Records a successful settlement."""
    self._record(TraceEventType.CALL_SUCCESS, method, chronicle, call_id, {"result": repr(result)})

  def fail_call(self, call_id: str, method: Optional[str], chronicle: Any, error: BaseException) -> None:
    """Records an absorbed failure."""
    self._record(
      TraceEventType.CALL_ERROR,
      method,
      chronicle,
      call_id,
      {"error": repr(error), "error_type": type(error).__name__},
    )

  def _record(self, evt_type: TraceEventType, method: Optional[str], chronicle: Any, call_id: str, meta: Dict[str, Any]):
    self._events.append(
      TraceEvent(
        id=str(uuid.uuid4()),
        type=evt_type,
        timestamp=time.time(),
        method=method,
        chronicle=chronicle,
        call_id=call_id,
        metadata=meta,
      )
    )

  def for_chronicle(self, chronicle: Any) -> List[Dict[str, Any]]:
    """Exported events carrying the given chronicle tag."""
    return [asdict(e) for e in self._events if e.chronicle == chronicle]

  def clear(self) -> None:
    self._events.clear()

  def export(self) -> List[Dict[str, Any]]:
    """Returns list of dicts for JSON serialization."""
    return [asdict(e) for e in self._events]

  def __len__(self) -> int:
    return len(self._events)


_GLOBAL_TRACER = CallTracer()


def get_tracer() -> CallTracer:
  return _GLOBAL_TRACER


def reset_tracer():
  global _GLOBAL_TRACER
  _GLOBAL_TRACER = CallTracer()
