"""
Hook Contract, Hook Configuration and Method-Bag Binding.

A *method bag* is the mapping (or object) handed to `decorate`. Its entries
are sorted once into:

- **Hook bindings**: ``before_<name>`` / ``after_<name>`` entries, grouped per
  member into a :class:`HookBinding`. ``before_default`` / ``after_default``
  bind to the reserved member ``default``, used when the target is a bare
  callable.
- **Direct members**: every other public callable entry, injected verbatim.
- **Chronicle**: the ``_chronicle`` entry, an opaque correlation tag.
- **Error override**: an ``on_error`` entry replaces the default reporter
  for every wrapper of the decoration.

Every hook receives one :class:`HookPayload`:

- ``on_params`` gets ``params``, ``raw_params``, ``kwargs``, ``context``,
  ``method`` and ``chronicle`` and returns the argument sequence to call with
  (or a :class:`CallArgs` to rewrite keyword arguments as well).
- ``on_success`` additionally gets ``result``; its return value is what the
  caller receives.
- ``on_error`` gets ``error`` instead; its return value is discarded.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from rich.markup import escape

from hookwright.config import EngineSettings, get_default_settings
from hookwright.core.capabilities import is_callable_member, list_invocable_members
from hookwright.utils.console import log_error

BEFORE_PREFIX = "before_"
AFTER_PREFIX = "after_"
DEFAULT_MEMBER = "default"
CHRONICLE_KEY = "_chronicle"
ON_ERROR_KEY = "on_error"


class CallArgs(NamedTuple):
  """Positional and keyword arguments returned by an ``on_params`` hook."""

  args: Tuple[Any, ...] = ()
  kwargs: Mapping[str, Any] = MappingProxyType({})


class HookPayload(BaseModel):
  """
  The single argument passed to every hook.
  """

  model_config = ConfigDict(arbitrary_types_allowed=True)

  method: Optional[str] = Field(None, description="Name of the intercepted member.")
  chronicle: Any = Field(None, description="Correlation tag of the decoration.")
  context: Any = Field(None, description="Receiver the member was called on.")
  params: Optional[Tuple[Any, ...]] = Field(None, description="Arguments after the param stage.")
  raw_params: Tuple[Any, ...] = Field(default_factory=tuple, description="Arguments as the caller passed them.")
  kwargs: Dict[str, Any] = Field(default_factory=dict, description="Keyword arguments of the call.")
  result: Any = Field(None, description="Settled result (success hooks only).")
  error: Any = Field(None, description="Raised exception (error hooks only).")


HookFunction = Callable[[HookPayload], Any]


def pass_params(payload: HookPayload) -> Any:
  """Default ``on_params``: the call proceeds with the original arguments."""
  return payload.params


def pass_result(payload: HookPayload) -> Any:
  """Default ``on_success``: the caller receives the original result."""
  return payload.result


class ErrorReporter:
  """
  Default ``on_error``: logs the absorbed failure and returns nothing.

  Bound to an :class:`EngineSettings` instance for logger name, level and
  traceback rendering.
  """

  def __init__(self, settings: Optional[EngineSettings] = None):
    self.settings = settings or get_default_settings()

  def __call__(self, payload: HookPayload) -> None:
    error = payload.error
    where = f"'{payload.method}'" if payload.method else "decorated callable"
    msg = f"Call to {escape(where)} failed: {escape(repr(error))}"
    if payload.chronicle is not None:
      msg += f" (chronicle={escape(repr(payload.chronicle))})"

    exc_info = error if self.settings.show_traceback and isinstance(error, BaseException) else None
    log_error(msg, exc_info=exc_info, level=self.settings.error_level_num, logger=self.settings.logger_name)


_DEFAULT_REPORTER = ErrorReporter()


def get_default_reporter() -> ErrorReporter:
  """Returns the process-wide reporter bound to the default settings."""
  return _DEFAULT_REPORTER


class HookConfig(BaseModel):
  """
  Hooks applied to one intercepted member.
  """

  model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

  on_params: HookFunction = Field(pass_params, description="Transforms arguments before invocation.")
  on_success: HookFunction = Field(pass_result, description="Transforms the settled result.")
  on_error: HookFunction = Field(default_factory=get_default_reporter, description="Receives absorbed failures.")
  chronicle: Any = Field(None, description="Correlation tag threaded through every hook.")


@dataclass(frozen=True)
class HookBinding:
  """Before/after hooks matched to a single member name."""

  before: Optional[HookFunction] = None
  after: Optional[HookFunction] = None

  def to_config(self, **defaults: Any) -> HookConfig:
    """
    Builds the member's HookConfig, falling back to pass-through hooks.

    Args:
        **defaults: ``on_error`` and ``chronicle`` shared by the decoration.
    """
    return HookConfig(
      on_params=self.before or pass_params,
      on_success=self.after or pass_result,
      **defaults,
    )


def is_hook_name(name: str) -> bool:
  """True for bag names that configure hooks instead of naming a member to inject."""
  return name.startswith(BEFORE_PREFIX) or name.startswith(AFTER_PREFIX) or name == ON_ERROR_KEY


def bag_members(methods: Any) -> Dict[str, Any]:
  """
  Public callable entries of a method bag.

  Args:
      methods: A mapping, or an object whose public methods form the bag.

  Returns:
      Dict[str, Any]: name -> value, in declaration order.
  """
  if methods is None:
    return {}

  if isinstance(methods, Mapping):
    return {
      name: value
      for name, value in methods.items()
      if isinstance(name, str) and not name.startswith("_") and is_callable_member(value)
    }

  members = {}
  for name in list_invocable_members(methods):
    value = getattr(methods, name)
    if is_callable_member(value):
      members[name] = value
  return members


def chronicle_of(methods: Any) -> Any:
  """Reads the correlation tag from a method bag."""
  if isinstance(methods, Mapping):
    return methods.get(CHRONICLE_KEY)
  return getattr(methods, CHRONICLE_KEY, None)


def bind_hooks(members: Mapping[str, Any]) -> Dict[str, HookBinding]:
  """
  Groups ``before_<name>`` / ``after_<name>`` entries by member name.

  Args:
      members: Output of :func:`bag_members`.

  Returns:
      Dict[str, HookBinding]: member name -> binding.

  Raises:
      TypeError: If a hook entry is not callable.
  """
  before: Dict[str, HookFunction] = {}
  after: Dict[str, HookFunction] = {}

  for name, value in members.items():
    if name.startswith(BEFORE_PREFIX):
      bucket, member = before, name[len(BEFORE_PREFIX) :]
    elif name.startswith(AFTER_PREFIX):
      bucket, member = after, name[len(AFTER_PREFIX) :]
    else:
      continue

    if not callable(value):
      raise TypeError(f"Hook '{name}' must be callable, got {type(value).__name__}")
    if member:
      bucket[member] = value

  return {
    member: HookBinding(before=before.get(member), after=after.get(member))
    for member in dict.fromkeys([*before, *after])
  }


def default_config(methods: Any, settings: Optional[EngineSettings] = None) -> Dict[str, Any]:
  """
  Config entries shared by every wrapper of one decoration.

  Args:
      methods: The method bag (source of the chronicle tag and of an
          optional ``on_error`` override).
      settings: Settings for the error reporter. Defaults to the process-wide reporter.
  """
  override = bag_members(methods).get(ON_ERROR_KEY)
  if override is not None:
    reporter = override
  elif settings is None:
    reporter = get_default_reporter()
  else:
    reporter = ErrorReporter(settings)
  return {"on_error": reporter, "chronicle": chronicle_of(methods)}
