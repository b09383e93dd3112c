"""
Call-Interception Wrapper.

Synthesizes wrappers that run a :class:`HookConfig` around a callable and
bridge immediate and awaitable results under the same hook contract.

Per call:

1.  **Param stage**: ``on_params`` transforms the arguments.
2.  **Invoke**: the wrapped callable is called with the transformed arguments.
3.  **Settle**: the raw result is classified once as :class:`Immediate` or
    :class:`Deferred`.

    - Immediate: ``on_success`` runs now and its value is returned.
    - Deferred: a coroutine is returned instead. It awaits the result,
      then runs ``on_success`` and resolves to its value.

4.  **Failure**: an exception from the param stage, the invocation, the
    awaited result or ``on_success`` goes to ``on_error``. The wrapper then
    returns ``None``, or an awaitable resolving to ``None`` when the wrapped
    callable is a coroutine function or ``on_error`` returned an awaitable
    (which runs once that result is awaited). Only an exception raised by
    ``on_error`` itself leaves the wrapper.
"""

import functools
import inspect
from typing import Any, Awaitable, Dict, Mapping, NamedTuple, Optional, Tuple, Union

from hookwright.core.capabilities import is_deferred
from hookwright.core.hooks import CallArgs, HookConfig, HookPayload
from hookwright.core.tracer import CallTracer
from hookwright.enums import OutcomeKind


class Immediate(NamedTuple):
  value: Any

  @property
  def kind(self) -> OutcomeKind:
    return OutcomeKind.IMMEDIATE


class Deferred(NamedTuple):
  awaitable: Awaitable[Any]

  @property
  def kind(self) -> OutcomeKind:
    return OutcomeKind.DEFERRED


Outcome = Union[Immediate, Deferred]


def classify(result: Any) -> Outcome:
  """Resolves the shape of a raw call result."""
  if is_deferred(result):
    return Deferred(result)
  return Immediate(result)


def _split_params(transformed: Any, kwargs: Dict[str, Any]) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
  """
  Normalizes the return value of ``on_params``.

  ``None`` (a hook that only validates) calls with no positional arguments.

  Raises:
      TypeError: If the hook returned something that is not an argument sequence.
  """
  if isinstance(transformed, CallArgs):
    return tuple(transformed.args), dict(transformed.kwargs or {})
  if transformed is None:
    return (), kwargs
  if isinstance(transformed, (str, bytes, Mapping)):
    raise TypeError(f"on_params must return an argument sequence, got {type(transformed).__name__}")
  try:
    return tuple(transformed), kwargs
  except TypeError:
    raise TypeError(f"on_params must return an argument sequence, got {type(transformed).__name__}") from None


def invoke(
  method: Any,
  config: HookConfig,
  method_name: Optional[str],
  context: Any,
  args: Tuple[Any, ...],
  kwargs: Dict[str, Any],
  tracer: Optional[CallTracer] = None,
) -> Any:
  """
  Runs one intercepted call.

  Args:
      method: The original callable.
      config: Hooks to apply.
      method_name: Name reported in payloads.
      context: Receiver reported in payloads.
      args: Positional arguments as passed by the caller.
      kwargs: Keyword arguments as passed by the caller.
      tracer: Optional trace recorder.

  Returns:
      The ``on_success`` value, a coroutine resolving to it for awaitable
      results, or ``None`` after a handled failure.
  """
  base = {
    "method": method_name,
    "chronicle": config.chronicle,
    "context": context,
    "raw_params": args,
    "kwargs": kwargs,
  }
  call_id = tracer.start_call(method_name, config.chronicle, args) if tracer is not None else None
  data = {**base, "params": None}

  try:
    transformed = config.on_params(HookPayload(params=args, **base))
    params, call_kwargs = _split_params(transformed, kwargs)
    data = {**base, "params": params, "kwargs": call_kwargs}

    outcome = classify(method(*params, **call_kwargs))
    if isinstance(outcome, Deferred):
      return _settle(outcome.awaitable, config, data, tracer, call_id)

    result = config.on_success(HookPayload(result=outcome.value, **data))
  except Exception as error:
    handled = _fail(error, config, data, tracer, call_id)
    if is_deferred(handled) or inspect.iscoroutinefunction(method):
      # An async on_error runs once the caller awaits the result.
      return _absorbed(handled)
    return None

  if tracer is not None:
    tracer.end_call(call_id, method_name, config.chronicle, result)
  return result


def _fail(
  error: Exception,
  config: HookConfig,
  data: Dict[str, Any],
  tracer: Optional[CallTracer],
  call_id: Optional[str],
) -> Any:
  if tracer is not None:
    tracer.fail_call(call_id, data["method"], config.chronicle, error)
  return config.on_error(HookPayload(error=error, **data))


async def _absorbed(handled: Any) -> None:
  if is_deferred(handled):
    await handled
  return None


async def _settle(
  awaitable: Awaitable[Any],
  config: HookConfig,
  data: Dict[str, Any],
  tracer: Optional[CallTracer],
  call_id: Optional[str],
) -> Any:
  try:
    result = await awaitable
    value = config.on_success(HookPayload(result=result, **data))
    if is_deferred(value):
      value = await value
  except Exception as error:
    handled = _fail(error, config, data, tracer, call_id)
    if is_deferred(handled):
      await handled
    return None

  if tracer is not None:
    tracer.end_call(call_id, data["method"], config.chronicle, value)
  return value


def _copy_metadata(wrapper: Any, method: Any) -> None:
  if inspect.isclass(method):
    # A class namespace is not function state; keep name and docs only.
    functools.update_wrapper(wrapper, method, updated=())
  else:
    functools.update_wrapper(wrapper, method)

  if inspect.iscoroutinefunction(method) and hasattr(inspect, "markcoroutinefunction"):
    inspect.markcoroutinefunction(wrapper)


def intercept(
  method: Any,
  config: HookConfig,
  method_name: Optional[str] = None,
  context: Any = None,
  tracer: Optional[CallTracer] = None,
) -> Any:
  """
  Wraps `method` so that every call runs through `config`.

  Args:
      method: The callable to wrap.
      config: Hooks to apply.
      method_name: Name reported in payloads; defaults to ``method.__name__``.
      context: Receiver reported in payloads.
      tracer: Optional trace recorder.

  Returns:
      A function with the metadata of `method`.
  """
  name = method_name or getattr(method, "__name__", None)

  def wrapper(*args, **kwargs):
    return invoke(method, config, name, context, args, kwargs, tracer)

  _copy_metadata(wrapper, method)
  wrapper._hook_config = config
  return wrapper


def intercept_accessor(
  descriptor: Any,
  config: HookConfig,
  method_name: str,
  tracer: Optional[CallTracer] = None,
) -> Union[property, functools.cached_property]:
  """
  Builds an accessor whose getter runs through `config`.

  The receiver becomes the payload context; the getter is called with no
  params. Setter and deleter of a ``property`` are kept. A
  ``functools.cached_property`` stays cached: the hooked value is stored
  once per instance and an already cached value is left in place.

  Args:
      descriptor: A ``property`` or ``functools.cached_property``.
      config: Hooks to apply.
      method_name: Name of the accessor.
      tracer: Optional trace recorder.
  """
  cached = isinstance(descriptor, functools.cached_property)
  if cached:
    fget, fset, fdel = descriptor.func, None, None
  else:
    fget, fset, fdel = descriptor.fget, descriptor.fset, descriptor.fdel

  def getter(instance):
    if fget is None:
      raise AttributeError(f"property '{method_name}' has no getter")
    bound = functools.partial(fget, instance)
    return invoke(bound, config, method_name, instance, (), {}, tracer)

  getter.__doc__ = getattr(descriptor, "__doc__", None)
  if cached:
    accessor = functools.cached_property(getter)
    accessor.__set_name__(None, descriptor.attrname or method_name)
    return accessor
  return property(getter, fset, fdel, getter.__doc__)
