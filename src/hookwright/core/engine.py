"""
Decoration Engine.

`decorate` turns a target and a method bag into a drop-in replacement whose
hooked members run through interception wrappers.

Pipeline:

1.  **Classify** the target as a callable (functions, methods, builtins,
    partials, classes) or an instance.
2.  **Shared config**: the error reporter and the bag's chronicle tag.
3.  **Whole-callable wrap**: a callable target is wrapped with the bag's
    ``before_default`` / ``after_default`` hooks. An instance is patched in place.
4.  **Injection**: direct bag members are copied onto the decorated target.
5.  **Member wrap**: each member of the target's surface with a
    ``before_<name>`` or ``after_<name>`` hook is replaced by a wrapper.
    Members without hooks are left alone.

On instances, members declared in the instance ``__dict__`` are replaced in
place and inherited methods are materialized as instance attributes wrapping
the bound method. Accessors cannot be shadowed from the instance, so the
instance is moved onto a generated subclass of its own class that carries
the intercepted properties.
"""

import functools
import inspect
from typing import Any, Optional

from rich.markup import escape

from hookwright.config import EngineSettings, get_default_settings
from hookwright.core.capabilities import Capability, capabilities, is_getter
from hookwright.core.hooks import (
  DEFAULT_MEMBER,
  HookBinding,
  bag_members,
  bind_hooks,
  default_config,
  is_hook_name,
)
from hookwright.core.interceptor import intercept, intercept_accessor
from hookwright.core.tracer import CallTracer, get_tracer
from hookwright.enums import CapabilityKind, TargetKind
from hookwright.utils.console import log_debug, log_warning

# Function-object properties that are never wrapped on callable targets.
RESERVED_CALLABLE_MEMBERS = frozenset({"caller", "arguments"})

_HOST_MARKER = "_hookwright_host"


def target_kind(target: Any) -> TargetKind:
  """Classifies a decoration target."""
  if inspect.isroutine(target) or inspect.isclass(target) or isinstance(target, functools.partial):
    return TargetKind.CALLABLE
  return TargetKind.INSTANCE


def _instance_namespace(obj: Any) -> Optional[dict]:
  namespace = getattr(obj, "__dict__", None)
  return namespace if isinstance(namespace, dict) else None


def _assign(obj: Any, name: str, value: Any) -> None:
  """
  Sets an attribute without going through a custom ``__setattr__``.

  Instances without a ``__dict__`` receive the value on their host class,
  as a ``staticmethod`` so that it is not bound to the instance.
  """
  if inspect.isclass(obj):
    setattr(obj, name, value)
    return

  namespace = _instance_namespace(obj)
  if namespace is not None:
    namespace[name] = value
  else:
    setattr(_host_class(obj), name, staticmethod(value))


def _host_class(instance: Any) -> type:
  """
  Returns the per-instance subclass carrying intercepted class-level members,
  creating it and moving the instance onto it on first use.

  Raises:
      TypeError: If the instance's class cannot be swapped.
  """
  cls = type(instance)
  if cls.__dict__.get(_HOST_MARKER):
    return cls

  host = type(
    cls.__name__,
    (cls,),
    {
      "__slots__": (),
      "__module__": cls.__module__,
      "__qualname__": cls.__qualname__,
      _HOST_MARKER: True,
    },
  )
  instance.__class__ = host
  return host


def _wrap_instance_member(
  instance: Any,
  capability: Capability,
  config: Any,
  tracer: Optional[CallTracer],
) -> None:
  name = capability.name

  if capability.kind is CapabilityKind.ACCESSOR:
    host = _host_class(instance)
    descriptor = inspect.getattr_static(host, name)
    setattr(host, name, intercept_accessor(descriptor, config, name, tracer=tracer))
    return

  namespace = _instance_namespace(instance)
  if namespace is not None and name in namespace:
    namespace[name] = intercept(namespace[name], config, name, context=instance, tracer=tracer)
    return

  _assign(instance, name, intercept(getattr(instance, name), config, name, context=instance, tracer=tracer))


def decorate(
  target: Any,
  methods: Any = None,
  settings: Optional[EngineSettings] = None,
  tracer: Optional[CallTracer] = None,
) -> Any:
  """
  Injects hooks into a callable or an object instance.

  Args:
      target: Function, class or instance to decorate.
      methods: Method bag: ``before_<name>`` / ``after_<name>`` hooks,
          ``before_default`` / ``after_default`` for callable targets,
          ``_chronicle`` tag, and direct members to inject.
          A mapping or an object with those attributes.
      settings: Overrides the process-wide EngineSettings for this decoration.
      tracer: Records call events. Defaults to the global tracer when
          ``settings.trace_calls`` is enabled.

  Returns:
      A new callable for callable targets, the same (patched) instance otherwise.

  Raises:
      TypeError: If a hook is not callable or the instance class cannot be swapped.
  """
  methods = {} if methods is None else methods
  active_settings = settings or get_default_settings()
  if tracer is None and active_settings.trace_calls:
    tracer = get_tracer()

  kind = target_kind(target)
  shared = default_config(methods, settings)
  members = bag_members(methods)
  bindings = bind_hooks(members)

  if kind is TargetKind.CALLABLE:
    whole = bindings.get(DEFAULT_MEMBER, HookBinding())
    decorated = intercept(target, whole.to_config(**shared), tracer=tracer)
  else:
    decorated = target

  for name, value in members.items():
    if not is_hook_name(name):
      _assign(decorated, name, value)

  surface = capabilities(target)
  wrapped = []
  for capability in surface:
    name = capability.name
    if kind is TargetKind.CALLABLE and name in RESERVED_CALLABLE_MEMBERS:
      continue

    binding = bindings.get(name)
    if binding is None:
      continue

    config = binding.to_config(**shared)
    if kind is TargetKind.CALLABLE:
      if is_getter(target, name):
        # The wrapper is a plain function; class-level accessors have no place on it.
        log_warning(f"Accessor '{escape(name)}' of a callable target is not intercepted")
        continue
      setattr(decorated, name, intercept(getattr(target, name), config, name, context=target, tracer=tracer))
    else:
      _wrap_instance_member(decorated, capability, config, tracer)
    wrapped.append(name)

  known = {capability.name for capability in surface} | {DEFAULT_MEMBER}
  for name in bindings:
    if name not in known:
      log_warning(f"Hooks for '{escape(name)}' match no member of the target")

  label = getattr(target, "__name__", type(target).__name__)
  log_debug(
    escape(f"Decorated {kind.value} {label!r}: wrapped={wrapped} chronicle={shared['chronicle']!r}"),
  )
  return decorated
