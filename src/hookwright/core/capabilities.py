"""
Capability Introspector.

Builds an immutable registry of the members an object exposes as methods or
accessors. The ownership chain is walked explicitly:

1.  **Own level**: the object's ``__dict__`` (skipped for classes, whose own
    namespace is the first entry of their MRO).
2.  **Class levels**: every class of the MRO, in resolution order.
3.  **Root**: ``object`` terminates the walk and is never inspected.

At each level only *locally declared* names are considered, read from the
level's namespace without triggering descriptors, so property getters never
run during introspection. The first level declaring a name decides its kind.
Constructors and names with a leading underscore are dropped.
"""

import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from hookwright.enums import CapabilityKind

CONSTRUCTOR_NAMES = frozenset({"__init__", "__new__", "constructor"})
PRIVATE_PREFIX = "_"

_ACCESSOR_TYPES = (property, functools.cached_property)


@dataclass(frozen=True)
class Capability:
  """
  A single introspected member.

  Attributes:
      name: Attribute name on the target.
      kind: Method or accessor.
      owner: The level of the ownership chain declaring the member
             (the object itself or one of its classes).
  """

  name: str
  kind: CapabilityKind
  owner: Any = field(default=None, compare=False, repr=False)


def is_accessor(value: Any) -> bool:
  """True for property-style descriptors."""
  return isinstance(value, _ACCESSOR_TYPES)


def is_callable_member(value: Any) -> bool:
  """True for raw namespace values that behave as methods once looked up."""
  return callable(value) or isinstance(value, (staticmethod, classmethod))


def is_deferred(value: Any) -> bool:
  """True if the value is an awaitable that settles later."""
  return inspect.isawaitable(value)


def is_getter(owner: Any, name: str) -> bool:
  """
  Checks whether `name` resolves to an accessor on `owner`.

  Lookup is static (``inspect.getattr_static``), so the getter is not run.
  """
  try:
    value = inspect.getattr_static(owner, name)
  except AttributeError:
    return False
  return is_accessor(value)


def _namespace(level: Any) -> Optional[Mapping[str, Any]]:
  namespace = getattr(level, "__dict__", None)
  if isinstance(namespace, Mapping):
    return namespace
  return None


def _chain(target: Any) -> List[Any]:
  """Ownership chain from the target up to, but excluding, ``object``."""
  if target is None:
    return []
  if isinstance(target, type):
    levels = list(target.__mro__)
  else:
    levels = [target, *type(target).__mro__]
  return [level for level in levels if level is not object]


def _declared(level: Any, own: bool) -> Iterator[Tuple[str, CapabilityKind]]:
  namespace = _namespace(level)
  if namespace is None:
    return

  for name, value in list(namespace.items()):
    if not isinstance(name, str):
      continue
    # Descriptors only act when found on a class.
    if not own and is_accessor(value):
      yield name, CapabilityKind.ACCESSOR
    elif is_callable_member(value):
      yield name, CapabilityKind.METHOD


def _is_public(name: str) -> bool:
  return name not in CONSTRUCTOR_NAMES and not name.startswith(PRIVATE_PREFIX)


def capabilities(target: Any) -> Tuple[Capability, ...]:
  """
  Introspects the invocable surface of `target`.

  Args:
      target: Any object, class or callable. ``None`` yields an empty registry.

  Returns:
      Tuple[Capability, ...]: Deduplicated public members in chain order.
  """
  seen = set()
  found: List[Capability] = []
  is_class = isinstance(target, type)

  for index, level in enumerate(_chain(target)):
    own = index == 0 and not is_class
    for name, kind in _declared(level, own):
      if name in seen:
        continue
      seen.add(name)
      found.append(Capability(name=name, kind=kind, owner=level))

  return tuple(cap for cap in found if _is_public(cap.name))


def list_invocable_members(target: Any) -> List[str]:
  """
  Names of the methods and accessors `target` exposes.

  Constructor names and names starting with an underscore are excluded.
  Each name appears once even when redeclared along the chain.
  """
  return [cap.name for cap in capabilities(target)]
