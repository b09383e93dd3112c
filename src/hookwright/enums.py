"""
Enumerations for hookwright.
"""

from enum import Enum


class TargetKind(str, Enum):
  """
  How `decorate` treats its target.

  A callable is wrapped as a whole and a new callable is returned.
  An instance is patched in place.
  """

  CALLABLE = "callable"
  INSTANCE = "instance"


class CapabilityKind(str, Enum):
  """Kind of an introspected member."""

  METHOD = "method"
  ACCESSOR = "accessor"  # property-style getter


class OutcomeKind(str, Enum):
  """Shape of a wrapped call's raw result."""

  IMMEDIATE = "immediate"
  DEFERRED = "deferred"  # awaitable, settled later
