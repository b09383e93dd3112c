"""
Tests for the Decoration Engine.

Covers selective wrapping, pass-through defaults, direct injection,
callable targets, accessor interception and decoration layering.
"""

import asyncio
import functools
import logging
from unittest.mock import MagicMock

import pytest

from hookwright import decorate
from hookwright.config import EngineSettings
from hookwright.core.engine import RESERVED_CALLABLE_MEMBERS, target_kind
from hookwright.core.tracer import CallTracer, TraceEventType, get_tracer
from hookwright.enums import TargetKind


class Service:
  def __init__(self):
    self.calls = []

  def foo(self):
    return 5

  def bar(self, a, b):
    self.calls.append((a, b))
    return [a, b]

  async def fetch(self):
    return 5

  def fail(self):
    raise ValueError("x")


class Counter:
  def __init__(self):
    self.count = 3

  @property
  def doubled(self):
    return self.count * 2

  @property
  def label(self):
    return "counter"


def test_target_kind():
  assert target_kind(len) is TargetKind.CALLABLE
  assert target_kind(lambda: 1) is TargetKind.CALLABLE
  assert target_kind(Service) is TargetKind.CALLABLE
  assert target_kind(Service().foo) is TargetKind.CALLABLE
  assert target_kind(functools.partial(max, 1)) is TargetKind.CALLABLE
  assert target_kind(Service()) is TargetKind.INSTANCE


def test_instance_identity_preserved():
  svc = Service()
  assert decorate(svc, {"before_foo": lambda p: p.params}) is svc


def test_selective_wrapping():
  svc = Service()
  marker = []
  original_bar = svc.bar

  decorate(svc, {"before_foo": lambda p: marker.append("foo") or p.params})

  assert "bar" not in vars(svc)
  assert svc.bar == original_bar
  assert svc.bar(1, 2) == [1, 2]
  assert marker == []

  assert svc.foo() == 5
  assert marker == ["foo"]


def test_pass_through_default():
  svc = Service()
  decorate(svc, {"after_foo": lambda p: p.result * 2, "after_bar": lambda p: p.result})

  assert svc.foo() == 10
  assert svc.bar(1, 2) == [1, 2]
  assert svc.calls == [(1, 2)]


def test_sync_async_uniformity_on_instance():
  svc = Service()
  decorate(svc, {"after_foo": lambda p: p.result + 1, "after_fetch": lambda p: p.result + 1})

  assert svc.foo() == 6
  assert asyncio.run(svc.fetch()) == 6


def test_error_absorption_reports_once():
  svc = Service()
  on_error = MagicMock()

  decorate(svc, {"before_fail": lambda p: p.params, "on_error": on_error})

  assert svc.fail() is None
  on_error.assert_called_once()
  assert isinstance(on_error.call_args.args[0].error, ValueError)


def test_error_absorption_with_default_reporter(recording_console):
  svc = Service()
  decorate(svc, {"after_fail": lambda p: p.result, "_chronicle": "req-9"})

  assert svc.fail() is None
  output = recording_console.export_text()
  assert "'fail'" in output
  assert "req-9" in output


def test_direct_injection():
  svc = Service()

  def helper(x):
    return x * 3

  decorate(svc, {"helper": helper})

  assert svc.helper is helper
  assert svc.helper(2) == 6


def test_hook_names_are_not_injected():
  svc = Service()
  decorate(svc, {"before_foo": lambda p: p.params, "on_error": lambda p: None})

  assert not hasattr(svc, "before_foo")
  assert not hasattr(svc, "on_error")


def test_chronicle_and_context_threaded_to_hooks():
  svc = Service()
  seen = []

  def before(payload):
    seen.append((payload.method, payload.chronicle, payload.context))
    return payload.params

  decorate(svc, {"before_bar": before, "_chronicle": "abc"})
  svc.bar(1, 2)

  assert seen == [("bar", "abc", svc)]


def test_own_attribute_wrapped_in_place():
  svc = Service()
  svc.own = lambda x: x + 1

  decorate(svc, {"after_own": lambda p: p.result * 10})

  assert svc.own(1) == 20


def test_accessor_interception():
  counter = Counter()
  decorate(counter, {"after_doubled": lambda p: p.result + 1})

  assert counter.doubled == 7
  counter.count = 10
  assert counter.doubled == 21
  assert counter.label == "counter"
  assert isinstance(counter, Counter)
  assert type(counter).__name__ == "Counter"
  assert Counter().doubled == 6


def test_accessor_error_absorbed():
  class Broken:
    @property
    def value(self):
      raise LookupError("gone")

  on_error = MagicMock()
  broken = decorate(Broken(), {"before_value": lambda p: p.params, "on_error": on_error})

  assert broken.value is None
  on_error.assert_called_once()


def test_slotted_instance_methods_wrapped_on_host_class():
  class Slotted:
    __slots__ = ("n",)

    def __init__(self):
      self.n = 4

    def get(self):
      return self.n

  obj = decorate(Slotted(), {"after_get": lambda p: p.result * 2})

  assert obj.get() == 8
  assert isinstance(obj, Slotted)
  assert Slotted().get() == 4


def test_callable_target_wrapping():
  before = MagicMock(side_effect=lambda p: p.params)
  after = MagicMock(side_effect=lambda p: p.result)

  def add(a, b):
    return a + b

  decorated = decorate(add, {"before_default": before, "after_default": after})

  assert decorated is not add
  assert decorated(2, 3) == 5
  before.assert_called_once()
  after.assert_called_once()
  assert decorated.__name__ == "add"


def test_callable_target_without_hooks_passes_through():
  decorated = decorate(lambda x: x * 2)
  assert decorated(4) == 8


def test_callable_target_async():
  async def compute(n):
    return n

  decorated = decorate(compute, {"after_default": lambda p: p.result + 1})
  assert asyncio.run(decorated(5)) == 6


def test_callable_target_static_helpers():
  def main():
    return "main"

  main.helper = lambda: "helper"
  main.other = lambda: "other"

  decorated = decorate(main, {"after_helper": lambda p: p.result.upper()})

  assert decorated() == "main"
  assert decorated.helper() == "HELPER"
  assert decorated.other() == "other"
  assert main.helper() == "helper"


def test_callable_target_reserved_members_skipped():
  def main():
    return 1

  main.caller = lambda: "caller"
  main.arguments = lambda: "arguments"

  decorated = decorate(main, {"after_caller": lambda p: "wrapped", "after_arguments": lambda p: "wrapped"})

  assert decorated.caller() == "caller"
  assert decorated.arguments() == "arguments"
  assert RESERVED_CALLABLE_MEMBERS == {"caller", "arguments"}


def test_callable_target_injection():
  decorated = decorate(lambda: 1, {"helper": len})
  assert decorated.helper is len


def test_class_target_constructs_through_hooks():
  seen = []

  def after(payload):
    seen.append(payload.result)
    return payload.result

  Decorated = decorate(Service, {"after_default": after})
  svc = Decorated()

  assert isinstance(svc, Service)
  assert seen == [svc]
  assert Decorated.__name__ == "Service"


def test_class_target_static_member_wrapped():
  class Tools:
    @staticmethod
    def twice(x):
      return x * 2

  Decorated = decorate(Tools, {"after_twice": lambda p: p.result + 1})
  assert Decorated.twice(3) == 7


def test_idempotence_boundary_instance():
  svc = Service()
  decorate(svc, {"after_foo": lambda p: p.result * 2})
  snapshot = dict(vars(svc))

  again = decorate(svc, {})

  assert again is svc
  assert vars(svc) == snapshot
  assert svc.foo() == 10


def test_idempotence_boundary_callable():
  decorated = decorate(lambda x: x + 1, {"after_default": lambda p: p.result * 2})
  again = decorate(decorated, {})

  assert again is not decorated
  assert again(1) == decorated(1) == 4


def test_layered_decoration_runs_outer_hooks_last():
  svc = Service()
  decorate(svc, {"after_foo": lambda p: p.result + 1})
  decorate(svc, {"after_foo": lambda p: p.result * 10})

  assert svc.foo() == 60


def test_method_bag_as_object():
  class Hooks:
    _chronicle = "obj"

    def after_foo(self, payload):
      return payload.result * 3

  svc = decorate(Service(), Hooks())
  assert svc.foo() == 15


def test_non_callable_bag_values_ignored():
  svc = decorate(Service(), {"after_foo": 5, "limit": 10})

  assert svc.foo() == 5
  assert not hasattr(svc, "limit")


def test_explicit_tracer():
  tracer = CallTracer()
  svc = decorate(Service(), {"after_foo": lambda p: p.result, "_chronicle": "t-1"}, tracer=tracer)
  svc.foo()

  events = tracer.for_chronicle("t-1")
  assert [e["type"] for e in events] == [TraceEventType.CALL_START, TraceEventType.CALL_SUCCESS]
  assert events[0]["method"] == "foo"


def test_trace_calls_setting_uses_global_tracer():
  svc = decorate(Service(), {"after_foo": lambda p: p.result}, settings=EngineSettings(trace_calls=True))
  svc.foo()

  assert len(get_tracer()) == 2


def test_settings_control_default_reporter(caplog):
  svc = decorate(
    Service(),
    {"after_fail": lambda p: p.result},
    settings=EngineSettings(error_level="WARNING", show_traceback=False),
  )

  with caplog.at_level(logging.WARNING, logger="hookwright"):
    assert svc.fail() is None

  errors = [r for r in caplog.records if "fail" in r.getMessage()]
  assert len(errors) == 1
  assert errors[0].levelno == logging.WARNING


def test_injection_on_slotted_instance_uses_host_class():
  class Slotted:
    __slots__ = ()

    def get(self):
      return 1

  obj = decorate(Slotted(), {"helper": len, "after_get": lambda p: p.result + 1})

  assert obj.helper is len
  assert obj.helper("abc") == 3
  assert obj.get() == 2
  assert isinstance(obj, Slotted)
  assert not hasattr(Slotted(), "helper")


def test_injection_on_unswappable_instance_raises():
  with pytest.raises(TypeError):
    decorate(object(), {"helper": len})


def test_cached_property_stays_cached():
  runs = []

  class Report:
    @functools.cached_property
    def heavy(self):
      runs.append(1)
      return 10

  report = decorate(Report(), {"after_heavy": lambda p: p.result * 2})

  assert [report.heavy, report.heavy, report.heavy] == [20, 20, 20]
  assert runs == [1]


def test_cached_property_value_cached_before_decoration_is_kept():
  class Report:
    @functools.cached_property
    def heavy(self):
      return 10

  report = Report()
  assert report.heavy == 10
  decorate(report, {"after_heavy": lambda p: p.result * 2})

  assert report.heavy == 10


def test_unmatched_hooks_are_logged(recording_console):
  svc = decorate(Service(), {"after_missing": lambda p: p.result})

  assert svc.foo() == 5
  assert "missing" in recording_console.export_text()


def test_class_target_accessor_hooks_are_skipped(recording_console):
  Decorated = decorate(Counter, {"after_doubled": lambda p: p.result + 1})

  assert Decorated().doubled == 6
  assert "doubled" in recording_console.export_text()


def test_decoration_summary_logged_at_debug(caplog):
  with caplog.at_level(logging.DEBUG, logger="hookwright"):
    decorate(Service(), {"after_foo": lambda p: p.result})

  assert any("wrapped=['foo']" in r.getMessage() for r in caplog.records)
