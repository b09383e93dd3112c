"""
hookwright Package.

A call-interception and hook-injection engine. `decorate` wraps a function
or patches an object so that hooks run before each call (to transform
arguments), after it settles (immediate or awaitable results alike) and on
failure, without the wrapped code knowing.

Usage
-----

Wrapping an Instance
^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from hookwright import decorate

    class Repo:
        def load(self, key):
            return {"key": key}

    repo = decorate(Repo(), {
        "before_load": lambda p: [p.params[0].lower()],
        "after_load": lambda p: {**p.result, "cached": False},
        "_chronicle": "repo-1",
    })
    repo.load("ABC")
    # {'key': 'abc', 'cached': False}

Wrapping a Callable
^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import asyncio
    from hookwright import decorate

    async def fetch(n):
        return n

    fetch = decorate(fetch, {"after_default": lambda p: p.result + 1})
    asyncio.run(fetch(5))
    # 6

Failures are absorbed: the wrapper returns ``None`` and the error is logged
unless an ``on_error`` override re-raises.
"""

from hookwright.config import EngineSettings, get_default_settings
from hookwright.core.capabilities import Capability, capabilities, list_invocable_members
from hookwright.core.engine import decorate
from hookwright.core.hooks import CallArgs, ErrorReporter, HookConfig, HookPayload
from hookwright.core.interceptor import intercept
from hookwright.core.tracer import CallTracer

__version__ = "0.1.0"

__all__ = [
  "decorate",
  "intercept",
  "list_invocable_members",
  "capabilities",
  "Capability",
  "CallArgs",
  "ErrorReporter",
  "HookConfig",
  "HookPayload",
  "EngineSettings",
  "get_default_settings",
  "CallTracer",
  "__version__",
]
