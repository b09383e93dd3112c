"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Console reset and global tracer isolation between tests.
- A recording console to assert on logged output.
"""

import sys
from pathlib import Path

import pytest
from rich.console import Console

# Add src to path so we can import 'hookwright' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from hookwright.core.tracer import reset_tracer  # noqa: E402
from hookwright.utils.console import reset_console, set_console  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_globals():
  """Fresh stdout console and global tracer for every test."""
  reset_console()
  reset_tracer()
  yield
  reset_console()
  reset_tracer()


@pytest.fixture
def recording_console() -> Console:
  """
  Injects a recording Rich console. Use ``export_text()`` to read what was logged.
  """
  capture = Console(record=True, width=200)
  set_console(capture)
  return capture
