"""Pytest configuration helpers for the preferences project.

The ``pytest`` plugin system automatically imports ``tests.conftest``. We use
that behavior to ensure the repository root is present on ``sys.path`` before
any test modules import application code.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

import pytest

from tests import _ensure_repo_on_path


class _AsyncioCompatPlugin:
    """Minimal fallback runner for ``async def`` tests."""

    def pytest_pyfunc_call(self, pyfuncitem: Any) -> bool | None:
        """Execute coroutine-based tests when ``pytest-asyncio`` is unavailable.

        Returning ``True`` tells :mod:`pytest` that the call was fully handled so
        the default sync runner is skipped.
        """

        test_function = pyfuncitem.obj
        if inspect.iscoroutinefunction(test_function):
            arguments = {
                name: pyfuncitem.funcargs[name]
                for name in pyfuncitem._fixtureinfo.argnames
            }
            asyncio.run(test_function(**arguments))
            return True
        return None


def pytest_configure(config: pytest.Config) -> None:
    """Hook executed by pytest prior to running any tests."""

    _ensure_repo_on_path()

    # ``pytest-asyncio`` registers itself under the ``asyncio`` plugin name; in
    # lean environments without it, async tests still run through the fallback.
    if not config.pluginmanager.hasplugin("asyncio"):
        config.pluginmanager.register(_AsyncioCompatPlugin(), name="asyncio_compat")
