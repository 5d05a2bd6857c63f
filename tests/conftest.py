import asyncio
import inspect
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            argnames = pyfuncitem._fixtureinfo.argnames
            loop.run_until_complete(test_function(**{name: pyfuncitem.funcargs[name] for name in argnames}))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None
