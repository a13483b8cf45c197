"""
Pytest configuration and fixtures for scriptflow tests.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add the repository root to path for imports
# This allows `from scriptflow.script import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from scriptflow.script import ScriptFactory, ScriptOptions  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    """Directory with sample script files."""
    return FIXTURES_DIR


@pytest.fixture
def query_mock():
    """Query capability returning a fixed item list."""
    return AsyncMock(return_value={"listItem": [{"id": 1}, {"id": 2}, {"id": 3}]})


@pytest.fixture
def request_mock():
    """Request capability returning a plain-text response."""
    return AsyncMock(
        return_value={
            "headers": {"content-type": ["text/plain; charset=utf-8"]},
            "body": "Lorem ipsum",
            "cookies": {},
        }
    )


@pytest.fixture
def create_script(query_mock, request_mock):
    """
    Compile a script with mocked capabilities.

    Usage:
        script = create_script({"name": "Test", "steps": [...]})
        script = create_script(definition, context=ctx, debug=True)
    """

    def _create(definition, *, context=None, debug=False, query=None, request=None):
        factory = ScriptFactory(query=query or query_mock, request=request or request_mock)
        return factory.create(definition, ScriptOptions(context=context, debug=debug))

    return _create
