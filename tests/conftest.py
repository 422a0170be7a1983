"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from pjson_updater.config import OPTION_ENV_VARS
from pjson_updater.models import Options


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell (USERNAME, VERSION, ...) out of the tests."""
    for var in OPTION_ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def options() -> Options:
    """Resolved options for updating left-pad in team/web-app@main."""
    return Options(
        package="left-pad",
        version="1.3.0",
        repo_name="web-app",
        repo_user_or_org="team",
        repo_branch="main",
        username="me",
        password="app-secret",
        pr_name="Updated web-app to 1.3.0",
        pr_branch_name="pjsonUpdater-test-upd-left-pad-to-1.3.0",
        pr_commit_message="Updated web-app to 1.3.0",
    )


@pytest.fixture
def manifest() -> dict[str, Any]:
    """A package.json with both dependency sections."""
    return {
        "name": "web-app",
        "version": "2.0.0",
        "dependencies": {"left-pad": "1.0.0", "react": "^16.0.0"},
        "devDependencies": {"jest": "24.0.0"},
    }
