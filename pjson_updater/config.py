"""Option resolution: CLI values, environment fallbacks and derived defaults.

Each option can come from a command-line flag or from an environment variable
named after the flag (upper-cased). Command-line values always win. After the
merge, required options are checked and the optional PR fields are filled in
from the others.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from datetime import datetime, timezone

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigurationError
from .models import DEFAULT_API_URL, Options

# Option field → command-line flag
OPTION_FLAGS: dict[str, str] = {
    "package": "--package",
    "version": "--version",
    "repo_name": "--repoName",
    "repo_user_or_org": "--repoUserOrOrg",
    "repo_branch": "--repoBranch",
    "username": "--username",
    "password": "--password",
    "pr_name": "--prName",
    "pr_branch_name": "--prBranchName",
    "pr_commit_message": "--prCommitMessage",
    "api_url": "--apiUrl",
}

# Option field → environment variable consulted when the flag is absent
OPTION_ENV_VARS: dict[str, str] = {
    "package": "PACKAGE",
    "version": "VERSION",
    "repo_name": "REPONAME",
    "repo_user_or_org": "REPOUSERORORG",
    "repo_branch": "REPOBRANCH",
    "username": "USERNAME",
    "password": "PASSWORD",
    "pr_name": "PRNAME",
    "pr_branch_name": "PRBRANCHNAME",
    "pr_commit_message": "PRCOMMITMESSAGE",
    "api_url": "APIURL",
}

REQUIRED_OPTIONS: tuple[str, ...] = (
    "package",
    "version",
    "repo_name",
    "repo_user_or_org",
    "repo_branch",
    "username",
    "password",
)

BRANCH_PREFIX = "pjsonUpdater"


def load_env_file(path: str | None = None) -> bool:
    """Load variables from a .env file without overriding the real environment.

    Args:
        path: Explicit .env path. When omitted, searches upward from the
              current working directory.

    Returns:
        True if a file was found and loaded.
    """
    dotenv_path = path or find_dotenv(usecwd=True)
    if not dotenv_path:
        return False
    return load_dotenv(dotenv_path, override=False)


def default_pr_name(repo_name: str, version: str) -> str:
    """Default PR title (and commit message): "Updated {repo} to {version}"."""
    return f"Updated {repo_name} to {version}"


def _ref_safe(part: str) -> str:
    """Reduce a package name or version specifier to ref-name-safe text.

    npm specifiers such as "^2.0.0", ">=1 <2" or "github:user/repo#v1" carry
    characters git rejects in ref names; runs of them become "-".
    """
    safe = re.sub(r"[^A-Za-z0-9._-]+", "-", part)
    safe = re.sub(r"\.{2,}", ".", safe).strip(".-")
    if safe.endswith(".lock"):
        safe = safe[: -len(".lock")] + "-lock"
    return safe or "any"


def default_branch_name(
    package: str, version: str, now: datetime | None = None
) -> str:
    """Build a unique-per-run branch name for the update.

    The UTC timestamp goes first so branches sort chronologically. Colons in
    the timestamp and ref-illegal characters in the package and version are
    replaced, since git rejects them in ref names.

    Example:
        pjsonUpdater-2024-05-01T12.30.00.123456+00.00-upd-left-pad-to-1.3.0
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat().replace(":", ".")
    return (
        f"{BRANCH_PREFIX}-{stamp}-upd-{_ref_safe(package)}-to-{_ref_safe(version)}"
    )


def _pick(
    name: str, cli_values: Mapping[str, str | None], environ: Mapping[str, str]
) -> str | None:
    value = cli_values.get(name)
    if value:
        return value
    return environ.get(OPTION_ENV_VARS[name]) or None


def resolve_options(
    cli_values: Mapping[str, str | None],
    environ: Mapping[str, str] | None = None,
    now: datetime | None = None,
) -> Options:
    """Merge CLI values with environment fallbacks into a validated Options.

    Args:
        cli_values: Map of option field → value from the command line. Missing
                    keys, None and empty strings all count as "not given".
        environ: Environment to fall back to. Defaults to os.environ.
        now: Clock override for the default branch name.

    Returns:
        Frozen Options with every required field set and defaults derived.

    Raises:
        ConfigurationError: If a required option is missing from both sources.
    """
    env = os.environ if environ is None else environ
    values = {name: _pick(name, cli_values, env) for name in OPTION_ENV_VARS}

    for name in REQUIRED_OPTIONS:
        if not values[name]:
            raise ConfigurationError(
                f"missing required option {OPTION_FLAGS[name]} "
                f"(or environment variable {OPTION_ENV_VARS[name]})",
                option=name,
            )

    title = default_pr_name(values["repo_name"], values["version"])
    if not values["pr_name"]:
        values["pr_name"] = title
    if not values["pr_commit_message"]:
        values["pr_commit_message"] = title
    if not values["pr_branch_name"]:
        values["pr_branch_name"] = default_branch_name(
            values["package"], values["version"], now
        )
    if not values["api_url"]:
        values["api_url"] = DEFAULT_API_URL

    return Options(**values)
