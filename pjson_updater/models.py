"""Data models for pjson-updater.

These Pydantic models carry the resolved run configuration and the remote
objects (branches, pull requests) created during an update.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, SecretStr

DEFAULT_API_URL = "https://api.bitbucket.org/2.0"


class Credentials(BaseModel):
    """HTTP Basic credentials for the Bitbucket API.

    Attributes:
        username: Bitbucket account name.
        password: Application password. Kept as a SecretStr so it never
                  shows up in reprs or error output.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr

    def as_auth(self) -> tuple[str, str]:
        """Return a (username, password) tuple suitable for httpx auth."""
        return (self.username, self.password.get_secret_value())


class Options(BaseModel):
    """Fully resolved options for a single run.

    Built once by ``config.resolve_options`` after CLI values, environment
    fallbacks and derived defaults have been merged. Frozen afterwards.

    Attributes:
        package: Name of the dependency to update.
        version: New version specifier, written to package.json verbatim.
        repo_name: Repository slug.
        repo_user_or_org: Workspace (user or organization) owning the repo.
        repo_branch: Branch package.json is read from and the PR targets.
        username: Auth user.
        password: Auth application password.
        pr_name: Pull request title.
        pr_branch_name: Name of the branch created for the change.
        pr_commit_message: Message of the commit carrying the change.
        api_url: Base URL of the Bitbucket 2.0 REST API.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    version: str
    repo_name: str
    repo_user_or_org: str
    repo_branch: str
    username: str
    password: SecretStr
    pr_name: str
    pr_branch_name: str
    pr_commit_message: str
    api_url: str = DEFAULT_API_URL

    @property
    def credentials(self) -> Credentials:
        return Credentials(username=self.username, password=self.password)


class BranchRef(BaseModel):
    """A branch created on the remote.

    Attributes:
        name: Branch name.
        target: Ref (commit hash or branch name) the branch was created from.
    """

    name: str
    target: str


class PullRequest(BaseModel):
    """A pull request opened by the tool.

    Attributes:
        id: Bitbucket pull request id, when the response carries one.
        title: PR title.
        source: Source branch name (the branch carrying the change).
        destination: Destination branch name (the original branch).
        url: Link to the PR in the Bitbucket web UI, when the API returns one.
    """

    id: int | None = None
    title: str
    source: str
    destination: str
    url: str | None = None
