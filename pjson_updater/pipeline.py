"""Update workflow: fetch → patch → branch → commit → pull request.

This module orchestrates a single package.json update:
1. Fetch package.json from the target branch
2. Patch the requested dependency in memory
3. Create a fresh branch off the target branch
4. Commit the patched package.json to that branch
5. Open a pull request back into the target branch

Steps run strictly in order, each consuming the previous step's output. The
first failure aborts the run. Nothing is rolled back: if opening the pull
request fails, the branch and commit created before it stay on the remote.
"""

from __future__ import annotations

from typing import Any

from .bitbucket import BitbucketClient
from .console import detail, step
from .manifest import MANIFEST_FILENAME, find_dependency, patch_manifest
from .models import BranchRef, Options, PullRequest


def fetch_manifest(client: BitbucketClient, options: Options) -> dict[str, Any]:
    """Download package.json from the target branch."""
    step(
        f"Fetching {MANIFEST_FILENAME} from "
        f"{options.repo_user_or_org}/{options.repo_name}@{options.repo_branch}"
    )
    manifest = client.get_manifest(
        options.repo_user_or_org, options.repo_name, options.repo_branch
    )
    detail(f"{manifest.get('name', '<unnamed>')} {manifest.get('version', '')}".rstrip())
    return manifest


def patch_dependency(manifest: dict[str, Any], options: Options) -> dict[str, Any]:
    """Set the requested package's version, reporting the old → new change."""
    step(f"Updating {options.package} to {options.version}")
    patched = patch_manifest(manifest, options.package, options.version)
    section = find_dependency(manifest, options.package)
    old = manifest[section][options.package]
    detail(f"{section}: {options.package} {old} → {options.version}")
    return patched


def create_branch(client: BitbucketClient, options: Options) -> BranchRef:
    """Create the branch that will carry the change."""
    step(f"Creating branch {options.pr_branch_name}")
    branch = client.create_branch(
        options.repo_user_or_org,
        options.repo_name,
        options.repo_branch,
        options.pr_branch_name,
    )
    detail(f"from {branch.target}")
    return branch


def commit_manifest(
    client: BitbucketClient,
    options: Options,
    branch: BranchRef,
    manifest: dict[str, Any],
) -> None:
    """Commit the patched package.json onto branch."""
    step(f"Committing {MANIFEST_FILENAME} to {branch.name}")
    client.upload_manifest(
        options.repo_user_or_org,
        options.repo_name,
        branch.name,
        manifest,
        options.pr_commit_message,
    )
    detail(options.pr_commit_message)


def open_pull_request(
    client: BitbucketClient, options: Options, branch: BranchRef
) -> PullRequest:
    """Open a pull request from branch into the original target branch."""
    step(f"Opening pull request {branch.name} → {options.repo_branch}")
    pr = client.create_pull_request(
        options.repo_user_or_org,
        options.repo_name,
        branch.name,
        options.repo_branch,
        options.pr_name,
    )
    detail(f"#{pr.id} {pr.title}" if pr.id is not None else pr.title)
    if pr.url:
        detail(pr.url)
    return pr


def run_update(
    options: Options, client: BitbucketClient | None = None
) -> PullRequest:
    """Execute the full update workflow.

    Args:
        options: Resolved run options.
        client: Client to use. When omitted, one is built from options and
                closed when the run ends.

    Returns:
        The pull request that was opened.

    Raises:
        UpdaterError: From whichever step failed first.
    """
    if client is None:
        with BitbucketClient.from_options(options) as owned:
            return run_update(options, owned)

    manifest = fetch_manifest(client, options)
    patched = patch_dependency(manifest, options)
    branch = create_branch(client, options)
    commit_manifest(client, options, branch, patched)
    pr = open_pull_request(client, options, branch)

    print(f"\n{'=' * 60}\nDone!\n{'=' * 60}")
    return pr
