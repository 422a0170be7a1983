"""CLI entry point for pjson-updater."""

from __future__ import annotations

import click

from pjson_updater.config import load_env_file, resolve_options
from pjson_updater.console import fatal
from pjson_updater.errors import UpdaterError
from pjson_updater.pipeline import run_update


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-n", "--package", "package", help="Name of the package to update.")
@click.option("-v", "--version", "version", help="Needed version of the package.")
@click.option(
    "-r", "--repoName", "repo_name", help="Name of the Bitbucket repo to update."
)
@click.option(
    "-o",
    "--repoUserOrOrg",
    "repo_user_or_org",
    help="Owner of the repo (user or workspace).",
)
@click.option(
    "-b", "--repoBranch", "repo_branch", help="Target branch of the repo to update."
)
@click.option("-u", "--username", "username", help="Auth: user login.")
@click.option(
    "-p",
    "--password",
    "password",
    help="Auth: application password "
    "(https://bitbucket.org/account/settings/app-passwords/).",
)
@click.option(
    "--prName",
    "pr_name",
    help='Pull request title. (default: "Updated <repo> to <version>")',
)
@click.option(
    "--prBranchName",
    "pr_branch_name",
    help="Branch to create. (default: timestamped pjsonUpdater-… name)",
)
@click.option(
    "--prCommitMessage",
    "pr_commit_message",
    help="Commit message. (default: same as the pull request title)",
)
@click.option(
    "--apiUrl",
    "api_url",
    help="Bitbucket API base URL. (default: https://api.bitbucket.org/2.0)",
)
def cli(**cli_values: str | None) -> None:
    """Bitbucket package.json updater.

    Makes a PR to update a package version in package.json on Bitbucket.

    Every option can also be set through an environment variable named after
    the option in upper case (PACKAGE, VERSION, REPONAME, REPOUSERORORG,
    REPOBRANCH, USERNAME, PASSWORD, PRNAME, PRBRANCHNAME, PRCOMMITMESSAGE,
    APIURL), or in a .env file in the current directory.
    """
    load_env_file()

    try:
        options = resolve_options(cli_values)
        pr = run_update(options)
    except UpdaterError as exc:
        fatal(f"{exc.kind}: {exc}")

    click.echo("package.json updated successfully.")
    if pr.url:
        click.echo(f"Pull request: {pr.url}")
