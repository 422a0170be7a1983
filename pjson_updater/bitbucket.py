"""Bitbucket Cloud 2.0 REST client.

Wraps the four endpoints the update workflow needs:

- read a file at a ref          GET  /repositories/{owner}/{repo}/src/{ref}/{path}
- create a branch               POST /repositories/{owner}/{repo}/refs/branches
- commit a file (multipart)     POST /repositories/{owner}/{repo}/src
- open a pull request           POST /repositories/{owner}/{repo}/pullrequests

Every call uses HTTP Basic auth with an application password. Failures are
raised as RemoteError carrying Bitbucket's own error text when the response
body has one, so "file not found" and "bad credentials" read differently
from "connection refused".
"""

from __future__ import annotations

from importlib.metadata import version as pkg_version
from typing import Any

import httpx

from .errors import RemoteError
from .manifest import MANIFEST_FILENAME, dump_manifest, parse_manifest
from .models import DEFAULT_API_URL, BranchRef, Credentials, Options, PullRequest

USER_AGENT = f"pjson-updater/{pkg_version('pjson-updater')}"


def json_object(response: httpx.Response) -> dict[str, Any]:
    """Return the response body as a dict, or {} when it is not a JSON object."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def provider_message(response: httpx.Response) -> str | None:
    """Extract the error text Bitbucket embeds in a failed response.

    Bitbucket errors look like {"type": "error", "error": {"message": ...}}.
    A top-level "message" or string "error" is accepted as well.
    """
    body = json_object(response)

    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    elif isinstance(error, str) and error:
        return error

    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    return None


def raise_for_response(response: httpx.Response) -> None:
    """Raise RemoteError if response is not a 2xx.

    The message is "<provider message> (<status> <reason> for <METHOD> <url>)",
    or just the parenthesized transport part when the body carries nothing.
    """
    if response.is_success:
        return
    request = response.request
    transport = (
        f"{response.status_code} {response.reason_phrase} "
        f"for {request.method} {request.url}"
    )
    detail = provider_message(response)
    message = f"{detail} ({transport})" if detail else transport
    raise RemoteError(
        message, status_code=response.status_code, provider_message=detail
    )


class BitbucketClient:
    """Thin synchronous client over httpx for a single run.

    Use as a context manager so the underlying connection pool is closed.
    """

    def __init__(
        self,
        credentials: Credentials,
        base_url: str = DEFAULT_API_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=credentials.as_auth(),
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_options(cls, options: Options) -> BitbucketClient:
        return cls(options.credentials, base_url=options.api_url)

    def __enter__(self) -> BitbucketClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise RemoteError(f"{type(exc).__name__}: {exc} ({method} {path})") from exc
        raise_for_response(response)
        return response

    def get_manifest(self, owner: str, repo: str, branch: str) -> dict[str, Any]:
        """Fetch and parse package.json from the tip of branch."""
        response = self._request(
            "GET", f"/repositories/{owner}/{repo}/src/{branch}/{MANIFEST_FILENAME}"
        )
        return parse_manifest(response.text)

    def create_branch(
        self, owner: str, repo: str, source_ref: str, new_branch: str
    ) -> BranchRef:
        """Create new_branch pointing at source_ref (commit hash or branch name).

        Bitbucket rejects names that already exist; that error is passed
        through as-is.
        """
        self._request(
            "POST",
            f"/repositories/{owner}/{repo}/refs/branches",
            json={"name": new_branch, "target": {"hash": source_ref}},
        )
        return BranchRef(name=new_branch, target=source_ref)

    def upload_manifest(
        self,
        owner: str,
        repo: str,
        branch: str,
        manifest: dict[str, Any],
        message: str,
    ) -> None:
        """Commit manifest as package.json on branch in a single commit."""
        self._request(
            "POST",
            f"/repositories/{owner}/{repo}/src",
            data={"branch": branch, "message": message},
            files={
                MANIFEST_FILENAME: (
                    MANIFEST_FILENAME,
                    dump_manifest(manifest).encode("utf-8"),
                    "application/json",
                )
            },
        )

    def create_pull_request(
        self, owner: str, repo: str, source: str, destination: str, title: str
    ) -> PullRequest:
        """Open a PR from source into destination with the given title only.

        A 2xx means the PR exists, so an unreadable response body still
        yields a PullRequest; fields it cannot supply fall back to the request.
        """
        response = self._request(
            "POST",
            f"/repositories/{owner}/{repo}/pullrequests",
            json={
                "title": title,
                "source": {"branch": {"name": source}},
                "destination": {"branch": {"name": destination}},
            },
        )
        body = json_object(response)
        links = body.get("links")
        html = links.get("html") if isinstance(links, dict) else None
        href = html.get("href") if isinstance(html, dict) else None
        pr_id = body.get("id")
        title_out = body.get("title")
        return PullRequest(
            id=pr_id if isinstance(pr_id, int) else None,
            title=title_out if isinstance(title_out, str) and title_out else title,
            source=source,
            destination=destination,
            url=href if isinstance(href, str) else None,
        )
