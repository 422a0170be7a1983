"""Tests for pjson_updater.pipeline."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock, call, patch

import httpx
import pytest
import respx

from pjson_updater.bitbucket import BitbucketClient
from pjson_updater.errors import ManifestError, RemoteError
from pjson_updater.models import BranchRef, Options, PullRequest
from pjson_updater.pipeline import patch_dependency, run_update

REPO = "https://api.bitbucket.org/2.0/repositories/team/web-app"


@pytest.fixture
def mock_client(manifest: dict[str, Any]) -> MagicMock:
    """A BitbucketClient double returning a successful result at every step."""
    client = MagicMock(spec=BitbucketClient)
    client.get_manifest.return_value = manifest
    client.create_branch.return_value = BranchRef(
        name="pjsonUpdater-test-upd-left-pad-to-1.3.0", target="main"
    )
    client.create_pull_request.return_value = PullRequest(
        id=42,
        title="Updated web-app to 1.3.0",
        source="pjsonUpdater-test-upd-left-pad-to-1.3.0",
        destination="main",
        url="https://bitbucket.org/team/web-app/pull-requests/42",
    )
    return client


class TestRunUpdate:
    """Tests for run_update() with a mocked client."""

    @patch("pjson_updater.pipeline.step")
    def test_calls_steps_in_order(
        self, mock_step: MagicMock, mock_client: MagicMock, options: Options
    ) -> None:
        """Fetch, branch, upload and PR happen once each, in that order."""
        run_update(options, mock_client)

        assert [c[0] for c in mock_client.method_calls] == [
            "get_manifest",
            "create_branch",
            "upload_manifest",
            "create_pull_request",
        ]

    @patch("pjson_updater.pipeline.step")
    def test_each_step_gets_previous_output(
        self,
        mock_step: MagicMock,
        mock_client: MagicMock,
        options: Options,
        manifest: dict[str, Any],
    ) -> None:
        """The patched manifest and generated branch name flow downstream."""
        branch = "pjsonUpdater-test-upd-left-pad-to-1.3.0"

        pr = run_update(options, mock_client)

        mock_client.get_manifest.assert_called_once_with("team", "web-app", "main")
        mock_client.create_branch.assert_called_once_with(
            "team", "web-app", "main", branch
        )
        uploaded = mock_client.upload_manifest.call_args
        assert uploaded == call(
            "team", "web-app", branch, uploaded[0][3], "Updated web-app to 1.3.0"
        )
        assert uploaded[0][3]["dependencies"]["left-pad"] == "1.3.0"
        assert uploaded[0][3]["devDependencies"] == manifest["devDependencies"]
        mock_client.create_pull_request.assert_called_once_with(
            "team", "web-app", branch, "main", "Updated web-app to 1.3.0"
        )
        assert pr.id == 42

    @patch("pjson_updater.pipeline.step")
    def test_missing_package_stops_before_remote_writes(
        self, mock_step: MagicMock, mock_client: MagicMock, options: Options
    ) -> None:
        """A manifest without the package aborts before any branch is created."""
        mock_client.get_manifest.return_value = {"dependencies": {"react": "16.0.0"}}

        with pytest.raises(ManifestError):
            run_update(options, mock_client)

        mock_client.create_branch.assert_not_called()
        mock_client.upload_manifest.assert_not_called()
        mock_client.create_pull_request.assert_not_called()

    @patch("pjson_updater.pipeline.step")
    def test_branch_failure_aborts(
        self, mock_step: MagicMock, mock_client: MagicMock, options: Options
    ) -> None:
        """A failed branch creation skips upload and PR."""
        mock_client.create_branch.side_effect = RemoteError("BRANCH_ALREADY_EXISTS")

        with pytest.raises(RemoteError, match="BRANCH_ALREADY_EXISTS"):
            run_update(options, mock_client)

        mock_client.upload_manifest.assert_not_called()
        mock_client.create_pull_request.assert_not_called()

    @patch("pjson_updater.pipeline.step")
    def test_pr_failure_leaves_earlier_work_alone(
        self, mock_step: MagicMock, mock_client: MagicMock, options: Options
    ) -> None:
        """No compensation: nothing is deleted when the last step fails."""
        mock_client.create_pull_request.side_effect = RemoteError("boom")

        with pytest.raises(RemoteError):
            run_update(options, mock_client)

        mock_client.upload_manifest.assert_called_once()
        assert not any("delete" in name for name, *_ in mock_client.method_calls)

    @patch("pjson_updater.pipeline.step")
    def test_pull_request_without_id(
        self,
        mock_step: MagicMock,
        mock_client: MagicMock,
        options: Options,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A PR reported without an id still completes the run."""
        mock_client.create_pull_request.return_value = PullRequest(
            title="Bump left-pad", source="upd", destination="main"
        )

        pr = run_update(options, mock_client)

        assert pr.id is None
        out = capsys.readouterr().out
        assert "  Bump left-pad\n" in out
        assert "#None" not in out

    @patch("pjson_updater.pipeline.BitbucketClient")
    @patch("pjson_updater.pipeline.step")
    def test_builds_and_closes_client_when_none_given(
        self,
        mock_step: MagicMock,
        mock_client_cls: MagicMock,
        mock_client: MagicMock,
        options: Options,
    ) -> None:
        """Without an explicit client, one is built from options and closed."""
        mock_client_cls.from_options.return_value.__enter__.return_value = mock_client

        run_update(options)

        mock_client_cls.from_options.assert_called_once_with(options)
        mock_client_cls.from_options.return_value.__exit__.assert_called_once()
        mock_client.create_pull_request.assert_called_once()


class TestPatchDependency:
    @patch("pjson_updater.pipeline.step")
    def test_reports_old_and_new_version(
        self,
        mock_step: MagicMock,
        options: Options,
        manifest: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        patched = patch_dependency(manifest, options)

        assert patched["dependencies"]["left-pad"] == "1.3.0"
        assert "dependencies: left-pad 1.0.0 → 1.3.0" in capsys.readouterr().out


@respx.mock
def test_end_to_end_over_http(options: Options) -> None:
    """Four HTTP calls in order, each carrying the previous step's artifacts."""
    branch = options.pr_branch_name
    respx.get(f"{REPO}/src/main/package.json").mock(
        return_value=httpx.Response(
            200,
            text=json.dumps(
                {"dependencies": {"left-pad": "1.0.0"}, "devDependencies": {"jest": "24.0.0"}}
            ),
        )
    )
    respx.post(f"{REPO}/refs/branches").mock(
        return_value=httpx.Response(201, json={"name": branch})
    )
    respx.post(f"{REPO}/src").mock(return_value=httpx.Response(201))
    respx.post(f"{REPO}/pullrequests").mock(
        return_value=httpx.Response(
            201,
            json={
                "id": 5,
                "title": options.pr_name,
                "links": {"html": {"href": "https://bitbucket.org/team/web-app/pull-requests/5"}},
            },
        )
    )

    pr = run_update(options)

    requests = [c.request for c in respx.calls]
    assert [(r.method, r.url.path) for r in requests] == [
        ("GET", "/2.0/repositories/team/web-app/src/main/package.json"),
        ("POST", "/2.0/repositories/team/web-app/refs/branches"),
        ("POST", "/2.0/repositories/team/web-app/src"),
        ("POST", "/2.0/repositories/team/web-app/pullrequests"),
    ]
    assert json.loads(requests[1].content)["name"] == branch
    upload = requests[2].read().decode()
    assert branch in upload
    assert '"left-pad": "1.3.0"' in upload
    assert '"jest": "24.0.0"' in upload
    assert json.loads(requests[3].content)["source"] == {"branch": {"name": branch}}
    assert pr.url == "https://bitbucket.org/team/web-app/pull-requests/5"
