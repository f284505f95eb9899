"""트리거 디스패처 테스트."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from drone_trigger.client import DroneApiError, DroneClient
from drone_trigger.errors import BuildNotFoundError, InvalidRepositoryError
from drone_trigger.models import Build, FilterSet
from drone_trigger.trigger import (
    TriggerResult,
    build_follow_url,
    dispatch,
    trigger_repo,
    trigger_repos,
)

from conftest import SERVER


@pytest.fixture()
def mock_client(sample_builds: list[Build]) -> MagicMock:
    client = MagicMock(spec=DroneClient)
    client.server = SERVER
    client.list_builds.return_value = sample_builds
    client.start_build.return_value = Build(number=8, status="pending")
    client.deploy.return_value = Build(number=9, status="pending", event="deployment")
    return client


class TestBuildFollowUrl:
    def test_join(self) -> None:
        assert build_follow_url(SERVER, "octocat/hello-world", 8) == f"{SERVER}/octocat/hello-world/8"

    def test_trailing_slash(self) -> None:
        assert build_follow_url(f"{SERVER}/", "a/b", 1) == f"{SERVER}/a/b/1"


class TestDispatch:
    def test_deploy(self, mock_client: MagicMock) -> None:
        matched = Build(number=4, status="success")
        result = dispatch(
            mock_client, "octocat", "hello-world", matched, {"A": "1"}, deploy_to="production",
        )

        assert result.number == 9
        mock_client.deploy.assert_called_once_with(
            "octocat", "hello-world", 4, "production", {"A": "1"},
        )
        mock_client.start_build.assert_not_called()

    def test_start(self, mock_client: MagicMock) -> None:
        matched = Build(number=4, status="success")
        result = dispatch(mock_client, "octocat", "hello-world", matched, {"A": "1"})

        assert result.number == 8
        mock_client.start_build.assert_called_once_with("octocat", "hello-world", 4, {"A": "1"})
        mock_client.deploy.assert_not_called()

    def test_fork_injects_param(self, mock_client: MagicMock) -> None:
        matched = Build(number=4, status="success")
        params = {"A": "1"}

        dispatch(mock_client, "octocat", "hello-world", matched, params, fork=True)

        mock_client.start_build.assert_called_once_with(
            "octocat", "hello-world", 4, {"A": "1", "fork": "true"},
        )
        assert params == {"A": "1"}

    def test_fork_ignored_for_deploy(self, mock_client: MagicMock) -> None:
        """배포 경로에서는 fork 파라미터를 직접 넣지 않는다 (클라이언트가 처리)."""
        matched = Build(number=4, status="success")

        dispatch(mock_client, "o", "n", matched, {}, deploy_to="staging", fork=True)

        mock_client.deploy.assert_called_once_with("o", "n", 4, "staging", {})


class TestTriggerRepo:
    def test_success(self, mock_client: MagicMock) -> None:
        result = trigger_repo(mock_client, "octocat/hello-world", FilterSet(tag="v1.0.0"), {})

        assert isinstance(result, TriggerResult)
        assert result.repo == "octocat/hello-world"
        assert result.matched.number == 3
        assert result.build.number == 8
        assert result.follow_url == f"{SERVER}/octocat/hello-world/8"
        mock_client.list_builds.assert_called_once_with("octocat", "hello-world")
        mock_client.start_build.assert_called_once_with("octocat", "hello-world", 3, {})

    def test_deploy(self, mock_client: MagicMock) -> None:
        result = trigger_repo(
            mock_client, "octocat/hello-world", FilterSet(branch="main"), {},
            deploy_to="production",
        )

        assert result.follow_url == f"{SERVER}/octocat/hello-world/9"
        mock_client.deploy.assert_called_once_with(
            "octocat", "hello-world", 5, "production", {},
        )

    def test_not_found(self, mock_client: MagicMock) -> None:
        with pytest.raises(BuildNotFoundError, match="No previous builds found"):
            trigger_repo(mock_client, "octocat/hello-world", FilterSet(tag="v9"), {})
        mock_client.start_build.assert_not_called()
        mock_client.deploy.assert_not_called()

    def test_invalid_repo_before_network(self, mock_client: MagicMock) -> None:
        with pytest.raises(InvalidRepositoryError):
            trigger_repo(mock_client, "octocat", FilterSet(), {})
        mock_client.list_builds.assert_not_called()

    def test_api_error_propagates(self, mock_client: MagicMock) -> None:
        mock_client.list_builds.side_effect = DroneApiError(500, "boom")
        with pytest.raises(DroneApiError, match="boom"):
            trigger_repo(mock_client, "octocat/hello-world", FilterSet(), {})


class TestTriggerRepos:
    def test_sequential_in_order(self, mock_client: MagicMock) -> None:
        results = list(trigger_repos(mock_client, ["a/one", "b/two"], FilterSet(), {"K": "v"}))

        assert [r.repo for r in results] == ["a/one", "b/two"]
        assert [c.args for c in mock_client.list_builds.call_args_list] == [
            ("a", "one"), ("b", "two"),
        ]
        assert [c.args for c in mock_client.start_build.call_args_list] == [
            ("a", "one", 6, {"K": "v"}), ("b", "two", 6, {"K": "v"}),
        ]

    def test_abort_on_first_error(self, mock_client: MagicMock, sample_builds: list[Build]) -> None:
        mock_client.list_builds.side_effect = [sample_builds, [], sample_builds]

        results: list[TriggerResult] = []
        with pytest.raises(BuildNotFoundError):
            for result in trigger_repos(mock_client, ["a/one", "b/two", "c/three"], FilterSet(), {}):
                results.append(result)

        assert [r.repo for r in results] == ["a/one"]
        assert mock_client.list_builds.call_count == 2
        assert mock_client.start_build.call_count == 1

    def test_invalid_second_repo_aborts(self, mock_client: MagicMock) -> None:
        with pytest.raises(InvalidRepositoryError):
            list(trigger_repos(mock_client, ["a/one", "bad", "c/three"], FilterSet(), {}))
        assert mock_client.list_builds.call_count == 1
