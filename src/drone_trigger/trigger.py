"""이전 빌드를 찾아 재시작/배포를 트리거한다.

repo별 흐름: repo 파싱 -> 빌드 목록 조회 -> 매칭 -> 재시작 또는 배포 -> URL 보고.
여러 repo는 입력 순서대로 하나씩 처리하며, 하나라도 실패하면 나머지는 처리하지 않는다.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from drone_trigger.client import DroneClient
from drone_trigger.errors import BuildNotFoundError
from drone_trigger.filter import find_build
from drone_trigger.models import Build, FilterSet
from drone_trigger.parsing import parse_repo

logger = logging.getLogger(__name__)


@dataclass
class TriggerResult:
    """repo별 트리거 결과."""

    repo: str
    matched: Build        # 재사용한 이전 빌드
    build: Build          # 새로 생성된 빌드
    follow_url: str
    duration_ms: float = 0.0


def build_follow_url(server: str, repo: str, number: int) -> str:
    """새 빌드 상태를 볼 수 있는 URL을 만든다."""
    return f"{server.rstrip('/')}/{repo}/{number}"


def dispatch(
    client: DroneClient,
    owner: str,
    name: str,
    matched: Build,
    params: dict[str, str],
    *,
    deploy_to: str | None = None,
    fork: bool = False,
) -> Build:
    """매칭된 빌드로 배포 또는 재시작을 요청한다.

    - deploy_to가 있으면 배포 이벤트
    - 없으면 재시작. fork면 fork=true를 넣어 새 빌드 번호를 받는다
    """
    if deploy_to is not None:
        logger.info(
            "Deploying %s/%s #%d to %s", owner, name, matched.number, deploy_to,
            extra={"event_code": "DEPLOY", "build_number": matched.number},
        )
        return client.deploy(owner, name, matched.number, deploy_to, params)

    params = dict(params)
    if fork:
        params["fork"] = "true"
    logger.info(
        "Starting %s/%s #%d (fork=%s)", owner, name, matched.number, fork,
        extra={"event_code": "BUILD_START", "build_number": matched.number},
    )
    return client.start_build(owner, name, matched.number, params)


def trigger_repo(
    client: DroneClient,
    repo: str,
    filters: FilterSet,
    params: dict[str, str],
    *,
    deploy_to: str | None = None,
    fork: bool = False,
) -> TriggerResult:
    """단일 repo에 대해 이전 빌드를 찾아 트리거한다.

    Raises:
        InvalidRepositoryError: repo가 owner/name 형식이 아님
        BuildNotFoundError: 필터에 맞는 빌드가 없음
        DroneApiError: API 호출 실패
    """
    start_time = time.monotonic()
    owner, name = parse_repo(repo)

    builds = client.list_builds(owner, name)
    logger.debug(
        "Fetched %d builds for %s", len(builds), repo,
        extra={"repo": repo, "count": len(builds)},
    )

    matched = find_build(builds, filters)
    if matched is None:
        raise BuildNotFoundError(repo)

    new_build = dispatch(
        client, owner, name, matched, params, deploy_to=deploy_to, fork=fork,
    )
    duration_ms = (time.monotonic() - start_time) * 1000
    logger.info(
        "Triggered %s #%d from #%d", repo, new_build.number, matched.number,
        extra={
            "event_code": "TRIGGERED",
            "repo": repo,
            "build_number": new_build.number,
            "duration_ms": round(duration_ms, 1),
        },
    )
    return TriggerResult(
        repo=repo,
        matched=matched,
        build=new_build,
        follow_url=build_follow_url(client.server, repo, new_build.number),
        duration_ms=duration_ms,
    )


def trigger_repos(
    client: DroneClient,
    repos: Iterable[str],
    filters: FilterSet,
    params: dict[str, str],
    *,
    deploy_to: str | None = None,
    fork: bool = False,
) -> Iterator[TriggerResult]:
    """repo 목록을 순서대로 트리거하며 결과를 하나씩 내보낸다.

    첫 예외가 그대로 전파되어 남은 repo는 처리되지 않는다.
    """
    for repo in repos:
        yield trigger_repo(
            client, repo, filters, params, deploy_to=deploy_to, fork=fork,
        )
