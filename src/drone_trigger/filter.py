"""이전 빌드 매칭 로직."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from drone_trigger.models import TAG_REF_PREFIX, Build, FilterSet

logger = logging.getLogger(__name__)


def match_build(filters: FilterSet, build: Build) -> bool:
    """빌드가 필터 조건에 맞는지 판정한다.

    판정 순서 (먼저 적용되는 규칙이 결과를 확정한다):
    - status 불일치면 거절 (기본값 success도 항상 적용)
    - event가 지정됐고 불일치면 거절
    - number > commit > tag > deployed_to > branch 순으로 지정된 첫 필터의
      일치 여부가 곧 결과
    - 아무 선택 필터도 없으면 통과 (가장 최근 빌드)
    """
    if build.status != filters.status:
        return False

    if filters.event is not None and build.event != filters.event:
        return False

    # 빌드 번호가 항상 우선
    if filters.number is not None:
        return build.number == filters.number

    if filters.commit is not None:
        return build.commit == filters.commit

    if filters.tag is not None:
        return build.ref == TAG_REF_PREFIX + filters.tag

    if filters.deployed_to is not None:
        return build.deploy == filters.deployed_to

    # pull_request 빌드의 branch는 base branch라서 branch 매칭 대상이 아니다
    if filters.branch is not None:
        return build.branch == filters.branch and build.event != "pull_request"

    return True


def find_build(builds: Iterable[Build], filters: FilterSet) -> Build | None:
    """주어진 순서(최신순)대로 훑어 처음 매칭되는 빌드를 반환한다.

    정렬/중복 제거는 하지 않는다. 매칭이 없으면 None.
    """
    for build in builds:
        if match_build(filters, build):
            logger.debug(
                "Matched build #%d (status=%s, event=%s, branch=%s)",
                build.number, build.status, build.event, build.branch,
                extra={"build_number": build.number},
            )
            return build
    return None
