"""CLI 입력 파싱: KEY=VALUE 파라미터, owner/name repo 식별자."""

from __future__ import annotations

from collections.abc import Iterable

from drone_trigger.errors import InvalidRepositoryError


def parse_pairs(items: Iterable[str]) -> dict[str, str]:
    """KEY=VALUE 문자열 목록을 dict로 변환한다.

    - '='로 나눈 결과가 정확히 두 조각이 아니면 조용히 버린다
      (값에 '='가 들어간 KEY=a=b 도 버려진다)
    - 같은 키가 반복되면 마지막 값이 남는다
    - 예외를 던지지 않는다
    """
    params: dict[str, str] = {}
    for item in items:
        parts = item.split("=")
        if len(parts) != 2:
            continue
        params[parts[0]] = parts[1]
    return params


def parse_repo(value: str) -> tuple[str, str]:
    """owner/name 문자열을 (owner, name)으로 나눈다.

    Raises:
        InvalidRepositoryError: '/'가 정확히 하나가 아닐 때
    """
    parts = value.split("/")
    if len(parts) != 2:
        raise InvalidRepositoryError("invalid or missing repository. eg octocat/hello-world")
    return parts[0], parts[1]
