"""Drone REST API 동기 클라이언트.

drone-trigger가 사용하는 세 가지 호출만 제공한다.
- 빌드 목록 조회 (최신순)
- 이전 빌드 재시작 (파라미터 포함)
- 이전 빌드로 배포 이벤트 생성
재시도는 하지 않는다. 실패는 DroneApiError로 그대로 올린다.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from drone_trigger.config import HttpConfig
from drone_trigger.errors import DroneTriggerError
from drone_trigger.models import Build

logger = logging.getLogger(__name__)


class DroneApiError(DroneTriggerError):
    """Drone API 호출 실패 (status_code 0은 전송 계층 실패)."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Drone API error {status_code}: {message}")


class DroneUnauthorizedError(DroneApiError):
    """토큰이 없거나 권한이 없음 (401/403)."""


class DroneClient:
    """Drone REST API 클라이언트."""

    def __init__(self, server: str, token: str, config: HttpConfig | None = None) -> None:
        config = config or HttpConfig()
        self.server = server.rstrip("/")
        self._client = httpx.Client(
            base_url=self.server,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "User-Agent": config.user_agent,
            },
            timeout=config.timeout_sec,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> Any:
        """공통 요청 메서드. 2xx가 아니면 예외를 던진다."""
        logger.debug("%s %s params=%s", method, path, params or {})
        try:
            resp = self._client.request(method, path, params=params)
        except httpx.HTTPError as e:
            raise DroneApiError(0, f"{type(e).__name__}: {e}") from e

        if resp.status_code in (401, 403):
            raise DroneUnauthorizedError(resp.status_code, _error_message(resp))
        if not resp.is_success:
            raise DroneApiError(resp.status_code, _error_message(resp))

        try:
            return resp.json()
        except ValueError as e:
            raise DroneApiError(resp.status_code, f"Invalid JSON response: {e}") from e

    @staticmethod
    def _to_build(status_code: int, data: Any) -> Build:
        try:
            return Build.model_validate(data)
        except ValidationError as e:
            raise DroneApiError(status_code, f"Unexpected build record: {e}") from e

    def list_builds(self, owner: str, name: str) -> list[Build]:
        """repo의 빌드 목록을 서버가 반환한 순서(최신순) 그대로 반환한다."""
        data = self._request("GET", f"/api/repos/{owner}/{name}/builds")
        if not isinstance(data, list):
            raise DroneApiError(200, "Unexpected build list response")
        return [self._to_build(200, item) for item in data]

    def start_build(
        self,
        owner: str,
        name: str,
        number: int,
        params: dict[str, str] | None = None,
    ) -> Build:
        """이전 빌드를 재시작한다. params는 쿼리스트링으로 전달된다.

        params에 fork=true가 있으면 서버가 새 빌드 번호를 부여한다.
        """
        data = self._request(
            "POST", f"/api/repos/{owner}/{name}/builds/{number}", params=dict(params or {}),
        )
        return self._to_build(200, data)

    def deploy(
        self,
        owner: str,
        name: str,
        number: int,
        environment: str,
        params: dict[str, str] | None = None,
    ) -> Build:
        """이전 빌드로부터 environment 대상 배포 빌드를 생성한다."""
        query = dict(params or {})
        query["fork"] = "true"
        query["event"] = "deployment"
        query["deploy_to"] = environment
        data = self._request(
            "POST", f"/api/repos/{owner}/{name}/builds/{number}", params=query,
        )
        return self._to_build(200, data)

    def close(self) -> None:
        """HTTP 클라이언트를 닫는다."""
        self._client.close()

    def __enter__(self) -> DroneClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def _error_message(resp: httpx.Response) -> str:
    """에러 응답 본문을 그대로 메시지로 쓴다 (비어 있으면 reason phrase)."""
    return resp.text.strip() or resp.reason_phrase
