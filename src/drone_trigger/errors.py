"""drone-trigger 에러 정의.

exit code 규약:
- 0: 성공
- 1: 실행 실패 (빌드 없음, API 호출 실패, 잘못된 repo)
- 2: click 사용법 오류
- 3: 설정 오류 (필수 값 누락, 필터 충돌)
"""

from __future__ import annotations


class DroneTriggerError(Exception):
    """drone-trigger 실행을 중단시키는 에러의 기반 클래스."""

    exit_code = 1


class ConfigurationError(DroneTriggerError):
    """필수 설정 누락 또는 필터 충돌. 네트워크 호출 전에 발생한다."""

    exit_code = 3


class MissingOptionError(ConfigurationError):
    """필수 옵션(server, token, repo)이 플래그/환경변수 어디에도 없다."""


class InvalidRepositoryError(DroneTriggerError):
    """owner/name 형식이 아닌 repo 식별자."""


class BuildNotFoundError(DroneTriggerError):
    """필터에 맞는 이전 빌드가 없다."""

    def __init__(self, repo: str):
        self.repo = repo
        super().__init__(f"No previous builds found for {repo}")
