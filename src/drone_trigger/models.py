"""Drone 빌드 / 필터 데이터 모델 (Pydantic)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

# 동시에 하나만 지정할 수 있는 필터
EXCLUSIVE_FILTERS = ("tag", "branch", "commit", "deployed_to")

TAG_REF_PREFIX = "refs/tags/"


class Build(BaseModel):
    """Drone 빌드 레코드.

    - number는 서버가 repo 단위로 부여하는 고유 번호
    - deploy는 API 응답의 deploy_to 필드 (배포 빌드가 아니면 빈 문자열)
    - 나머지 응답 필드는 verbose 출력을 위해 그대로 보존한다
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    number: int
    status: str = ""
    event: str = ""
    commit: str = ""
    ref: str = ""
    branch: str = ""
    deploy: str = Field(default="", alias="deploy_to")


class FilterSet(BaseModel):
    """이전 빌드 선택 조건.

    None이 아닌 필드만 "지정된" 필터로 취급한다. 환경변수로 들어온 빈 문자열도
    지정된 값이다. status는 항상 적용된다.
    """

    status: str = "success"
    event: str | None = None
    number: int | None = None
    commit: str | None = None
    tag: str | None = None
    branch: str | None = None
    deployed_to: str | None = None

    @model_validator(mode="after")
    def one_exclusive_filter(self) -> FilterSet:
        selected = [name for name in EXCLUSIVE_FILTERS if getattr(self, name) is not None]
        if len(selected) > 1:
            raise ValueError(
                "tag, branch, commit or deployed-to cannot be set at the same time, "
                "pick one filter"
            )
        return self
