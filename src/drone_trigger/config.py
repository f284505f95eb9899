"""설정 해석: CLI 플래그 > 환경변수 > YAML 설정 파일 > 기본값.

Drone 플러그인으로 실행될 때는 settings가 PLUGIN_* 환경변수로 들어오므로
옵션마다 여러 환경변수 이름을 우선순위대로 확인한다.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from drone_trigger.errors import ConfigurationError, MissingOptionError
from drone_trigger.models import FilterSet
from drone_trigger.parsing import parse_pairs

# ── 옵션별 환경변수 (앞쪽이 우선) ──────────────────────

ENV_VARS: dict[str, tuple[str, ...]] = {
    "server": ("DRONE_SERVER", "PLUGIN_DRONE_SERVER"),
    "token": ("DRONE_TOKEN", "PLUGIN_DRONE_TOKEN"),
    "repos": ("REPO", "PLUGIN_REPO"),
    "commit": ("FILTER_COMMIT", "PLUGIN_COMMIT"),
    "tag": ("FILTER_TAG", "PLUGIN_TAG"),
    "branch": ("FILTER_BRANCH", "PLUGIN_BRANCH"),
    "status": ("FILTER_STATUS", "PLUGIN_STATUS"),
    "number": ("FILTER_NUMBER", "PLUGIN_NUMBER"),
    "event": ("FILTER_EVENT", "PLUGIN_EVENT"),
    "deployed_to": ("FILTER_DEPLOYED_TO", "PLUGIN_DEPLOYED_TO"),
    "deploy_to": ("DEPLOY_TO", "PLUGIN_DEPLOY_TO"),
    "params": ("PARAMS", "PLUGIN_PARAMS"),
    "fork": ("FORK", "PLUGIN_FORK"),
    "verbose": ("VERBOSE", "PLUGIN_VERBOSE"),
}

FILTER_OPTIONS = ("status", "event", "number", "commit", "tag", "branch", "deployed_to")


# ── 설정 모델 ──────────────────────────────────────────


class HttpConfig(BaseModel):
    timeout_sec: float = Field(default=30.0, gt=0)
    user_agent: str = "drone-trigger/0.1.0"


class AppConfig(BaseModel):
    """실행 1회 분량의 설정."""

    server: str = Field(min_length=1)
    token: str = Field(min_length=1)
    repos: list[str] = Field(min_length=1)
    filters: FilterSet = Field(default_factory=FilterSet)
    deploy_to: str | None = None
    fork: bool = False
    verbose: bool = False
    params: dict[str, str] = Field(default_factory=dict)
    http: HttpConfig = Field(default_factory=HttpConfig)

    @field_validator("deploy_to", mode="before")
    @classmethod
    def empty_deploy_to_is_unset(cls, v: Any) -> Any:
        return v or None

    @field_validator("fork", "verbose", mode="before")
    @classmethod
    def empty_flag_is_false(cls, v: Any) -> Any:
        return False if v in (None, "") else v


# ── 해석 ───────────────────────────────────────────────


def resolve_option(
    flag_value: Any,
    env_vars: Sequence[str],
    environ: Mapping[str, str] | None = None,
) -> Any:
    """명시적 플래그 → 환경변수(순서대로) 중 처음 존재하는 값을 반환한다.

    환경변수는 값이 빈 문자열이어도 "존재"하면 채택한다. 모두 없으면 None.
    """
    if flag_value is not None:
        return flag_value
    env = os.environ if environ is None else environ
    for name in env_vars:
        if name in env:
            return env[name]
    return None


def _split_list(value: Any) -> list[str]:
    """환경변수/YAML의 목록 값을 list로 정규화한다 (문자열은 콤마 분리)."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        if err["type"] == "value_error":
            messages.append(str(err["ctx"]["error"]))
        else:
            loc = ".".join(str(part) for part in err["loc"])
            messages.append(f"{loc}: {err['msg']}")
    return "; ".join(messages)


def _load_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigurationError(f"Empty config file: {path}")
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file must be a mapping: {path}")
    return raw


def load_config(
    cli_values: Mapping[str, Any] | None = None,
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """CLI 값, 환경변수, YAML 설정을 합쳐 AppConfig로 검증한다.

    - .env 파일은 설정 파일 옆(없으면 작업 디렉토리)에서 읽고, 이미 설정된
      환경변수를 덮어쓰지 않는다
    - 플래그 미지정은 None, 빈 튜플, False로 표현한다
    - 네트워크 호출 전에 실패해야 하는 검증은 모두 여기서 끝낸다

    Raises:
        MissingOptionError: server / token / repo 누락
        ConfigurationError: 필터 충돌, 잘못된 값, 빈 설정 파일
    """
    cli_values = cli_values or {}

    if environ is None:
        dotenv_dir = path.parent if path is not None else Path.cwd()
        load_dotenv(dotenv_path=dotenv_dir / ".env", override=False)

    raw = _load_yaml(path) if path is not None else {}
    raw_filters = raw.get("filters") or {}
    if not isinstance(raw_filters, dict):
        raise ConfigurationError("filters must be a mapping")

    def resolve(name: str, fallback: Any = None) -> Any:
        flag = cli_values.get(name)
        if flag is False or (isinstance(flag, (tuple, list)) and not flag):
            flag = None
        value = resolve_option(flag, ENV_VARS[name], environ)
        return fallback if value is None else value

    server = resolve("server", raw.get("server"))
    if not server:
        raise MissingOptionError("drone server is not set")
    token = resolve("token", raw.get("token"))
    if not token:
        raise MissingOptionError("drone token is not set")
    repos = _split_list(resolve("repos", raw.get("repos")))
    if not repos:
        raise MissingOptionError("repo is not set")

    filters = {}
    for name in FILTER_OPTIONS:
        value = resolve(name, raw_filters.get(name))
        if value is not None:
            filters[name] = value

    data = {
        "server": server,
        "token": token,
        "repos": repos,
        "filters": filters,
        "deploy_to": resolve("deploy_to", raw.get("deploy_to")),
        "fork": resolve("fork", raw.get("fork")),
        "verbose": resolve("verbose", raw.get("verbose")),
        "params": parse_pairs(_split_list(resolve("params", raw.get("params")))),
        "http": raw.get("http") or {},
    }

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e
