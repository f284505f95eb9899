"""공통 fixture."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest
import yaml

from drone_trigger.config import ENV_VARS
from drone_trigger.models import Build

SERVER = "https://drone.example.com"
TOKEN = "test-token"


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """호스트 CI 환경변수와 작업 디렉토리의 .env가 테스트에 섞이지 않게 한다.

    setenv 후 delenv 하면 테스트 중 load_dotenv가 넣은 값도 teardown 시 제거된다.
    """
    for names in ENV_VARS.values():
        for name in names:
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield
    logging.getLogger("drone_trigger").handlers.clear()


@pytest.fixture()
def sample_build_payloads() -> list[dict[str, Any]]:
    """Drone 빌드 목록 API 응답 샘플 (최신순)."""
    return [
        {"number": 7, "status": "running", "event": "push", "commit": "c7",
         "ref": "refs/heads/main", "branch": "main", "deploy_to": ""},
        {"number": 6, "status": "success", "event": "pull_request", "commit": "c6",
         "ref": "refs/pull/12/head", "branch": "main", "deploy_to": ""},
        {"number": 5, "status": "success", "event": "deployment", "commit": "c4",
         "ref": "refs/heads/main", "branch": "main", "deploy_to": "production"},
        {"number": 4, "status": "success", "event": "push", "commit": "c4",
         "ref": "refs/heads/main", "branch": "main", "deploy_to": ""},
        {"number": 3, "status": "success", "event": "tag", "commit": "c3",
         "ref": "refs/tags/v1.0.0", "branch": "main", "deploy_to": ""},
        {"number": 2, "status": "failure", "event": "push", "commit": "c2",
         "ref": "refs/heads/feature", "branch": "feature", "deploy_to": ""},
        {"number": 1, "status": "success", "event": "push", "commit": "c1",
         "ref": "refs/heads/feature", "branch": "feature", "deploy_to": ""},
    ]


@pytest.fixture()
def sample_builds(sample_build_payloads: list[dict[str, Any]]) -> list[Build]:
    return [Build.model_validate(p) for p in sample_build_payloads]


@pytest.fixture()
def new_build_payload() -> dict[str, Any]:
    """빌드 시작/배포 API 응답 샘플."""
    return {
        "id": 1008,
        "number": 8,
        "status": "pending",
        "event": "push",
        "commit": "c4",
        "ref": "refs/heads/main",
        "branch": "main",
        "deploy_to": "",
        "author": "octocat",
        "link_url": "https://github.com/octocat/hello-world/commit/c4",
    }


@pytest.fixture()
def sample_config_data() -> dict[str, Any]:
    """테스트용 YAML config dict."""
    return {
        "server": SERVER,
        "token": "yaml-token",
        "repos": ["octocat/hello-world"],
        "filters": {"branch": "main"},
        "params": ["IMAGE=app"],
        "http": {"timeout_sec": 5.0},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, sample_config_data: dict[str, Any]) -> Path:
    """임시 config.yaml 파일."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump(sample_config_data), encoding="utf-8")
    return config_path
