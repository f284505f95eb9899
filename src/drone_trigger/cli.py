"""Drone 빌드/배포 트리거 CLI.

drone-trigger -s https://drone.example.com -t $DRONE_TOKEN -r octocat/hello-world
drone-trigger -r octocat/hello-world --branch main --deploy-to production
drone-trigger -r foo/bar -r foo/baz --tag v1.0.0 -p IMAGE=foo/bar:v1.0.0 --fork
drone-trigger --config trigger.yaml --json-log
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
import orjson

from drone_trigger.client import DroneClient
from drone_trigger.config import load_config
from drone_trigger.errors import ConfigurationError, DroneTriggerError, MissingOptionError
from drone_trigger.logging_config import setup_logging
from drone_trigger.models import Build
from drone_trigger.trigger import trigger_repos

logger = logging.getLogger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version="0.1.0")
@click.option("-s", "--drone-server", "server", metavar="URL", default=None,
              help="Drone 서버 URL [env: DRONE_SERVER, PLUGIN_DRONE_SERVER]")
@click.option("-t", "--drone-token", "token", metavar="TOKEN", default=None,
              help="Drone 인증 토큰 [env: DRONE_TOKEN, PLUGIN_DRONE_TOKEN]")
@click.option("-r", "--repo", "repos", metavar="REPO", multiple=True,
              help="대상 repo (예: foo/bar), 반복 지정 가능 [env: REPO, PLUGIN_REPO]")
@click.option("-c", "--commit", default=None, help="commit sha로 필터")
@click.option("--tag", default=None, help="tag로 필터")
@click.option("-b", "--branch", default=None, help="branch로 필터 (pull_request 빌드 제외)")
@click.option("--status", default=None, help="빌드 상태로 필터 (기본: success)")
@click.option("--number", type=int, default=None, help="빌드 번호로 필터 (최우선)")
@click.option("--event", default=None, help="트리거 이벤트로 필터 (push, tag, ...)")
@click.option("--deployed-to", default=None, help="배포됐던 환경으로 필터")
@click.option("-d", "--deploy-to", default=None,
              help="배포 대상 환경. 지정하면 deployment 이벤트를 트리거한다")
@click.option("-p", "--param", "params", metavar="KEY=VALUE", multiple=True,
              help="트리거에 전달할 커스텀 파라미터, 반복 지정 가능")
@click.option("--fork", is_flag=True, help="새 빌드 번호로 재시작")
@click.option("-v", "--verbose", is_flag=True, help="새 빌드 레코드를 JSON으로 출력")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path),
              default=None, help="YAML 설정 파일 경로")
@click.option("--json-log", is_flag=True, help="JSON 형태 로그 출력")
@click.pass_context
def main(
    ctx: click.Context,
    server: str | None,
    token: str | None,
    repos: tuple[str, ...],
    commit: str | None,
    tag: str | None,
    branch: str | None,
    status: str | None,
    number: int | None,
    event: str | None,
    deployed_to: str | None,
    deploy_to: str | None,
    params: tuple[str, ...],
    fork: bool,
    verbose: bool,
    config_path: Path | None,
    json_log: bool,
) -> None:
    """이전 빌드를 찾아 Drone 빌드 또는 배포를 트리거한다."""
    cli_values = {
        "server": server,
        "token": token,
        "repos": repos,
        "commit": commit,
        "tag": tag,
        "branch": branch,
        "status": status,
        "number": number,
        "event": event,
        "deployed_to": deployed_to,
        "deploy_to": deploy_to,
        "params": params,
        "fork": fork,
        "verbose": verbose,
    }

    try:
        config = load_config(cli_values, path=config_path)
    except MissingOptionError as e:
        click.echo(ctx.get_help(), err=True)
        click.echo(f"error: {e}", err=True)
        sys.exit(e.exit_code)
    except ConfigurationError as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(e.exit_code)

    setup_logging(
        json_format=json_log,
        level=logging.DEBUG if config.verbose else logging.INFO,
    )
    logger.debug(
        "Resolved config: server=%s, repos=%s, filters=%s, deploy_to=%s, fork=%s",
        config.server, config.repos, config.filters.model_dump(exclude_none=True),
        config.deploy_to, config.fork,
    )

    with DroneClient(config.server, config.token, config.http) as client:
        try:
            for result in trigger_repos(
                client, config.repos, config.filters, config.params,
                deploy_to=config.deploy_to, fork=config.fork,
            ):
                click.echo(f"Follow new build status at: {result.follow_url}", err=True)
                if config.verbose:
                    click.echo(_dump_build(result.build))
        except DroneTriggerError as e:
            click.echo(f"error: {e}", err=True)
            sys.exit(e.exit_code)


def _dump_build(build: Build) -> str:
    """빌드 레코드를 들여쓰기 된 JSON 문자열로 변환한다."""
    data = build.model_dump(mode="json", by_alias=True)
    return orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()
