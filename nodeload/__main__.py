"""
Main Entry Point for Real Node Load Scheduler
Real Node Load 스케줄러의 메인 엔트리포인트입니다.
"""

import argparse
import logging
import sys
from typing import List

import yaml

from . import __version__
from .config import Config
from .scheduler import NodeLoadScheduler


def setup_logging(log_level: str):
    """stdout 로깅을 설정합니다. log_level은 argparse choices로 검증됩니다."""
    logging.basicConfig(
        level=log_level,
        format=Config.LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def parse_arguments(argv=None):
    """명령행 인수를 파싱합니다."""
    parser = argparse.ArgumentParser(
        description="Real Node Load Scheduler (dry-run host for the node load plugin)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 대기 중인 Pod를 주기적으로 평가
  python -m nodeload

  # Pod 하나의 배치 노드 평가
  python -m nodeload --pod my-pod --namespace default

  # 설정 파일 지정
  python -m nodeload --config /path/to/config.yaml

  # 헬스 체크 모드
  python -m nodeload --health-check
        """,
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=Config.LOG_LEVEL,
        help="로그 레벨 설정 (기본값: INFO)",
    )
    parser.add_argument("--config", type=str, help="설정 파일 경로")
    parser.add_argument(
        "--health-check", action="store_true", help="헬스 체크 모드로 실행"
    )
    parser.add_argument("--pod", type=str, help="평가할 Pod 이름")
    parser.add_argument(
        "--namespace", type=str, default=Config.NAMESPACE, help="Pod 네임스페이스"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Real Node Load Scheduler v{__version__}",
    )

    return parser.parse_args(argv)


def load_config_file(config_path: str) -> List[str]:
    """YAML 설정 파일의 대문자 키로 Config 값을 덮어쓰고, 적용한 키를 반환합니다."""
    try:
        with open(config_path, "r") as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load config file {config_path}: {e}")
        sys.exit(1)

    known = Config.as_dict()
    applied = sorted(key for key in overrides if key in known)
    for key in applied:
        setattr(Config, key, overrides[key])

    unknown = sorted(set(overrides) - set(applied))
    if unknown:
        logging.warning(f"Ignoring unknown config keys in {config_path}: {unknown}")
    logging.info(f"Config overrides from {config_path}: {applied}")
    return applied


def health_check_mode(scheduler: NodeLoadScheduler):
    """헬스 체크 모드로 실행합니다."""
    if not scheduler.initialize():
        print("❌ Scheduler initialization failed")
        sys.exit(1)

    health_status = scheduler.health_check()

    if health_status["status"] == "healthy":
        print("✅ Real Node Load scheduler is healthy")
        print(f"   Kubernetes connected: {health_status['kubernetes_connected']}")
        print(f"   Cluster nodes: {health_status['cluster_nodes']}")
        print(f"   Nodes with load metrics: {health_status['load_metric_nodes']}")
    else:
        print("❌ Real Node Load scheduler is unhealthy")
        print(f"   Error: {health_status.get('error', 'no nodes found')}")
        sys.exit(1)


def evaluate_pod_mode(scheduler: NodeLoadScheduler, name: str, namespace: str):
    """Pod 하나의 배치 결과를 출력합니다."""
    if not scheduler.initialize():
        print("❌ Scheduler initialization failed")
        sys.exit(1)

    pod = scheduler.k8s_client.get_pod(name, namespace)
    if pod is None:
        print(f"❌ Pod {namespace}/{name} not found")
        sys.exit(1)

    result = scheduler.schedule_pod(pod)

    for node_name, reason in sorted(result.filtered_nodes.items()):
        print(f"   filtered {node_name}: {reason}")
    for node_score in sorted(result.scores, key=lambda s: s.score, reverse=True):
        print(f"   {node_score.name}: {node_score.score}")

    if not result.scheduled:
        print(f"❌ {namespace}/{name}: {result.error}")
        sys.exit(1)
    print(f"✅ {namespace}/{name} -> {result.selected_node}")


def main(argv=None):
    """메인 함수"""
    args = parse_arguments(argv)

    setup_logging(args.log_level)

    if args.config:
        load_config_file(args.config)

    scheduler = NodeLoadScheduler()

    if args.health_check:
        health_check_mode(scheduler)
        return

    if args.pod:
        evaluate_pod_mode(scheduler, args.pod, args.namespace)
        return

    try:
        scheduler.run()
    except KeyboardInterrupt:
        logging.info("Received keyboard interrupt, shutting down...")
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
