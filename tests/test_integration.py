"""
Real Node Load 스케줄러 통합 테스트
Mock Kubernetes 클라이언트 위에서 PreFilter부터 Bind까지 전체 흐름을 테스트합니다.
"""

import signal
from unittest.mock import Mock, patch

import pytest

from conftest import NOW, PREFIX, make_node, metric
from nodeload.__main__ import load_config_file, parse_arguments
from nodeload.config import Config
from nodeload.errors import NodeLookupError
from nodeload.plugin import RealNodeLoad
from nodeload.scheduler import NodeLoadScheduler


@pytest.fixture
def scheduler(mock_k8s_client, plugin):
    scheduler = NodeLoadScheduler(k8s_client=mock_k8s_client, plugin=plugin)
    assert scheduler.initialize() is True
    return scheduler


@pytest.mark.integration
class TestSchedulingWorkflow:
    """스케줄링 흐름 테스트"""

    def test_selects_least_loaded_node(self, scheduler, sample_pod):
        result = scheduler.schedule_pod(sample_pod)

        assert result.scheduled
        assert result.selected_node == "node-idle"
        assert result.filtered_nodes == {"node-hot": "node load is too high"}
        assert {s.name: s.score for s in result.scores} == {
            "node-busy": 40,
            "node-idle": 80,
        }

    def test_all_nodes_overloaded(self, scheduler, mock_k8s_client, sample_pod):
        mock_k8s_client.get_nodes.return_value = [
            make_node("node-1", {PREFIX + "cpu": metric(0.95)}),
            make_node("node-2", {PREFIX + "memory": metric(0.81)}),
        ]

        result = scheduler.schedule_pod(sample_pod)

        assert not result.scheduled
        assert "node load is too high" in result.error
        assert set(result.filtered_nodes) == {"node-1", "node-2"}
        assert scheduler.stats["total_nodes_filtered"] == 2

    def test_stale_telemetry_keeps_node_schedulable(
        self, scheduler, mock_k8s_client, sample_pod
    ):
        stale = make_node(
            "node-stale", {PREFIX + "cpu": metric(0.99, age=3600, interval=30)}
        )
        mock_k8s_client.get_nodes.return_value = [stale]
        mock_k8s_client.get_node.side_effect = None
        mock_k8s_client.get_node.return_value = stale

        result = scheduler.schedule_pod(sample_pod)

        assert result.selected_node == "node-stale"
        assert result.scores[0].score == 0

    def test_prebind_lookup_failure_is_reported(
        self, scheduler, mock_k8s_client, sample_pod
    ):
        mock_k8s_client.get_node.side_effect = NodeLookupError("node-idle")

        result = scheduler.schedule_pod(sample_pod)

        assert not result.scheduled
        assert result.error == "prebind get node info error: node-idle"

    def test_no_ready_nodes(self, scheduler, mock_k8s_client, sample_pod):
        mock_k8s_client.is_node_ready.return_value = False

        result = scheduler.schedule_pod(sample_pod)

        assert result.error == "no ready nodes"
        assert scheduler.stats["total_errors"] == 1

    def test_tie_picks_one_of_best(self, scheduler, mock_k8s_client, sample_pod):
        nodes = [make_node(f"node-{i}", {PREFIX + "cpu": metric(0.5)}) for i in range(3)]
        mock_k8s_client.get_nodes.return_value = nodes
        nodes_by_name = {n["name"]: n for n in nodes}
        mock_k8s_client.get_node.side_effect = lambda name: nodes_by_name[name]

        result = scheduler.schedule_pod(sample_pod)

        assert result.selected_node in {"node-0", "node-1", "node-2"}

    def test_parallel_evaluation_matches_sequential(
        self, mock_k8s_client, sample_pod
    ):
        nodes = []
        for i in range(60):
            load = (i % 20) / 20
            nodes.append(
                make_node(
                    f"node-{i}",
                    {
                        PREFIX + "cpu": metric(load, threshold=0.9, weight=2),
                        PREFIX + "memory": metric(1 - load, threshold=0.95),
                    },
                )
            )
        mock_k8s_client.get_nodes.return_value = nodes
        mock_k8s_client.get_node.side_effect = None
        mock_k8s_client.get_node.return_value = nodes[0]
        plugin = RealNodeLoad(node_lister=mock_k8s_client, clock=lambda: NOW)

        Config.PARALLELISM = 8
        parallel = NodeLoadScheduler(mock_k8s_client, plugin).schedule_pod(sample_pod)
        Config.PARALLELISM = 1
        sequential = NodeLoadScheduler(mock_k8s_client, plugin).schedule_pod(sample_pod)

        assert [(s.name, s.score) for s in parallel.scores] == [
            (s.name, s.score) for s in sequential.scores
        ]
        assert parallel.filtered_nodes == sequential.filtered_nodes

    def test_run_cycle_evaluates_pending_pods(
        self, scheduler, mock_k8s_client, sample_pod
    ):
        mock_k8s_client.get_pending_pods.return_value = [
            sample_pod,
            dict(sample_pod, name="web-1"),
        ]

        results = scheduler._run_cycle()

        assert [r.selected_node for r in results] == ["node-idle", "node-idle"]
        assert scheduler.stats["total_pods_placed"] == 2


@pytest.mark.integration
class TestSchedulerLifecycle:
    """초기화, 헬스 체크, 통계 테스트"""

    def test_initialize_builds_plugin(self, mock_k8s_client):
        scheduler = NodeLoadScheduler(k8s_client=mock_k8s_client)
        assert scheduler.initialize() is True
        assert scheduler.plugin.node_lister is mock_k8s_client

    def test_initialize_failure(self):
        with patch(
            "nodeload.scheduler.KubernetesClient",
            side_effect=Exception("Connection failed"),
        ):
            scheduler = NodeLoadScheduler()
            assert scheduler.initialize() is False

    def test_health_check(self, scheduler):
        health = scheduler.health_check()

        assert health["status"] == "healthy"
        assert health["cluster_nodes"] == 3
        assert health["load_metric_nodes"] == 3

    def test_health_check_failure(self, scheduler, mock_k8s_client):
        mock_k8s_client.get_nodes.side_effect = RuntimeError("boom")

        health = scheduler.health_check()

        assert health["status"] == "unhealthy"
        assert health["error"] == "boom"

    def test_run_loop_until_stopped(self, scheduler, mock_k8s_client, sample_pod):
        Config.LOOP_INTERVAL = 0
        sigint_before = signal.getsignal(signal.SIGINT)

        def pending_pods():
            calls = mock_k8s_client.get_pending_pods.call_count
            if calls == 1:
                return [sample_pod]
            if calls == 2:
                raise RuntimeError("apiserver unavailable")
            scheduler.stop(signal.SIGTERM, None)
            return []

        mock_k8s_client.get_pending_pods.side_effect = pending_pods

        scheduler.run()

        stats = scheduler.get_stats()
        assert stats["total_cycles"] == 2
        assert stats["total_pods_placed"] == 1
        assert stats["uptime_seconds"] >= 0
        assert signal.getsignal(signal.SIGINT) is sigint_before


class TestCommandLine:
    """명령행 및 설정 파일 테스트"""

    def test_parse_arguments(self):
        args = parse_arguments(["--pod", "web-0", "--namespace", "prod"])
        assert args.pod == "web-0"
        assert args.namespace == "prod"
        assert args.health_check is False

    def test_load_config_file(self, temp_config_file):
        applied = load_config_file(temp_config_file)

        assert applied == ["ANNOTATION_PREFIX", "LOG_LEVEL", "LOOP_INTERVAL", "PARALLELISM"]
        assert Config.LOOP_INTERVAL == 5
        assert Config.PARALLELISM == 4
        assert Config.ANNOTATION_PREFIX == "example.com/load_"
        assert not hasattr(Config, "UNKNOWN_KEY")
        assert Config.is_load_metric_key("example.com/load_cpu")

    def test_load_missing_config_file_exits(self):
        with pytest.raises(SystemExit):
            load_config_file("/nonexistent/config.yaml")
