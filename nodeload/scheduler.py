"""
Scheduling Host for Real Node Load Plugin
kube-scheduler가 플러그인을 호출하는 순서대로 한 Pod의 배치 노드를 결정합니다.
실제 바인딩은 하지 않으며 선택 결과만 보고합니다 (dry-run).
"""

import logging
import random
import signal
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import Config
from .k8s_client import KubernetesClient
from .plugin import NodeScore, RealNodeLoad

logger = logging.getLogger(__name__)


@dataclass
class SchedulingResult:
    """Pod 하나에 대한 스케줄링 결과"""

    pod_name: str
    namespace: str
    selected_node: Optional[str] = None
    scores: List[NodeScore] = field(default_factory=list)
    filtered_nodes: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def scheduled(self) -> bool:
        return self.selected_node is not None


class NodeLoadScheduler:
    """Real Node Load 플러그인을 구동하는 스케줄링 호스트"""

    def __init__(self, k8s_client=None, plugin: Optional[RealNodeLoad] = None):
        self.k8s_client = k8s_client
        self.plugin = plugin

        # 통계 정보
        self.stats = {
            "total_cycles": 0,
            "total_pods_evaluated": 0,
            "total_pods_placed": 0,
            "total_nodes_filtered": 0,
            "total_errors": 0,
        }
        self._started = time.monotonic()
        self._stop = threading.Event()

    def initialize(self) -> bool:
        """스케줄러를 초기화합니다."""
        try:
            logger.info("Initializing Real Node Load scheduler...")
            random.seed(time.time_ns())
            logger.debug(f"Config: {Config.as_dict()}")

            if self.k8s_client is None:
                self.k8s_client = KubernetesClient()
                logger.info("Kubernetes client initialized")

            if self.plugin is None:
                self.plugin = RealNodeLoad(node_lister=self.k8s_client)
            logger.info(f"Plugin {self.plugin.name()} registered")

            return True

        except Exception as e:
            logger.error(f"Failed to initialize scheduler: {e}")
            return False

    def schedule_pod(self, pod: Dict[str, Any]) -> SchedulingResult:
        """Pod 하나에 대해 Filter, Score 후 가장 높은 점수의 노드를 선택합니다."""
        result = SchedulingResult(
            pod_name=pod.get("name", ""), namespace=pod.get("namespace", "")
        )
        self.stats["total_pods_evaluated"] += 1

        status = self.plugin.pre_filter(pod)
        if not status.is_success():
            return self._fail(result, f"prefilter: {status.message()}")

        nodes = [n for n in self.k8s_client.get_nodes() if self.k8s_client.is_node_ready(n)]
        if not nodes:
            return self._fail(result, "no ready nodes")

        # 1. Filter (노드별 병렬)
        with ThreadPoolExecutor(max_workers=Config.PARALLELISM) as executor:
            statuses = list(executor.map(lambda n: self.plugin.filter(pod, n), nodes))

        feasible = []
        for node, status in zip(nodes, statuses):
            if status.is_success():
                feasible.append(node)
            else:
                result.filtered_nodes[node["name"]] = status.message()
        self.stats["total_nodes_filtered"] += len(result.filtered_nodes)

        if not feasible:
            return self._fail(
                result, f"0/{len(nodes)} nodes are available: {Config.OVERLOAD_REASON}"
            )

        # 2. Score (통과한 노드만)
        with ThreadPoolExecutor(max_workers=Config.PARALLELISM) as executor:
            scored = list(executor.map(lambda n: self.plugin.score_node(pod, n), feasible))

        for node, (node_score, status) in zip(feasible, scored):
            if not status.is_success():
                return self._fail(result, f"score {node['name']}: {status.message()}")
            result.scores.append(NodeScore(name=node["name"], score=node_score))

        status = self.plugin.normalize_score(pod, result.scores)
        if status is not None and not status.is_success():
            return self._fail(result, f"normalize score: {status.message()}")

        # 3. 노드 선택 (동점이면 무작위)
        best = max(s.score for s in result.scores)
        candidates = [s.name for s in result.scores if s.score == best]
        selected = random.choice(candidates)

        # 4. PreBind / Bind
        status = self.plugin.pre_bind(pod, selected)
        if not status.is_success():
            return self._fail(result, status.message())

        status = self.plugin.bind(pod, selected)
        if not (status.is_success() or status.is_skip()):
            return self._fail(result, f"bind: {status.message()}")
        if status.is_skip():
            logger.debug(f"Plugin skipped bind for {result.pod_name}, default binder applies")

        result.selected_node = selected
        self.stats["total_pods_placed"] += 1
        logger.info(
            f"Pod {result.namespace}/{result.pod_name} -> {selected} (score: {best})"
        )
        return result

    def _fail(self, result: SchedulingResult, error: str) -> SchedulingResult:
        result.error = error
        self.stats["total_errors"] += 1
        logger.warning(f"Pod {result.namespace}/{result.pod_name} unschedulable: {error}")
        return result

    def stop(self, signum=None, frame=None):
        """루프를 멈춥니다. SIGINT/SIGTERM 핸들러로도 등록됩니다."""
        if signum is not None:
            logger.info(f"Received signal {signum}, stopping after current cycle")
        self._stop.set()

    def run(self):
        """대기 중인 Pod를 LOOP_INTERVAL 마다 평가합니다."""
        if not self.initialize():
            logger.error("Failed to initialize scheduler, exiting...")
            return

        previous = {
            sig: signal.signal(sig, self.stop) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        logger.info("Real Node Load scheduler started")

        try:
            while not self._stop.is_set():
                try:
                    results = self._run_cycle()
                except Exception as e:
                    logger.error(f"Scheduling cycle failed: {e}")
                else:
                    self.stats["total_cycles"] += 1
                    placed = sum(1 for r in results if r.scheduled)
                    logger.info(
                        f"Cycle {self.stats['total_cycles']}: "
                        f"{placed}/{len(results)} pending pods placed"
                    )
                self._stop.wait(Config.LOOP_INTERVAL)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
            logger.info(f"Real Node Load scheduler stopped: {self.get_stats()}")

    def _run_cycle(self) -> List[SchedulingResult]:
        """단일 사이클을 실행합니다."""
        pending_pods = self.k8s_client.get_pending_pods()

        if not pending_pods:
            logger.debug("No pending pods found")
            return []

        return [self.schedule_pod(pod) for pod in pending_pods]

    def get_stats(self) -> Dict[str, Any]:
        stats = dict(self.stats)
        stats["uptime_seconds"] = round(time.monotonic() - self._started, 1)
        return stats

    def health_check(self) -> Dict[str, Any]:
        """헬스 체크를 수행합니다."""
        try:
            nodes = self.k8s_client.get_nodes()
            load_nodes = [
                n["name"]
                for n in nodes
                if any(Config.is_load_metric_key(k) for k in n.get("annotations", {}))
            ]

            return {
                "status": "healthy" if nodes else "degraded",
                "kubernetes_connected": len(nodes) > 0,
                "cluster_nodes": len(nodes),
                "load_metric_nodes": len(load_nodes),
                "scheduler_stats": self.get_stats(),
                "timestamp": datetime.now().isoformat(),
            }

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e),
                "timestamp": datetime.now().isoformat(),
            }
