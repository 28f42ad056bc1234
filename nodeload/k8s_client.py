"""
Kubernetes Client for Real Node Load Plugin
Kubernetes API에서 노드와 스케줄링 대기 중인 Pod를 조회합니다.
"""

import logging
from typing import Any, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from .config import Config
from .errors import NodeLookupError

logger = logging.getLogger(__name__)


class KubernetesClient:
    """Kubernetes API 클라이언트"""

    def __init__(self):
        """Kubernetes 클라이언트를 초기화합니다."""
        self._init_kubernetes_client()

    def _init_kubernetes_client(self):
        """Kubernetes 클라이언트를 초기화합니다."""
        try:
            if Config.KUBECONFIG_PATH:
                config.load_kube_config(Config.KUBECONFIG_PATH)
                logger.info(f"Kubernetes config loaded from {Config.KUBECONFIG_PATH}")
            else:
                config.load_incluster_config()
                logger.info("Kubernetes config loaded from in-cluster")

            self.core_v1 = client.CoreV1Api()
            logger.info("Kubernetes client initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Kubernetes client: {e}")
            raise

    def get_nodes(self) -> List[Dict[str, Any]]:
        """클러스터의 모든 노드를 조회합니다."""
        try:
            nodes = self.core_v1.list_node()
            return [self._node_to_dict(node) for node in nodes.items]
        except ApiException as e:
            logger.error(f"Failed to get nodes: {e}")
            return []

    def get_node(self, node_name: str) -> Dict[str, Any]:
        """노드 하나를 조회합니다. 실패하면 NodeLookupError를 발생시킵니다."""
        try:
            node = self.core_v1.read_node(node_name)
        except ApiException as e:
            raise NodeLookupError(
                node_name, f"failed to get node {node_name}: {e.status} {e.reason}"
            ) from e

        return self._node_to_dict(node)

    def _node_to_dict(self, node) -> Dict[str, Any]:
        return {
            "name": node.metadata.name,
            "labels": node.metadata.labels or {},
            "annotations": node.metadata.annotations or {},
            "unschedulable": bool(node.spec.unschedulable) if node.spec else False,
            "conditions": [
                {"type": condition.type, "status": condition.status}
                for condition in (node.status.conditions or [])
            ],
        }

    def is_node_ready(self, node: Dict[str, Any]) -> bool:
        """노드가 Ready 상태이며 cordon 되지 않았는지 확인합니다."""
        if node.get("unschedulable"):
            return False
        for condition in node.get("conditions", []):
            if condition.get("type") == "Ready":
                return condition.get("status") == "True"
        return False

    def get_pending_pods(self, namespace: Optional[str] = None) -> List[Dict[str, Any]]:
        """이 스케줄러가 담당하는 미배치 Pod를 조회합니다."""
        try:
            field_selector = "spec.nodeName=,status.phase=Pending"
            if namespace:
                pods = self.core_v1.list_namespaced_pod(
                    namespace=namespace, field_selector=field_selector
                )
            else:
                pods = self.core_v1.list_pod_for_all_namespaces(
                    field_selector=field_selector
                )

            pending_pods = [
                self._pod_to_dict(pod)
                for pod in pods.items
                if pod.spec.scheduler_name == Config.SCHEDULER_NAME
            ]

            logger.info(f"Found {len(pending_pods)} pending pods")
            return pending_pods

        except ApiException as e:
            logger.error(f"Failed to get pending pods: {e}")
            return []

    def get_pod(self, name: str, namespace: str) -> Optional[Dict[str, Any]]:
        """Pod 하나를 조회합니다."""
        try:
            pod = self.core_v1.read_namespaced_pod(name=name, namespace=namespace)
            return self._pod_to_dict(pod)
        except ApiException as e:
            logger.error(f"Failed to get pod {namespace}/{name}: {e}")
            return None

    def _pod_to_dict(self, pod) -> Dict[str, Any]:
        return {
            "name": pod.metadata.name,
            "namespace": pod.metadata.namespace,
            "labels": pod.metadata.labels or {},
            "annotations": pod.metadata.annotations or {},
            "scheduler_name": pod.spec.scheduler_name,
            "node_name": pod.spec.node_name,
            "status": pod.status.phase if pod.status else None,
        }
