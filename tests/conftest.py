"""
pytest 공통 설정 및 Fixture 정의
"""

import os
import sys
import tempfile
from unittest.mock import Mock

import pytest

# 프로젝트 루트를 Python 경로에 추가
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nodeload.config import Config
from nodeload.errors import NodeLookupError
from nodeload.plugin import RealNodeLoad

# 테스트 기준 시각 (epoch 초)
NOW = 1_700_000_000
PREFIX = "caih.com/scheduler_"


def metric(value, threshold=0.8, weight=1.0, age=10, interval=30):
    """annotation 값 문자열을 만듭니다."""
    return f"{NOW - age}:{interval}:{value}:{threshold}:{weight}"


def make_node(name, annotations=None, ready=True):
    """KubernetesClient.get_nodes() 형식의 노드 dict를 만듭니다."""
    return {
        "name": name,
        "labels": {},
        "annotations": annotations or {},
        "unschedulable": False,
        "conditions": [{"type": "Ready", "status": "True" if ready else "False"}],
    }


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_nodes():
    """테스트용 노드 (부하 과다, 보통, 여유)"""
    return [
        make_node(
            "node-hot",
            {
                PREFIX + "cpu": metric(0.9, threshold=0.8),
                PREFIX + "memory": metric(0.5, threshold=0.8),
            },
        ),
        make_node(
            "node-busy",
            {
                PREFIX + "cpu": metric(0.6, threshold=0.8),
                PREFIX + "memory": metric(0.6, threshold=0.8),
            },
        ),
        make_node(
            "node-idle",
            {
                PREFIX + "cpu": metric(0.2, threshold=0.8),
                PREFIX + "memory": metric(0.2, threshold=0.8),
                "node.alpha.kubernetes.io/ttl": "0",
            },
        ),
    ]


@pytest.fixture
def sample_pod():
    return {"name": "web-0", "namespace": "default", "scheduler_name": Config.SCHEDULER_NAME}


@pytest.fixture
def mock_k8s_client(sample_nodes):
    """Mock Kubernetes 클라이언트"""
    nodes_by_name = {n["name"]: n for n in sample_nodes}

    def get_node(name):
        if name not in nodes_by_name:
            raise NodeLookupError(name, f"nodes {name!r} not found")
        return nodes_by_name[name]

    k8s_client = Mock()
    k8s_client.get_nodes.return_value = sample_nodes
    k8s_client.get_node.side_effect = get_node
    k8s_client.is_node_ready.return_value = True
    k8s_client.get_pending_pods.return_value = []
    return k8s_client


@pytest.fixture
def plugin(mock_k8s_client):
    """고정 시각을 사용하는 플러그인 인스턴스"""
    return RealNodeLoad(node_lister=mock_k8s_client, clock=lambda: NOW)


@pytest.fixture
def temp_config_file():
    """임시 설정 파일"""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        f.write(
            """
LOG_LEVEL: DEBUG
LOOP_INTERVAL: 5
PARALLELISM: 4
ANNOTATION_PREFIX: example.com/load_
UNKNOWN_KEY: ignored
        """
        )
        temp_file = f.name

    yield temp_file

    os.unlink(temp_file)


@pytest.fixture(autouse=True)
def reset_config():
    """각 테스트 후 설정 초기화"""
    saved = Config.as_dict()
    yield
    for key, value in saved.items():
        setattr(Config, key, value)
    for key in set(Config.as_dict()) - set(saved):
        delattr(Config, key)


def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "kubernetes: mark test as requiring kubernetes")
