"""
Real Node Load Scheduler Plugin
스케줄러 extension point(PreFilter, Filter, Score, NormalizeScore,
PreBind, Bind)에서 호출되는 플러그인입니다.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config import Config
from .eligibility import is_eligible
from .errors import NodeLookupError
from .scorer import score as load_score

logger = logging.getLogger(__name__)


class StatusCode(Enum):
    """extension point 실행 결과 코드"""

    SUCCESS = "Success"
    ERROR = "Error"
    UNSCHEDULABLE = "Unschedulable"
    UNSCHEDULABLE_AND_UNRESOLVABLE = "UnschedulableAndUnresolvable"
    SKIP = "Skip"


@dataclass(frozen=True)
class Status:
    """extension point 실행 결과"""

    code: StatusCode = StatusCode.SUCCESS
    reasons: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def new(cls, code: StatusCode, *reasons: str) -> "Status":
        return cls(code=code, reasons=tuple(r for r in reasons if r))

    def is_success(self) -> bool:
        return self.code == StatusCode.SUCCESS

    def is_skip(self) -> bool:
        return self.code == StatusCode.SKIP

    def message(self) -> str:
        return ", ".join(self.reasons)


@dataclass
class NodeScore:
    """노드별 점수"""

    name: str
    score: int


def _pod_name(pod: Dict[str, Any]) -> str:
    return pod.get("name") or pod.get("metadata", {}).get("name", "")


def _node_name(node: Dict[str, Any]) -> str:
    return node.get("name") or node.get("metadata", {}).get("name", "")


def _node_annotations(node: Dict[str, Any]) -> Dict[str, str]:
    annotations = node.get("annotations")
    if annotations is None:
        annotations = node.get("metadata", {}).get("annotations")
    return annotations or {}


class RealNodeLoad:
    """노드 실제 부하 기반 스케줄링 플러그인

    Filter와 Score는 호출마다 annotation을 새로 파싱하며 상태를 공유하지
    않으므로 여러 노드에 대해 동시에 호출해도 됩니다.
    """

    def __init__(self, node_lister=None, clock: Optional[Callable[[], float]] = None):
        """
        Args:
            node_lister: ``get_node(name)`` 을 제공하는 객체 (KubernetesClient 등)
            clock: 현재 시각(epoch 초)을 반환하는 함수
        """
        self.node_lister = node_lister
        self.clock = clock or time.time

    def name(self) -> str:
        return Config.PLUGIN_NAME

    def _now(self) -> int:
        return int(self.clock())

    def pre_filter(self, pod: Dict[str, Any]) -> Status:
        logger.debug(f"prefilter pod: {_pod_name(pod)}")
        return Status.new(StatusCode.SUCCESS)

    def filter(self, pod: Dict[str, Any], node: Dict[str, Any]) -> Status:
        """부하가 임계값을 넘은 노드를 걸러냅니다."""
        node_name = _node_name(node)
        logger.debug(f"filter node: {node_name}({_pod_name(pod)})")

        decision = is_eligible(_node_annotations(node), self._now(), node_name)
        if not decision.accepted:
            return Status.new(
                StatusCode.UNSCHEDULABLE_AND_UNRESOLVABLE, decision.reason
            )

        return Status.new(StatusCode.SUCCESS)

    def score(self, pod: Dict[str, Any], node_name: str) -> Tuple[int, Status]:
        """노드 이름으로 노드를 조회해 점수를 계산합니다."""
        try:
            node = self._get_node(node_name)
        except NodeLookupError as e:
            logger.error(f"score node {node_name} err: {e}")
            return 0, Status.new(
                StatusCode.ERROR, f"getting node {node_name!r} from lister: {e}"
            )

        return self.score_node(pod, node)

    def score_node(
        self, pod: Dict[str, Any], node: Dict[str, Any]
    ) -> Tuple[int, Status]:
        node_name = _node_name(node)
        annotations = _node_annotations(node)
        logger.debug(f"get node {node_name} annotation: {annotations}")

        node_score = load_score(annotations, self._now(), node_name)
        logger.debug(f"node {node_name} score: {node_score}")

        return int(node_score), Status.new(StatusCode.SUCCESS)

    def normalize_score(
        self, pod: Dict[str, Any], scores: List[NodeScore]
    ) -> Optional[Status]:
        # 점수는 그대로 두고 기록만 한다
        for node_score in scores:
            logger.debug(f"Name {node_score.name} score: {node_score.score}")
        return None

    def pre_bind(self, pod: Dict[str, Any], node_name: str) -> Status:
        """바인딩 전에 노드가 여전히 조회되는지 확인합니다."""
        try:
            node = self._get_node(node_name)
        except NodeLookupError as e:
            logger.error(f"PreBind pod: {_pod_name(pod)}, node: {node_name} err: {e}")
            return Status.new(
                StatusCode.ERROR, f"prebind get node info error: {node_name}"
            )

        logger.debug(f"prebind pod: {_pod_name(pod)}, node info: {node}")
        return Status.new(StatusCode.SUCCESS)

    def bind(self, pod: Dict[str, Any], node_name: str) -> Status:
        """기본 bind 플러그인이 처리하도록 건너뜁니다."""
        logger.debug(
            f"skip RealNodeLoad plugin Bind stage Pod: {_pod_name(pod)}, Node: {node_name}"
        )
        return Status.new(StatusCode.SKIP)

    def _get_node(self, node_name: str) -> Dict[str, Any]:
        if self.node_lister is None:
            raise NodeLookupError(node_name, "no node lister configured")
        return self.node_lister.get_node(node_name)


def new_plugin(configuration: Optional[Dict[str, Any]] = None, handle=None) -> RealNodeLoad:
    """플러그인 팩토리 (스케줄러 등록용)

    플러그인 인자는 사용하지 않습니다. 설정은 프로세스 시작 시 Config로만 정해집니다.
    """
    if configuration:
        logger.warning(f"Ignoring plugin configuration: {sorted(configuration)}")

    return RealNodeLoad(node_lister=handle)
