"""
Eligibility Filter for Real Node Load Plugin
노드의 부하 메트릭을 보고 요청을 받을 수 있는 노드인지 판단합니다.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .config import Config
from .errors import ParseError
from .metrics import iter_load_annotations, parse_annotation_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    """Filter 판정 결과 (Accept 또는 Reject)"""

    accepted: bool
    reason: str = ""
    resource: Optional[str] = None

    @classmethod
    def accept(cls) -> "Decision":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str, resource: Optional[str] = None) -> "Decision":
        return cls(accepted=False, reason=reason, resource=resource)

    def __bool__(self) -> bool:
        return self.accepted


def is_eligible(
    annotations: Mapping[str, str], now: int, node_name: str = ""
) -> Decision:
    """노드가 요청을 받을 수 있는지 판정합니다.

    - 메트릭 하나라도 해석에 실패하면(형식 오류, stale) 즉시 Accept (fail open)
    - 임계값이 sentinel(0, 1)이면 해당 리소스는 건너뜀
    - value > threshold 인 리소스가 있으면 즉시 Reject
    """
    for key, raw in iter_load_annotations(annotations):
        try:
            sample = parse_annotation_value(raw, now)
        except ParseError as e:
            logger.warning(
                f"node: {node_name}, parse annotation {key}:{raw} invalid: {e}"
            )
            return Decision.accept()

        if Config.is_threshold_sentinel(sample.threshold):
            continue

        if sample.value > sample.threshold:
            logger.info(
                f"filter node {node_name} with {key}, "
                f"value/threshold: {sample.value}/{sample.threshold}"
            )
            return Decision.reject(Config.OVERLOAD_REASON, resource=key)

    return Decision.accept()
