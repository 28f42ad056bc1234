"""
Load Scorer for Real Node Load Plugin
노드의 부하 메트릭으로 가중 평균 점수를 계산합니다.
여유 자원이 많을수록 점수가 높습니다.
"""

import logging
import math
from types import MappingProxyType
from typing import Mapping

from .config import Config
from .errors import ParseError
from .metrics import LoadSample, iter_load_annotations, parse_annotation_value

logger = logging.getLogger(__name__)


def desirability(usage: float) -> float:
    """리소스 하나의 점수를 계산합니다 (사용률이 낮을수록 높음)."""
    if usage == 0:
        return 0.0

    if usage > 1:
        return 0.0

    return 1 - usage


def build_node_load(
    annotations: Mapping[str, str], now: int, node_name: str = ""
) -> Mapping[str, LoadSample]:
    """annotation에서 리소스별 LoadSample 뷰를 만듭니다.

    해석에 실패한 메트릭은 모든 필드가 0인 샘플로 대체되므로
    weight 0으로 점수 합계와 가중치 합계 어느 쪽에도 반영되지 않습니다.
    """
    node_load = {}
    for key, raw in iter_load_annotations(annotations):
        try:
            node_load[key] = parse_annotation_value(raw, now)
        except ParseError as e:
            logger.warning(
                f"node: {node_name}, parse annotation {key}:{raw} invalid: {e}"
            )
            node_load[key] = LoadSample()

    return MappingProxyType(node_load)


def weighted_score(node_load: Mapping[str, LoadSample], node_name: str = "") -> float:
    """리소스별 점수를 weight로 가중 평균합니다."""
    node_score = 0.0
    weight_sum = 0.0

    for resource, sample in node_load.items():
        resource_score = desirability(sample.value)
        node_score += resource_score * Config.MAX_NODE_SCORE * sample.weight
        logger.debug(
            f"resource: {resource}, weight: {sample.weight}, "
            f"resourceScore: {resource_score}"
        )
        weight_sum += sample.weight

    if weight_sum == 0:
        logger.warning(
            f"node {node_name} has no weighted load metrics, "
            f"using score {Config.ZERO_WEIGHT_SCORE}"
        )
        return Config.ZERO_WEIGHT_SCORE

    result = node_score / weight_sum
    if not math.isfinite(result):
        logger.warning(
            f"node {node_name} score {result} is not finite, "
            f"using score {Config.ZERO_WEIGHT_SCORE}"
        )
        return Config.ZERO_WEIGHT_SCORE

    return result


def score(annotations: Mapping[str, str], now: int, node_name: str = "") -> float:
    """노드 annotation으로부터 부하 점수를 계산합니다."""
    node_load = build_node_load(annotations, now, node_name)
    return weighted_score(node_load, node_name)
