"""
Real Node Load Scheduler Plugin Package
노드 실제 부하(annotation 메트릭) 기반 Kubernetes 스케줄링 플러그인
"""

__version__ = "1.0.0"
__description__ = "노드 실제 부하 기반 스케줄링 플러그인"

from .config import Config
from .eligibility import Decision, is_eligible
from .errors import (
    MalformedFormatError,
    MalformedNumberError,
    NodeLoadError,
    NodeLookupError,
    ParseError,
    StaleMetricError,
)
from .metrics import LoadSample, parse_annotation_value
from .plugin import NodeScore, RealNodeLoad, Status, StatusCode, new_plugin
from .scorer import build_node_load, desirability, score, weighted_score

__all__ = [
    "Config",
    "Decision",
    "LoadSample",
    "MalformedFormatError",
    "MalformedNumberError",
    "NodeLoadError",
    "NodeLookupError",
    "NodeScore",
    "ParseError",
    "RealNodeLoad",
    "StaleMetricError",
    "Status",
    "StatusCode",
    "build_node_load",
    "desirability",
    "is_eligible",
    "new_plugin",
    "parse_annotation_value",
    "score",
    "weighted_score",
]
