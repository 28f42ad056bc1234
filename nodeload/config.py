"""
Real Node Load Plugin Configuration
노드 부하 기반 스케줄링 플러그인의 설정값들을 정의합니다.
"""

import os
from typing import Any, Dict


class Config:
    """Real Node Load 플러그인 설정 클래스"""

    # Kubernetes 관련 설정
    KUBECONFIG_PATH = os.getenv("KUBECONFIG_PATH", "")
    NAMESPACE = os.getenv("NAMESPACE", "default")
    SCHEDULER_NAME = os.getenv("SCHEDULER_NAME", "caihcloud-scheduler")

    # 스케줄링 루프 실행 주기 (초)
    LOOP_INTERVAL = int(os.getenv("LOOP_INTERVAL", "10"))

    # 노드별 병렬 평가 worker 수
    PARALLELISM = int(os.getenv("PARALLELISM", "16"))

    # 플러그인 식별자
    PLUGIN_NAME = "caihcloud-real-node-load-plugin"

    # 부하 메트릭 annotation 접두사 (외부 agent가 기록)
    ANNOTATION_PREFIX = os.getenv("ANNOTATION_PREFIX", "caih.com/scheduler_")

    # annotation 값: timestamp:interval:value:threshold:weight
    ANNOTATION_SEPARATOR = ":"

    # interval의 몇 배가 지나면 stale로 판단하는지
    STALENESS_FACTOR = int(os.getenv("STALENESS_FACTOR", "2"))

    # 임계값 검사를 하지 않는 sentinel 값
    THRESHOLD_SENTINELS = (0.0, 1.0)

    # 점수 관련 설정
    MAX_NODE_SCORE = 100
    ZERO_WEIGHT_SCORE = float(os.getenv("ZERO_WEIGHT_SCORE", "0"))

    # Filter 단계 거절 사유
    OVERLOAD_REASON = "node load is too high"

    # 로깅 설정
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def is_load_metric_key(cls, key: str) -> bool:
        """부하 메트릭 annotation 키인지 확인합니다."""
        return key.startswith(cls.ANNOTATION_PREFIX)

    @classmethod
    def is_threshold_sentinel(cls, threshold: float) -> bool:
        """임계값이 '검사 안 함' sentinel인지 확인합니다."""
        return threshold in cls.THRESHOLD_SENTINELS

    @classmethod
    def get_max_sample_age(cls, interval: int) -> int:
        """샘플이 유효한 최대 경과 시간(초)을 반환합니다."""
        return cls.STALENESS_FACTOR * interval

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """현재 설정값을 dict로 반환합니다."""
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper() and not key.startswith("_")
        }
