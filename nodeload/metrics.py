"""
Metric Parser for Real Node Load Plugin
노드 annotation에 기록된 부하 메트릭을 LoadSample로 해석합니다.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from .config import Config
from .errors import MalformedFormatError, MalformedNumberError, StaleMetricError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadSample:
    """노드의 리소스 하나에 대한 부하 측정값"""

    timestamp: int = 0
    interval: int = 0
    value: float = 0.0
    threshold: float = 0.0
    weight: float = 0.0

    def age(self, now: int) -> int:
        """샘플 생성 후 경과 시간(초)"""
        return now - self.timestamp

    def is_stale(self, now: int) -> bool:
        return self.age(now) > Config.get_max_sample_age(self.interval)


# 필드 이름과 파서 (timestamp, interval은 정수, 나머지는 실수)
_FIELD_PARSERS: Tuple[Tuple[str, type], ...] = (
    ("timestamp", int),
    ("interval", int),
    ("value", float),
    ("threshold", float),
    ("weight", float),
)


def _parse_number(kind: type, text: str):
    # int()/float()는 공백, '_' 구분자, 비ASCII 숫자를 허용하므로 먼저 거른다
    if not text or not text.isascii() or text != text.strip() or "_" in text:
        raise ValueError(f"invalid syntax for {kind.__name__}")
    return kind(text)


def parse_annotation_value(raw: str, now: int) -> LoadSample:
    """annotation 값을 파싱하고 유효성을 검사합니다.

    Args:
        raw: ``timestamp:interval:value:threshold:weight`` 형식의 문자열
        now: 현재 시각 (epoch 초)

    Returns:
        LoadSample

    Raises:
        MalformedFormatError: 필드 개수가 5개가 아닌 경우
        MalformedNumberError: 숫자로 해석할 수 없는 필드가 있는 경우
        StaleMetricError: ``now - timestamp > 2 * interval`` 인 경우
    """
    fields = raw.split(Config.ANNOTATION_SEPARATOR)
    if len(fields) != len(_FIELD_PARSERS):
        raise MalformedFormatError(
            f"value format error: expected {len(_FIELD_PARSERS)} fields, got {len(fields)}",
            raw,
        )

    parsed: Dict[str, object] = {}
    for (name, kind), text in zip(_FIELD_PARSERS, fields):
        try:
            parsed[name] = _parse_number(kind, text)
        except ValueError as e:
            raise MalformedNumberError(
                f"invalid {name} {text!r}: {e}",
                raw,
                field=name,
            ) from e

    sample = LoadSample(**parsed)
    if sample.is_stale(now):
        age = sample.age(now)
        max_age = Config.get_max_sample_age(sample.interval)
        raise StaleMetricError(
            f"value invalid, process timeout: age {age}s exceeds {max_age}s",
            raw,
            age=age,
            max_age=max_age,
        )

    return sample


def iter_load_annotations(annotations: Mapping[str, str]):
    """부하 메트릭 접두사를 가진 annotation만 (key, value)로 순회합니다."""
    for key, value in (annotations or {}).items():
        if Config.is_load_metric_key(key):
            yield key, value
