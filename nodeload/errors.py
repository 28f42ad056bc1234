"""
Exceptions for Real Node Load Plugin
부하 메트릭 파싱과 노드 조회 과정에서 발생하는 예외를 정의합니다.
"""


class NodeLoadError(Exception):
    """플러그인 예외의 최상위 클래스"""


class ParseError(NodeLoadError):
    """annotation 값을 LoadSample로 해석하지 못한 경우"""

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw


class MalformedFormatError(ParseError):
    """필드 개수가 5개가 아닌 경우"""


class MalformedNumberError(ParseError):
    """필드 중 하나가 숫자로 해석되지 않는 경우"""

    def __init__(self, message: str, raw: str, field: str):
        super().__init__(message, raw)
        self.field = field


class StaleMetricError(ParseError):
    """샘플이 interval의 2배보다 오래된 경우"""

    def __init__(self, message: str, raw: str, age: int, max_age: int):
        super().__init__(message, raw)
        self.age = age
        self.max_age = max_age


class NodeLookupError(NodeLoadError):
    """클러스터에서 노드 정보를 가져오지 못한 경우"""

    def __init__(self, node_name: str, message: str = ""):
        super().__init__(message or f"failed to get node {node_name}")
        self.node_name = node_name
