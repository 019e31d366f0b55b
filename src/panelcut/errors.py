"""최적화 예외 계층

- ConfigurationError: 요청 구성 오류 (원판/조각 누락, 전략 비호환)
- ExecutionError: 전략 내부 실행 오류
- ExhaustionError: 폴백 체인의 모든 전략 실패
"""


class OptimizationError(Exception):
    """패킹 최적화 예외 베이스 클래스"""


class ConfigurationError(OptimizationError):
    """요청 구성 오류"""


class ExecutionError(OptimizationError):
    """전략 실행 중 내부 오류"""


class ExhaustionError(OptimizationError):
    """모든 전략이 실패함

    Attributes:
        last_error: 마지막으로 실패한 전략의 예외
    """

    def __init__(self, message: str, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error
