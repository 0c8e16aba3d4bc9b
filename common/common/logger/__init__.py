import json
import logging
import os
import sys


DEFAULT_LOGGER_NAME = "touch-grass"

# httpx/httpcore 는 요청마다 INFO 로그를 남기므로 한 단계 올려 둔다.
_NOISY_LOGGERS = ("httpx", "httpcore")


def _resolve_level(level: str | None) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    return getattr(logging, level.upper(), logging.INFO)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME, level: str | None = None
) -> logging.Logger:
    """클라이언트 전역 로거를 설정하고 반환한다.

    Args:
        name: 로거 이름 (기본값: touch-grass, SERVICE_NAME 환경변수가 있으면 그 값)
        level: 로그 레벨 (기본값: None -> 환경변수 LOG_LEVEL 또는 INFO 사용)

    Returns:
        설정된 logging.Logger 인스턴스
    """

    log_level = _resolve_level(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter())

    logger = logging.getLogger(os.getenv("SERVICE_NAME", name))
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)

    # 모듈 로거(logging.getLogger(__name__))는 루트로 전파되므로 루트에도 같은 핸들러를 단다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(log_level, logging.WARNING))

    return logger


def get_logger(name: str) -> logging.Logger:
    """모듈별 로거를 가져온다."""
    return logging.getLogger(name)


class JsonFormatter(logging.Formatter):
    """한 줄에 JSON 객체 하나를 출력하는 포맷터.

    - datetime, level, logger, message 필드를 기본으로 포함한다.
    - 낙관적 업데이트/피드 조회 추적용 extra 필드(entity_id, epoch 등)는 있을 때만 옮긴다.
    - 예외 정보가 있으면 exc_info 필드에 문자열로 추가한다.
    """

    extra_keys = (
        "entity_id",
        "bookmark_id",
        "epoch",
        "table",
        "operation",
        "status",
        "duration",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            {key: getattr(record, key) for key in self.extra_keys if hasattr(record, key)}
        )

        service_name = getattr(record, "service_name", None) or os.getenv(
            "SERVICE_NAME"
        )
        if service_name:
            payload["service_name"] = service_name

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)
