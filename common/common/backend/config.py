from __future__ import annotations

import os


BACKEND_URL_ENV = "BACKEND_URL"
BACKEND_API_KEY_ENV = "BACKEND_API_KEY"
BACKEND_ACCESS_TOKEN_ENV = "BACKEND_ACCESS_TOKEN"
BACKEND_USER_ID_ENV = "BACKEND_USER_ID"
BACKEND_TIMEOUT_SECONDS_ENV = "BACKEND_TIMEOUT_SECONDS"

DEFAULT_TIMEOUT_SECONDS = 15.0


def get_backend_url() -> str:
    """호스팅 백엔드(REST) 의 기본 URL 을 반환한다.

    환경 변수에서만 읽고, 설정되지 않은 경우에는 즉시 실패하도록 RuntimeError 를 발생시킨다.
    """

    value = os.getenv(BACKEND_URL_ENV, "").strip()
    if not value:
        raise RuntimeError(
            f"{BACKEND_URL_ENV} environment variable is required for the backend client",
        )
    return value.rstrip("/")


def get_backend_api_key() -> str:
    value = os.getenv(BACKEND_API_KEY_ENV, "").strip()
    if not value:
        raise RuntimeError(
            f"{BACKEND_API_KEY_ENV} environment variable is required for the backend client",
        )
    return value


def get_access_token() -> str | None:
    """로그인 세션의 access token 을 반환한다.

    설정되어 있지 않으면 None 을 반환하고, 클라이언트는 API key 로 익명 요청을 보낸다.
    """

    value = os.getenv(BACKEND_ACCESS_TOKEN_ENV, "").strip()
    return value or None


def get_user_id() -> str | None:
    value = os.getenv(BACKEND_USER_ID_ENV, "").strip()
    return value or None


def get_timeout_seconds() -> float:
    """백엔드 요청 타임아웃(초)을 반환한다.

    - 비어 있으면 기본값을 사용한다.
    - 숫자가 아니거나 0 이하이면 설정 문제를 조기에 드러내기 위해 에러를 발생시킨다.
    """

    raw_value = os.getenv(BACKEND_TIMEOUT_SECONDS_ENV, "").strip()
    if not raw_value:
        return DEFAULT_TIMEOUT_SECONDS

    try:
        value = float(raw_value)
    except ValueError as exc:  # noqa: TRY003
        raise RuntimeError(
            f"{BACKEND_TIMEOUT_SECONDS_ENV} must be a number, got: {raw_value!r}"
        ) from exc

    if value <= 0:
        raise RuntimeError(
            f"{BACKEND_TIMEOUT_SECONDS_ENV} must be positive, got: {raw_value!r}"
        )
    return value
