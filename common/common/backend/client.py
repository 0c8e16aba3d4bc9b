from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from .config import (
    get_access_token,
    get_backend_api_key,
    get_backend_url,
    get_timeout_seconds,
)


logger = logging.getLogger(__name__)


_client: Optional[httpx.AsyncClient] = None
_lock = threading.Lock()


def build_headers(api_key: str, access_token: str | None) -> dict[str, str]:
    """REST 요청에 공통으로 붙는 인증 헤더를 만든다.

    access token 이 없으면 API key 자체를 Bearer 토큰으로 사용한다(익명 세션).
    """

    return {
        "apikey": api_key,
        "Authorization": f"Bearer {access_token or api_key}",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def get_client() -> httpx.AsyncClient:
    """전역 httpx.AsyncClient 싱글톤을 반환한다.

    - BACKEND_URL / BACKEND_API_KEY 에서 접속 정보를 읽어온다.
    - 커넥션 풀을 공유하기 위해 프로세스당 한 번만 생성한다.
    """

    global _client

    if _client is not None and not _client.is_closed:
        return _client

    with _lock:
        if _client is not None and not _client.is_closed:
            return _client

        base_url = get_backend_url()
        headers = build_headers(get_backend_api_key(), get_access_token())
        _client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=get_timeout_seconds(),
            follow_redirects=True,
        )
        logger.info("backend client created (base_url=%s)", base_url)
        return _client


async def close_client() -> None:
    """전역 클라이언트를 닫는다. 다음 get_client() 호출 시 새로 생성된다."""

    global _client

    client = _client
    _client = None
    if client is not None and not client.is_closed:
        await client.aclose()
        logger.info("backend client closed")
