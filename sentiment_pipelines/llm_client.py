from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (408, 429, 500, 502, 503, 504)


@dataclass(frozen=True)
class LlmConfig:
    api_key: str
    base_url: str
    model: str
    temperature: float
    timeout_sec: float
    max_retries: int
    backoff_base_sec: float
    backoff_max_sec: float
    referer: str
    app_title: str


class OpenRouterClient:
    """
    Chat-completions client for OpenRouter (OpenAI-compatible API):
    - Timeout
    - Retry with exponential backoff on 408/429/5xx and network errors
    - Returns the first choice's message content as plain text
    - One requests.Session per calling thread

    An injected session is used as-is by every thread.
    Output is not interpreted here; see response_reconciler.
    """

    def __init__(self, config: LlmConfig, session: Optional[requests.Session] = None):
        self._cfg = config
        self._headers = {
            "Authorization": f"Bearer {self._cfg.api_key}",
            "HTTP-Referer": self._cfg.referer,
            "X-Title": self._cfg.app_title,
        }
        self._shared_session = session
        if session is not None:
            session.headers.update(self._headers)
        self._local = threading.local()
        self._url = self._cfg.base_url.rstrip("/") + "/chat/completions"

    @property
    def model(self) -> str:
        return self._cfg.model

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self._headers)
            self._local.session = session
        return session

    def invoke(self, prompt: str) -> str:
        """
        Send a single-message prompt and return the raw reply text.

        Raises:
            requests.HTTPError: non-2xx responses after retries
            requests.RequestException: network errors / timeouts after retries
            ValueError: 2xx body that is not JSON or lacks choices[0].message.content
        """
        payload = {
            "model": self._cfg.model,
            "temperature": self._cfg.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        last_exc: Exception | None = None
        for attempt in range(self._cfg.max_retries + 1):
            try:
                resp = self._session().post(self._url, json=payload, timeout=self._cfg.timeout_sec)
                if resp.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(
                        f"Retryable status from model API: status={resp.status_code}",
                        response=resp,
                    )
                resp.raise_for_status()
                return _message_content(_json_body(resp))
            except requests.RequestException as e:
                last_exc = e
                if not _is_retryable(e) or attempt >= self._cfg.max_retries:
                    logger.error("Model call failed: model=%s attempts=%s err=%s", self._cfg.model, attempt + 1, e)
                    raise
                sleep_sec = self._compute_backoff(attempt)
                logger.warning(
                    "Model call failed (retrying): attempt=%s model=%s sleep=%.2fs err=%s",
                    attempt + 1,
                    self._cfg.model,
                    sleep_sec,
                    e,
                )
                time.sleep(sleep_sec)

        # Should not reach here
        assert last_exc is not None
        raise last_exc

    def _compute_backoff(self, attempt: int) -> float:
        # Exponential backoff with cap + jitter
        base = self._cfg.backoff_base_sec * (2**attempt)
        capped = min(base, self._cfg.backoff_max_sec)
        return capped + random.uniform(0.0, 0.5)


def _is_retryable(exc: requests.RequestException) -> bool:
    if isinstance(exc, requests.HTTPError):
        return exc.response is not None and exc.response.status_code in RETRYABLE_STATUS
    return True


def _message_content(body: Any) -> str:
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise ValueError(f"Unexpected model response shape: {e!r}") from e
    if not isinstance(content, str):
        raise ValueError(f"Model content is not text: type={type(content).__name__}")
    return content


def _json_body(resp: requests.Response) -> Any:
    # requests.JSONDecodeError is a RequestException; surfaced as plain ValueError, not retried.
    try:
        return resp.json()
    except ValueError as e:
        raise ValueError(f"Model response is not JSON: status={resp.status_code} err={e}") from None
