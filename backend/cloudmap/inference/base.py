from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import requests

from cloudmap.errors import LLMServiceError


@dataclass
class LLMResult:
    text: str
    model: Optional[str] = None
    tokens_used: int = 0


class LLMClient(ABC):
    provider: str = "unknown"
    model: str = ""

    @abstractmethod
    def generate(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> LLMResult:
        """Generate assistant text from chat messages"""
        pass

    @abstractmethod
    def stream(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> Iterator[str]:
        """Yield assistant text chunks as they arrive"""
        pass


def post_json(url: str, payload: dict, headers: dict, timeout: float, stream: bool = False):
    """POST to a model provider, converting transport failures to LLMServiceError."""
    try:
        response = requests.post(
            url,
            json=payload,
            headers=headers,
            timeout=timeout,
            stream=stream,
        )
    except requests.Timeout as e:
        raise LLMServiceError(f"Model request timeout: {e}") from e
    except requests.ConnectionError as e:
        raise LLMServiceError(f"Model network error: {e}") from e

    if response.status_code >= 400:
        detail = response.text[:500] if not stream else response.reason
        raise LLMServiceError(
            f"Model provider returned {response.status_code}: {detail}",
            status_code=response.status_code,
        )

    return response


def read_json(response, provider: str) -> dict:
    """Decode a provider response body; non-JSON bodies become LLMServiceError."""
    try:
        return response.json()
    except ValueError as e:
        raise LLMServiceError(f"Unexpected {provider} payload: {response.text[:300]}") from e


def iter_stream_lines(response) -> Iterator[str]:
    """Yield decoded lines of a streamed response, converting dropped connections."""
    try:
        with response:
            for line in response.iter_lines(decode_unicode=True):
                yield line
    except requests.RequestException as e:
        raise LLMServiceError(f"Model network error: {e}") from e
