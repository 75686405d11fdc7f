import json
from typing import Dict, Iterator, List, Optional

from cloudmap.errors import LLMServiceError
from cloudmap.inference.base import LLMClient, LLMResult, iter_stream_lines, post_json, read_json


class ChatCompletionsClient(LLMClient):
    """Client for OpenAI-compatible /chat/completions endpoints."""

    provider = "openai"

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "",
        temperature: float = 0.4,
        max_tokens: int = 2048,
        timeout: float = 300,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(self, messages, temperature, max_tokens, model, stream) -> dict:
        return {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
            "stream": stream,
        }

    def generate(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> LLMResult:
        url = f"{self.base_url}/chat/completions"
        response = post_json(
            url,
            self._payload(messages, temperature, max_tokens, model, stream=False),
            self._headers(),
            self.timeout,
        )

        data = read_json(response, "chat completion")
        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMServiceError(f"Unexpected chat completion payload: {data!r:.300}") from e

        return LLMResult(
            text=content,
            model=data.get("model", model or self.model),
            tokens_used=(data.get("usage") or {}).get("total_tokens", 0),
        )

    def stream(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> Iterator[str]:
        url = f"{self.base_url}/chat/completions"
        response = post_json(
            url,
            self._payload(messages, temperature, max_tokens, model, stream=True),
            self._headers(),
            self.timeout,
            stream=True,
        )

        for line in iter_stream_lines(response):
            if not line or not line.startswith("data:"):
                continue

            data = line[len("data:"):].strip()
            if data == "[DONE]":
                break

            try:
                chunk = json.loads(data)
            except json.JSONDecodeError:
                continue

            choices = chunk.get("choices") or []
            if not choices:
                continue
            content = (choices[0].get("delta") or {}).get("content")
            if content:
                yield content
