import json
from typing import Dict, Iterator, List, Optional, Tuple

from cloudmap.errors import LLMServiceError
from cloudmap.inference.base import LLMClient, LLMResult, iter_stream_lines, post_json, read_json


def to_cohere_chat(messages: List[Dict]) -> Tuple[str, List[Dict], str]:
    """
    Split OpenAI-style messages into Cohere's (preamble, chat_history, message).

    System messages are joined into the preamble, the last user message
    becomes `message`, everything before it becomes USER/CHATBOT history.
    """
    preamble_parts = []
    turns = []

    for m in messages:
        role = m.get("role")
        content = m.get("content") or ""
        if role == "system":
            preamble_parts.append(content)
        else:
            turns.append((role, content))

    message = ""
    if turns and turns[-1][0] == "user":
        message = turns.pop()[1]

    history = [
        {"role": "USER" if role == "user" else "CHATBOT", "message": content}
        for role, content in turns
    ]

    return "\n\n".join(preamble_parts), history, message


class CohereChatClient(LLMClient):
    """Client for Cohere's v1 /chat REST endpoint."""

    provider = "cohere"

    def __init__(
        self,
        api_key: str,
        model: str = "command-r-plus",
        base_url: str = "https://api.cohere.ai",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 300,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _payload(self, messages, temperature, max_tokens, model, stream) -> dict:
        preamble, history, message = to_cohere_chat(messages)

        payload = {
            "model": model or self.model,
            "message": message,
            "chat_history": history,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
            "stream": stream,
        }
        if preamble:
            payload["preamble"] = preamble
        return payload

    def generate(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> LLMResult:
        response = post_json(
            f"{self.base_url}/v1/chat",
            self._payload(messages, temperature, max_tokens, model, stream=False),
            self._headers(),
            self.timeout,
        )

        data = read_json(response, "Cohere")
        if "text" not in data:
            raise LLMServiceError(f"Unexpected Cohere payload: {data!r:.300}")

        billed = ((data.get("meta") or {}).get("billed_units") or {})
        return LLMResult(
            text=data["text"] or "",
            model=model or self.model,
            tokens_used=int(billed.get("input_tokens", 0)) + int(billed.get("output_tokens", 0)),
        )

    def stream(
        self,
        messages: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> Iterator[str]:
        response = post_json(
            f"{self.base_url}/v1/chat",
            self._payload(messages, temperature, max_tokens, model, stream=True),
            self._headers(),
            self.timeout,
            stream=True,
        )

        # Newline-delimited JSON events
        for line in iter_stream_lines(response):
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue

            event_type = event.get("event_type")
            if event_type == "text-generation":
                text = event.get("text")
                if text:
                    yield text
            elif event_type == "stream-end":
                if event.get("finish_reason") == "ERROR":
                    raise LLMServiceError("Cohere stream ended with an error")
                break
