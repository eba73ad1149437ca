"""OpenAI-compatible chat completions client."""

import asyncio
import json
import logging
import uuid
from typing import Any

import aiohttp

from smart_agent.config import ModelEndpointConfig
from smart_agent.errors import ModelAPIError, classify_api_error, get_retry_strategy
from smart_agent.messages import content_to_text
from smart_agent.model import ChatModel

logger = logging.getLogger(__name__)

RETRY_DELAY_MS = 1000  # Base delay in milliseconds


def format_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert session messages to the wire shape.

    Content is flattened to text, tool messages keep only ``tool_call_id``,
    and extra bookkeeping keys (``execution_id``, ``summarized``) are dropped.
    """
    formatted = []
    for msg in messages:
        role = msg.get("role", "user")
        content = content_to_text(msg.get("content"))
        if role == "tool":
            formatted.append(
                {"role": "tool", "content": content, "tool_call_id": msg.get("tool_call_id")}
            )
        elif role == "assistant":
            out: dict[str, Any] = {"role": "assistant", "content": content}
            if msg.get("tool_calls"):
                out["tool_calls"] = [_wire_tool_call(tc) for tc in msg["tool_calls"]]
            formatted.append(out)
        elif role in ("system", "user"):
            formatted.append({"role": role, "content": content})
        else:
            formatted.append({"role": "user", "content": content})
    return formatted


def _wire_tool_call(call: dict[str, Any]) -> dict[str, Any]:
    if "function" in call:
        function = dict(call["function"])
        if not isinstance(function.get("arguments"), str):
            function["arguments"] = json.dumps(function.get("arguments") or {})
        return {"id": call.get("id"), "type": "function", "function": function}
    return {
        "id": call.get("id"),
        "type": "function",
        "function": {"name": call.get("name"), "arguments": json.dumps(call.get("args") or {})},
    }


def parse_completion(data: dict[str, Any]) -> dict[str, Any]:
    """Turn a chat completion response body into an assistant message."""
    choices = data.get("choices") or []
    msg = (choices[0].get("message") if choices else None) or {}

    tool_calls = None
    if isinstance(msg.get("tool_calls"), list) and msg["tool_calls"]:
        tool_calls = [
            {
                "id": tc.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                "type": "function",
                "function": tc.get("function") or {},
            }
            for tc in msg["tool_calls"]
        ]
    elif msg.get("function_call"):
        # Legacy single function_call
        tool_calls = [
            {
                "id": f"call_{uuid.uuid4().hex[:12]}",
                "type": "function",
                "function": msg["function_call"],
            }
        ]

    response: dict[str, Any] = {
        "role": "assistant",
        "content": msg.get("content") or "",
        "usage": data.get("usage"),
        "response_metadata": {
            "id": data.get("id"),
            "model": data.get("model"),
            "finish_reason": choices[0].get("finish_reason") if choices else None,
        },
    }
    if tool_calls:
        response["tool_calls"] = tool_calls
    return response


class OpenAICompatibleModel(ChatModel):
    """
    Chat model backed by any OpenAI-compatible ``/chat/completions`` endpoint.

    Reuses HTTP connections across requests; sessions are pooled by base URL.
    """

    # Class-level session pool for connection reuse across instances
    _session_pool: dict[str, aiohttp.ClientSession] = {}
    _session_lock = asyncio.Lock()

    def __init__(
        self,
        config: ModelEndpointConfig,
        tools: list[dict[str, Any]] | None = None,
    ) -> None:
        self.config = config
        self.tools = tools or []
        self.last_usage: dict[str, Any] | None = None
        self._pool_key = config.base_url

    @property
    def model_name(self) -> str:
        return self.config.model

    def bind_tools(self, schemas: list[dict[str, Any]]) -> "OpenAICompatibleModel":
        return OpenAICompatibleModel(self.config, tools=list(schemas))

    async def _get_session(self) -> aiohttp.ClientSession:
        async with OpenAICompatibleModel._session_lock:
            session = OpenAICompatibleModel._session_pool.get(self._pool_key)
            if session is None or session.closed:
                connector = aiohttp.TCPConnector(
                    limit=10,
                    keepalive_timeout=30,
                    enable_cleanup_closed=True,
                )
                timeout = aiohttp.ClientTimeout(total=self.config.timeout, connect=10)
                session = aiohttp.ClientSession(connector=connector, timeout=timeout)
                OpenAICompatibleModel._session_pool[self._pool_key] = session
                logger.debug(f"Created new HTTP session for {self._pool_key}")
            return session

    @classmethod
    async def close_all_sessions(cls) -> None:
        """Close all pooled sessions. Call on application shutdown."""
        async with cls._session_lock:
            for key, session in cls._session_pool.items():
                if not session.closed:
                    await session.close()
                    logger.debug(f"Closed HTTP session for {key}")
            cls._session_pool.clear()

    def build_payload(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": format_messages(messages),
            "temperature": self.config.temperature,
        }
        if self.config.max_tokens:
            payload["max_tokens"] = self.config.max_tokens
        if self.tools:
            payload["tools"] = self.tools
            payload["tool_choice"] = "auto"
        return payload

    async def invoke(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Call the endpoint with retry logic.

        Raises:
            ModelAPIError: When the request fails and is not retryable, or
                retries are exhausted
        """
        max_attempts = max(1, self.config.max_retries)
        payload = self.build_payload(messages)

        for attempt in range(1, max_attempts + 1):
            try:
                response = await self._attempt(payload)
                self.last_usage = response.get("usage")
                return response
            except (asyncio.TimeoutError, aiohttp.ClientError, ModelAPIError) as e:
                status_code = getattr(e, "status_code", 0) or getattr(e, "status", 0) or 0
                info = classify_api_error(status_code, str(e), e)
                should_retry, delay = get_retry_strategy(info.category, attempt, max_attempts)
                if not should_retry:
                    logger.error(f"Model call failed after {attempt} attempt(s): {info.technical_details}")
                    if isinstance(e, ModelAPIError):
                        raise
                    raise ModelAPIError(
                        info.user_message, status_code=status_code, details=info.technical_details
                    ) from e

                delay = delay or RETRY_DELAY_MS * (2 ** (attempt - 1))
                logger.warning(
                    f"Model call failed (attempt {attempt}/{max_attempts}): {info.user_message}. "
                    f"Retrying in {delay}ms..."
                )
                await asyncio.sleep(delay / 1000)

        raise ModelAPIError("Model call failed", status_code=0)

    async def _attempt(self, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        logger.debug(f"Request payload: {json.dumps(payload, ensure_ascii=False)[:500]}...")
        session = await self._get_session()
        async with session.post(url, headers=headers, json=payload) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"Model API error: {response.status} - {error_text[:500]}")
                raise ModelAPIError(
                    f"Model API error: {response.status} - {error_text}",
                    status_code=response.status,
                )
            data = await response.json()
        return parse_completion(data)
