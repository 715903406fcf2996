"""
LLM Service - OpenAI-compatible chat completions over httpx
"""

from typing import Any, Dict, Optional

import httpx

from src.constants.env import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL, LLM_TIMEOUT_SECONDS
from src.utils.logger import get_logger, log_error

logger = get_logger(__name__)


class LLMService:
    """Thin async client for a chat-completions endpoint"""

    CHAT_ENDPOINT = "chat/completions"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else LLM_API_KEY
        self.base_url = (base_url or LLM_BASE_URL).rstrip("/")
        self.model = model or LLM_MODEL
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate_llm_response(
        self,
        messages: list,
        model: Optional[str] = None,
        response_format: Optional[Dict] = None,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """POST {base_url}/chat/completions and return the decoded JSON body"""
        endpoint = f"{self.base_url}/{self.CHAT_ENDPOINT}"

        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            **kwargs,
        }
        if response_format is not None:
            payload["response_format"] = response_format

        try:
            response = await self._client.post(endpoint, json=payload)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPError as e:
            log_error(
                logger,
                "LLM failed",
                e,
                endpoint=endpoint,
                status_code=getattr(getattr(e, "response", None), "status_code", None),
            )
            raise

    @staticmethod
    def message_content(response: Dict[str, Any]) -> str:
        """First choice's message text; raises KeyError/IndexError/TypeError on odd shapes"""
        content = response["choices"][0]["message"]["content"]
        return content or ""


# Singleton instance
llm_service = LLMService()
