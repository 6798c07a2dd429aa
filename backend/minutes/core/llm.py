import httpx
import logging
from typing import Optional, Dict, Any, List

from ..services.health_service import SystemHealthService, ServiceStatus
from .config import settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ["ollama", "lmstudio", "openai"]


class LlmError(Exception):
    """Raised when an LLM provider call fails or returns an unusable reply."""


class LlmConfigurationError(LlmError):
    """Raised when provider settings are incomplete (e.g. a missing API key)."""


class LlmClient:
    """
    Base client for chat-style LLM providers.

    Subclasses describe the provider's endpoint, request body and reply shape;
    the request/response plumbing, logging and health reporting live here.
    """
    provider = "generic"

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        timeout: float = settings.LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport
        self.health = SystemHealthService()

    def endpoint(self) -> str:
        raise NotImplementedError

    def models_endpoint(self) -> str:
        raise NotImplementedError

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def build_payload(self, messages: List[Dict[str, str]], temperature: float) -> Dict[str, Any]:
        raise NotImplementedError

    def extract_content(self, data: Dict[str, Any]) -> Optional[str]:
        raise NotImplementedError

    async def chat(self, user_prompt: str, system_prompt: str = "", temperature: float = 0.5) -> str:
        """
        Sends a system + user message pair and returns the reply text.
        """
        messages = [
            {"role": "system", "content": system_prompt or ""},
            {"role": "user", "content": user_prompt},
        ]
        payload = self.build_payload(messages, temperature)
        url = self.endpoint()

        logger.info(f"Calling {self.provider} model {self.model} at {url}")
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self.headers())
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.provider} API error {e.response.status_code}: {e.response.text[:500]}")
            self.health.set_llm_status(ServiceStatus.ERROR, f"HTTP {e.response.status_code}")
            raise LlmError(f"{self.provider} returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{self.provider} request failed: {type(e).__name__}: {e}")
            self.health.set_llm_status(ServiceStatus.UNAVAILABLE, str(e))
            raise LlmError(f"Failed to reach {self.provider}: {e}") from e

        content = self.extract_content(data) if isinstance(data, dict) else None
        if not content:
            self.health.set_llm_status(ServiceStatus.ERROR, "Invalid response format")
            raise LlmError(f"Invalid response format from {self.provider}")

        self.health.set_llm_status(ServiceStatus.READY)
        return content

    async def check_connection(self, timeout: float = 5.0) -> bool:
        """Lists the provider's models to see whether it is reachable."""
        url = self.models_endpoint()
        logger.info(f"🔍 Checking {self.provider} at {url}")
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=timeout) as client:
                response = await client.get(url, headers=self.headers())
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  {self.provider} unreachable: {e}")
            self.health.set_llm_status(ServiceStatus.UNAVAILABLE, str(e))
            return False

        if response.is_success:
            logger.info(f"✅ {self.provider} reachable")
            self.health.set_llm_status(ServiceStatus.READY)
            return True

        logger.warning(f"⚠️  {self.provider} returned status {response.status_code}")
        self.health.set_llm_status(ServiceStatus.ERROR, f"HTTP {response.status_code}")
        return False


class OllamaClient(LlmClient):
    provider = "ollama"

    def endpoint(self) -> str:
        return f"{self.base_url}/api/chat"

    def models_endpoint(self) -> str:
        return f"{self.base_url}/api/tags"

    def build_payload(self, messages, temperature):
        return {
            "model": self.model,
            "messages": messages,
            "options": {"temperature": temperature},
            "stream": False,
        }

    def extract_content(self, data):
        message = data.get("message") or {}
        return message.get("content")


class OpenAICompatibleClient(LlmClient):
    """Chat Completions request/reply shape shared by OpenAI and LM Studio."""
    provider = "openai-compatible"
    max_tokens = settings.LLM_MAX_TOKENS

    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def models_endpoint(self) -> str:
        return f"{self.base_url}/models"

    def build_payload(self, messages, temperature):
        return {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": self.max_tokens,
        }

    def extract_content(self, data):
        choices = data.get("choices") or []
        if not choices:
            return None
        return (choices[0].get("message") or {}).get("content")


class LmStudioClient(OpenAICompatibleClient):
    provider = "lmstudio"

    def endpoint(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def models_endpoint(self) -> str:
        return f"{self.base_url}/v1/models"


class OpenAIClient(OpenAICompatibleClient):
    provider = "openai"

    def __init__(self, base_url: str, model: str, api_key: Optional[str] = None, **kwargs):
        if not api_key:
            raise LlmConfigurationError("OpenAI API key is required")
        super().__init__(base_url, model, api_key=api_key, **kwargs)


def build_llm_client(settings_map: Dict[str, str], transport: Optional[httpx.AsyncBaseTransport] = None) -> LlmClient:
    """
    Create the client for the provider selected in stored settings.
    Empty stored values fall back to the environment defaults.
    """
    provider = (settings_map.get("ai_provider") or settings.AI_PROVIDER).lower()

    if provider == "lmstudio":
        return LmStudioClient(
            settings_map.get("lmstudio_path") or settings.LMSTUDIO_BASE_URL,
            settings_map.get("lmstudio_model") or settings.LMSTUDIO_MODEL,
            api_key=settings_map.get("lmstudio_api_key") or None,
            transport=transport,
        )
    if provider == "openai":
        return OpenAIClient(
            settings_map.get("openai_base_url") or settings.OPENAI_BASE_URL,
            settings_map.get("openai_model") or settings.OPENAI_MODEL,
            api_key=settings_map.get("openai_api_key") or None,
            transport=transport,
        )
    if provider == "ollama":
        return OllamaClient(
            settings_map.get("ollama_path") or settings.OLLAMA_BASE_URL,
            settings_map.get("ollama_model") or settings.OLLAMA_MODEL,
            transport=transport,
        )

    raise LlmConfigurationError(f"Unknown AI provider '{provider}'. Must be one of: {SUPPORTED_PROVIDERS}")
