"""HTTP client for the external text-generation service.

Talks to an OpenAI-compatible `/chat/completions` endpoint. The service is
treated as an opaque prompt-in, text-out collaborator: any transport
failure or non-2xx answer becomes an `UpstreamError`, with the upstream
body logged here and never forwarded to API clients.
"""

from typing import Optional

import requests

from core import config
from core.exceptions import ConfigurationError, UpstreamError
from core.logger import get_logger
from services.prompt_builder import SYSTEM_INSTRUCTION

logger = get_logger("services.generation_client")


class GenerationClient:
    """Minimal chat-completion client.

    Attributes:
        base_url: Service root, e.g. ``https://api.x.ai/v1``.
        api_key: Bearer token; falls back to `GENERATION_API_KEY` at call time.
        model: Model name sent with every request.
        timeout: Seconds to wait for the service before giving up.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        temperature: Optional[float] = None,
    ):
        self.base_url = (base_url or config.GENERATION_API_URL).rstrip("/")
        self.api_key = api_key
        self.model = model or config.GENERATION_MODEL
        self.timeout = timeout or config.GENERATION_TIMEOUT_SECONDS
        self.temperature = config.GENERATION_TEMPERATURE if temperature is None else temperature

    def complete(self, prompt: str, system: str = SYSTEM_INSTRUCTION) -> str:
        """Send `prompt` and return the reply text.

        An empty reply is returned as ``"[]"`` so callers parse it as an
        empty array.

        Raises:
            ConfigurationError: No API key is configured.
            UpstreamError: The request failed or the service answered non-2xx.
        """
        api_key = self.api_key or config.GENERATION_API_KEY
        if not api_key:
            raise ConfigurationError("Text generation service is not configured", config_key="GENERATION_API_KEY")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
        }
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Generation request failed: %s", exc)
            raise UpstreamError() from exc

        if not response.ok:
            logger.error("Generation service error %s: %s", response.status_code, response.text)
            raise UpstreamError(upstream_status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Generation service returned non-JSON envelope: %s", response.text)
            raise UpstreamError(upstream_status=response.status_code) from exc

        choices = (data.get("choices") if isinstance(data, dict) else None) or [{}]
        content = ((choices[0] or {}).get("message") or {}).get("content")
        return content or "[]"


generation_client = GenerationClient()
