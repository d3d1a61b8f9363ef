"""Optional cleanup of noisy artist/title text before searching."""

import json
import logging
from dataclasses import replace
from typing import Any

import httpx

from vinylzz.errors import NormalizerFailure
from vinylzz.models import RecordMeta


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You clean noisy record metadata to {artist, title}. Return strict JSON."
)


class PassthroughNormalizer:
    """Returns the metadata untouched."""

    configured = False

    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        return meta

    async def aclose(self) -> None:
        pass


class OpenAINormalizer:
    """Rewrites artist and title using an OpenAI chat completion.

    Without an API key the normalizer is unconfigured and returns its input.
    Only ``artist`` and ``title`` are ever changed. A field the model leaves
    empty keeps its original value.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 20.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def normalize(self, meta: RecordMeta) -> RecordMeta:
        """Clean artist/title.

        Raises:
            NormalizerFailure: The completion failed or was not valid JSON.
        """
        if not self.configured:
            return meta

        parsed = await self._complete(meta)
        return replace(
            meta,
            artist=parsed.get("artist") or meta.artist,
            title=parsed.get("title") or meta.title,
        )

    async def _complete(self, meta: RecordMeta) -> dict[str, Any]:
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Raw: {json.dumps(meta.to_dict())}\nOutput keys: artist, title.",
                },
            ],
            "temperature": 0.2,
            "response_format": {"type": "json_object"},
        }
        try:
            resp = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NormalizerFailure(f"Normalizer request failed: {exc}") from exc

        if resp.is_error:
            raise NormalizerFailure(f"Normalizer returned {resp.status_code}")

        try:
            content = resp.json()["choices"][0]["message"]["content"] or "{}"
            parsed = json.loads(content)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise NormalizerFailure(f"Normalizer reply is not usable: {exc}") from exc

        if not isinstance(parsed, dict):
            raise NormalizerFailure("Normalizer reply is not a JSON object")
        return {
            key: value
            for key, value in parsed.items()
            if key in ("artist", "title") and isinstance(value, str)
        }

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()
