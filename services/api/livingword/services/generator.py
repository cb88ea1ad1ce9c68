"""Verse content generation via Groq (OpenAI-compatible chat completions).

One artifact takes three sequential LLM calls:
1. Pick a verse reference for the day/slot (creative, high temperature).
   If this call fails we fall back to a fixed reference instead of failing.
2. Fetch the verse text in the target language's Bible version, formatted as
   "Reference|Text". Output without the delimiter is kept whole as the text.
3. Write a short pastoral reflection on the verse.

The image is not generated here: we only build a Pollinations URL from the
verse text; the image service renders it lazily when the client loads it.

Retries and fallbacks for this sequence live here. Callers only see a
finished GeneratedVerse or a GenerationError.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
import re
import string
from urllib.parse import quote

import httpx

from livingword.services.catalog import PROMPTS, Language, Slot
from livingword.settings import get_settings

logger = logging.getLogger("uvicorn.error")

FALLBACK_REFERENCE = "Salmos 23:1"
VERSE_DELIMITER = "|"
IMAGE_PROMPT_PREFIX = (
    "ethereal divine light, heavenly clouds, golden rays, peaceful bright atmosphere, "
    "religious spiritual art, masterpiece, "
)
IMAGE_TEXT_CHARS = 30

_REFERENCE_LABEL_RE = re.compile(r"^vers[íi]culo:\s*", re.IGNORECASE)


class GenerationError(RuntimeError):
    pass


@dataclass(frozen=True)
class GeneratedVerse:
    reference: str
    text: str
    explanation: str
    image_url: str
    language: Language


def clean_reference(raw: str) -> str:
    """Strip whitespace and a leading "Versículo:" label from a model reply."""
    return _REFERENCE_LABEL_RE.sub("", raw.strip())


def strip_markdown(raw: str) -> str:
    return raw.strip().replace("*", "")


def parse_verse_response(raw: str, requested_reference: str) -> tuple[str, str]:
    """Split a "Reference|Text" reply into (reference, text).

    Without a delimiter the whole reply is the text and the requested
    reference is kept. This is the expected fallback for loosely formatted
    model output, not an error.
    """
    content = strip_markdown(raw)
    if VERSE_DELIMITER not in content:
        return requested_reference, content

    parts = content.split(VERSE_DELIMITER)
    reference = parts[0].strip() or requested_reference
    return reference, parts[1].strip()


def build_image_url(text: str, seed: int, base_url: str | None = None) -> str:
    """Build a Pollinations image URL seeded from the start of the verse text."""
    base = base_url or get_settings().image_base_url
    prompt = quote(f"{IMAGE_PROMPT_PREFIX}{text[:IMAGE_TEXT_CHARS]}", safe="!*'()")
    return f"{base}{prompt}?width=800&height=450&seed={seed}&model=flux&nologo=true"


def _random_salt(rng: random.Random) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(rng.choice(alphabet) for _ in range(6))


def _extract_message_content(data: object) -> str:
    """Return choices[0].message.content from a chat completions payload."""
    if isinstance(data, dict) and isinstance(data.get("choices"), list):
        for choice in data["choices"]:
            if isinstance(choice, dict):
                msg = choice.get("message")
                if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                    return msg["content"]
    raise GenerationError("Unexpected chat completions response: missing message content")


class GroqContentGenerator:
    """Produces verse artifacts from the Groq chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        rng: random.Random | None = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.groq_api_key
        self.base_url = (base_url or settings.groq_base_url).rstrip("/")
        self.model = model or settings.groq_model
        self.timeout = timeout or settings.groq_timeout_seconds
        self._transport = transport
        self._rng = rng or random.Random()
        self._http_client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _chat(self, system_prompt: str, user_prompt: str, *, temperature: float | None = None) -> str:
        url = f"{self.base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        body: dict[str, object] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if temperature is not None:
            body["temperature"] = temperature

        client = await self._get_client()
        r = await client.post(url, headers=headers, json=body)
        r.raise_for_status()
        return _extract_message_content(r.json())

    async def _pick_reference(self, slot: Slot, date: str) -> str:
        salt = _random_salt(self._rng)
        system_prompt = (
            f"You are a Bible Verse Selector. Select a UNIQUE and inspiring Bible Verse reference for "
            f"{date} ({slot.value}). Salt: {salt}. Return ONLY the reference. "
            "NEVER pick Zefanías 3:17, Salmo 23:1, or Juan 3:16."
        )
        user_prompt = f"Pick a totally new verse for {slot.value} of {date}. Be creative. ID: {salt}"
        try:
            reference = clean_reference(await self._chat(system_prompt, user_prompt, temperature=1.0))
        except (httpx.HTTPError, GenerationError, ValueError) as e:
            logger.warning(f"[generator] Using fallback verse reference {FALLBACK_REFERENCE!r}: {e}")
            return FALLBACK_REFERENCE
        return reference or FALLBACK_REFERENCE

    async def generate(self, slot: Slot, language: Language, date: str) -> GeneratedVerse:
        """Generate a fresh artifact for (slot, language, date).

        Raises:
            GenerationError: API key missing, provider call failed or returned
                an unusable payload.
        """
        if not self.api_key:
            raise GenerationError("GROQ_API_KEY missing")

        prompts = PROMPTS[language]
        requested_reference = await self._pick_reference(slot, date)

        try:
            raw_text = await self._chat(
                prompts.bible_prompt,
                f"Cita: {requested_reference}",
                temperature=0.1,
            )
            reference, text = parse_verse_response(raw_text, requested_reference)
            if not text:
                raise GenerationError(f"Empty verse text for {requested_reference}")

            image_url = build_image_url(text, seed=self._rng.randint(0, 999_999))

            explanation = strip_markdown(
                await self._chat(prompts.pastor_prompt, f'Versículo: {reference} - "{text}"')
            )
            if not explanation:
                raise GenerationError(f"Empty reflection for {reference}")
        except httpx.HTTPStatusError as e:
            status = int(e.response.status_code) if e.response is not None else 0
            response_text = e.response.text[:200] if e.response is not None else ""
            logger.error(f"[generator] Groq HTTP {status} model={self.model} response={response_text}")
            raise GenerationError(f"Content provider HTTP {status}") from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Content provider request failed: {type(e).__name__}") from e
        except ValueError as e:
            # Non-JSON body
            raise GenerationError(f"Content provider returned an unreadable payload: {e}") from e

        return GeneratedVerse(
            reference=reference,
            text=text,
            explanation=explanation,
            image_url=image_url,
            language=language,
        )


_generator: GroqContentGenerator | None = None


def get_content_generator() -> GroqContentGenerator:
    """Get content generator singleton."""
    global _generator
    if _generator is None:
        _generator = GroqContentGenerator()
    return _generator


async def close_content_generator() -> None:
    global _generator
    if _generator is not None:
        await _generator.close()
        _generator = None
