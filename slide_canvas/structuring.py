"""
Remote-model-assisted slide structuring.

Two interchangeable HTTP backends (Gemini and xAI) turn free-form text into
the structured JSON slide shape. :class:`AssistedSlideParser` wraps them and
always produces slides: any remote failure is logged and the grammar parser
runs on the same text instead.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx

from .config import Settings
from .exceptions import RemoteServiceError
from .models import AbstractSlide
from .slide_parser import SlideParser

logger = logging.getLogger(__name__)

BACKEND_GEMINI = "gemini"
BACKEND_XAI = "xai"
BACKEND_NONE = "none"

STRUCTURE_PROMPT = """Parse the following text into a structured presentation format.
Extract the main ideas and organize them into slides with clear titles and content.
If the text contains code snippets, preserve them with proper language identification.
If the text describes visual elements, add a visualDescription field.
For each slide, identify if the content should be:
- Regular content paragraphs
- Bullet points (for lists or key points)
- Code blocks (with language)
- Visual descriptions for generating diagrams

Respond with ONLY a valid JSON object (no markdown, no explanation) with this exact structure:
{{
  "title": "Main presentation title if identifiable",
  "theme": "light or dark or colorful",
  "slides": [
    {{
      "title": "Slide title",
      "content": ["array of content paragraphs"],
      "bullets": ["array of bullet points"],
      "code": {{"language": "programming language", "content": "code content"}},
      "notes": "speaker notes",
      "visualDescription": "description for visual elements"
    }}
  ]
}}

Make sure every slide has at least a title. Other fields are optional.

Text to parse:
{text}"""

SYSTEM_MESSAGE = (
    "You are a helpful assistant that creates structured presentations. "
    "Always respond with valid JSON only, no markdown formatting."
)

_CODE_FENCE = re.compile(r'```(?:json)?\n?')
_JSON_OBJECT = re.compile(r'\{[\s\S]*\}')


@dataclass
class StructuredResult:
    """Slides returned by a structuring backend."""
    slides: List[AbstractSlide] = field(default_factory=list)
    title: Optional[str] = None
    theme: Optional[str] = None


@dataclass
class StructureOutcome:
    """Either a structured result or the reason structuring failed."""
    result: Optional[StructuredResult] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, result: StructuredResult) -> "StructureOutcome":
        return cls(result=result)

    @classmethod
    def err(cls, reason: str) -> "StructureOutcome":
        return cls(reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.result is not None


class StructuringBackend(Protocol):
    """Capability shared by all remote structuring services."""
    name: str

    def available(self) -> bool:
        ...

    async def structure_text(self, text: str) -> StructuredResult:
        ...


def extract_json(raw: str) -> Dict[str, Any]:
    """
    Decode a model reply into a JSON object.

    Markdown code fences are removed first; if the remainder still isn't
    JSON, the outermost ``{...}`` span is tried.
    """
    cleaned = _CODE_FENCE.sub('', raw).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        match = _JSON_OBJECT.search(cleaned)
        if not match:
            raise RemoteServiceError("Could not extract valid JSON from model response")
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise RemoteServiceError("Model response is not valid JSON", cause=exc)

    if not isinstance(payload, dict):
        raise RemoteServiceError("Model response is not a JSON object")
    return payload


def parse_structured_payload(payload: Dict[str, Any]) -> StructuredResult:
    """Validate the ``{slides: [...], title?, theme?}`` shape."""
    slides = payload.get("slides")
    if not isinstance(slides, list):
        raise RemoteServiceError("Invalid response format: missing slides array")

    converted = [AbstractSlide.from_dict(item) for item in slides if isinstance(item, dict)]

    title = payload.get("title")
    theme = payload.get("theme")
    return StructuredResult(
        slides=converted,
        title=title if isinstance(title, str) else None,
        theme=theme if isinstance(theme, str) else None,
    )


async def _post_json(
    url: str,
    *,
    body: Dict[str, Any],
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    service: str,
) -> Dict[str, Any]:
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=body, headers=headers, params=params)
    except httpx.HTTPError as exc:
        raise RemoteServiceError(f"{service} request failed", cause=exc)

    if response.status_code >= 400:
        logger.error("%s API error %d: %s", service, response.status_code, response.text[:500])
        raise RemoteServiceError(
            f"{service} API error: {response.status_code}",
            context={"status": response.status_code},
        )

    try:
        data = response.json()
    except ValueError as exc:
        raise RemoteServiceError(f"{service} returned a non-JSON body", cause=exc)
    if not isinstance(data, dict):
        raise RemoteServiceError(f"{service} returned an unexpected body")
    return data


class GeminiBackend:
    """Google Gemini ``generateContent`` with JSON response mode."""

    name = BACKEND_GEMINI

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def available(self) -> bool:
        return bool(self.settings.gemini_api_key)

    async def structure_text(self, text: str) -> StructuredResult:
        if not self.available():
            raise RemoteServiceError("Gemini API key not configured (set GEMINI_API_KEY)")

        url = f"{self.settings.gemini_base_url}/v1beta/models/{self.settings.gemini_model}:generateContent"
        data = await _post_json(
            url,
            body={
                "contents": [{"parts": [{"text": STRUCTURE_PROMPT.format(text=text)}]}],
                "generationConfig": {"responseMimeType": "application/json"},
            },
            params={"key": self.settings.gemini_api_key},
            timeout=self.settings.timeout,
            transport=self.transport,
            service="Gemini",
        )

        try:
            reply = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RemoteServiceError("Gemini response has no candidate text", cause=exc)
        if not isinstance(reply, str):
            raise RemoteServiceError(f"Gemini candidate text is {type(reply).__name__}, not a string")

        logger.debug("Gemini raw JSON response: %s", reply[:500])
        return parse_structured_payload(extract_json(reply))


class XAIBackend:
    """xAI Grok chat completions."""

    name = BACKEND_XAI

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def available(self) -> bool:
        return bool(self.settings.xai_api_key)

    async def structure_text(self, text: str) -> StructuredResult:
        if not self.available():
            raise RemoteServiceError("xAI API key not configured (set XAI_API_KEY)")

        data = await _post_json(
            f"{self.settings.xai_base_url}/v1/chat/completions",
            body={
                "model": self.settings.xai_model,
                "messages": [
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": STRUCTURE_PROMPT.format(text=text)},
                ],
                "temperature": 0.7,
                "max_tokens": 4000,
                "stream": False,
            },
            headers={"Authorization": f"Bearer {self.settings.xai_api_key}"},
            timeout=self.settings.timeout,
            transport=self.transport,
            service="xAI",
        )

        try:
            reply = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RemoteServiceError("xAI response has no message content", cause=exc)
        if not isinstance(reply, str):
            raise RemoteServiceError(f"xAI message content is {type(reply).__name__}, not a string")

        logger.debug("xAI raw response: %s", reply[:500])
        return parse_structured_payload(extract_json(reply))


def build_backends(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> List[StructuringBackend]:
    """Backends in default preference order."""
    return [XAIBackend(settings, transport), GeminiBackend(settings, transport)]


class AssistedSlideParser:
    """
    Structure text through a remote backend, falling back to the grammar
    parser on any remote failure.
    """

    def __init__(
        self,
        backends: Sequence[StructuringBackend],
        fallback: Optional[SlideParser] = None,
    ):
        self.backends = list(backends)
        self.fallback = fallback or SlideParser()

    def select_backend(self, prefer: Optional[str] = None) -> Optional[StructuringBackend]:
        """
        Pick the preferred backend if available, else the first available one.
        ``"none"`` disables remote structuring.
        """
        if prefer == BACKEND_NONE:
            return None
        available = [backend for backend in self.backends if backend.available()]
        for backend in available:
            if backend.name == prefer:
                return backend
        if prefer and available:
            logger.info("Backend '%s' unavailable, using '%s'", prefer, available[0].name)
        return available[0] if available else None

    async def structure(self, backend: StructuringBackend, text: str) -> StructureOutcome:
        try:
            return StructureOutcome.ok(await backend.structure_text(text))
        except RemoteServiceError as exc:
            return StructureOutcome.err(str(exc))
        except Exception as exc:
            logger.exception("Structuring backend %s raised unexpectedly", backend.name)
            return StructureOutcome.err(f"{type(exc).__name__}: {exc}")

    async def parse(self, text: str, prefer: Optional[str] = None) -> List[AbstractSlide]:
        backend = self.select_backend(prefer)
        if backend is None:
            logger.debug("No structuring backend selected; using grammar parser")
            return self.fallback.parse(text)

        outcome = await self.structure(backend, text)
        if outcome.is_ok:
            slides = [slide for slide in outcome.result.slides if slide.has_content()]
            if slides:
                logger.info("Structured %d slides via %s", len(slides), backend.name)
                return slides
            logger.warning("%s returned no usable slides, falling back to grammar parser", backend.name)
        else:
            logger.warning(
                "Remote structuring via %s failed, falling back to grammar parser: %s",
                backend.name, outcome.reason,
            )
        return self.fallback.parse(text)
