"""
Structured field extraction from receipt images.

The default provider posts the image to an HTTP proxy in front of a
generative model; OpenAI and Anthropic vision models are supported through
their SDKs.
"""

import base64
import json
import logging
import math
from enum import Enum
from typing import Dict, Optional

import requests

from .config import DEFAULT_TIMEOUT
from .errors import ExtractionFailure
from .models import ReceiptFields
from .utils import JPEG_MIME_TYPE

logger = logging.getLogger(__name__)


class ExtractionProvider(str, Enum):
    """Supported extraction providers."""
    PROXY = "proxy"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


# Default models for each SDK provider
DEFAULT_MODELS = {
    ExtractionProvider.OPENAI: "gpt-4o-mini",
    ExtractionProvider.ANTHROPIC: "claude-3-5-haiku-20241022",
}

CATEGORIES = ["Restaurant", "Transport", "Groceries", "Utilities", "Shopping", "Other"]
MEAL_TYPES = ["Lunch", "Dinner", "Unknown"]

PROMPT = (
    "Extract the following information from this receipt image: "
    "date (YYYY-MM-DD), company name, "
    f"category (classify as {', '.join(repr(c) for c in CATEGORIES)}), "
    "meal type (classify as 'Lunch' or 'Dinner' based on typical meal times, if unclear, use 'Unknown'), "
    "and total cost. Provide the total cost as a number. "
    "If any information is missing, use 'N/A'."
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "date": {"type": "STRING", "description": "Date of the receipt in YYYY-MM-DD format. If not found, use 'N/A'."},
        "companyName": {"type": "STRING", "description": "Name of the company or establishment. If not found, use 'N/A'."},
        "category": {"type": "STRING", "description": f"Category of the expense, one of {', '.join(CATEGORIES)}. If not found, use 'Other'."},
        "mealType": {"type": "STRING", "description": "Type of meal, either 'Lunch', 'Dinner', or 'Unknown'. If not found, use 'Unknown'."},
        "cost": {"type": "NUMBER", "description": "Total cost of the receipt as a number. If not found, use 0."},
    },
    "required": ["date", "companyName", "category", "mealType", "cost"],
}

JSON_INSTRUCTION = (
    "\n\nReturn ONLY a JSON object (no markdown, no explanation) with the keys "
    "\"date\", \"companyName\", \"category\", \"mealType\" (strings) and \"cost\" (number)."
)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code block, if present."""
    text = text.strip()
    if not text.startswith("```"):
        return text
    json_lines = []
    in_code = False
    for line in text.split("\n"):
        if line.startswith("```"):
            in_code = not in_code
            continue
        if in_code:
            json_lines.append(line)
    return "\n".join(json_lines)


def parse_fields(text: str) -> ReceiptFields:
    """Decode the model's JSON text into ReceiptFields."""
    try:
        data = json.loads(strip_code_fence(text))
    except (TypeError, ValueError) as e:
        raise ExtractionFailure(f"Extraction response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionFailure("Extraction response is not a JSON object")

    missing = [k for k in RESPONSE_SCHEMA["required"] if data.get(k) is None]
    if missing:
        raise ExtractionFailure(f"Extraction response is missing: {', '.join(missing)}")

    cost = data["cost"]
    if isinstance(cost, bool):
        raise ExtractionFailure(f"Extraction returned a non-numeric cost: {cost!r}")
    try:
        cost = float(cost)
    except (TypeError, ValueError) as e:
        raise ExtractionFailure(f"Extraction returned a non-numeric cost: {cost!r}") from e
    if not math.isfinite(cost):
        raise ExtractionFailure(f"Extraction returned a non-finite cost: {cost!r}")

    return ReceiptFields(
        date=str(data["date"]),
        company_name=str(data["companyName"]),
        category=str(data["category"]),
        meal_type=str(data["mealType"]),
        cost=cost,
    )


def candidate_text(payload: Dict) -> str:
    """Return the text of the first part of the first candidate."""
    if not isinstance(payload, dict):
        raise ExtractionFailure("Extraction response is not a JSON object")
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise ExtractionFailure("Extraction response has no candidates")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        raise ExtractionFailure("Extraction response has no content parts")
    if not isinstance(parts[0], dict) or not isinstance(parts[0].get("text"), str):
        raise ExtractionFailure("Extraction response has no text part")
    return parts[0]["text"]


class ExtractionClient:
    """Sends a canonical JPEG to the extraction service and parses the result."""

    def __init__(self, endpoint: Optional[str] = None,
                 provider: str = ExtractionProvider.PROXY,
                 model: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT,
                 session=None):
        self.provider = ExtractionProvider(provider)
        if self.provider == ExtractionProvider.PROXY and not endpoint:
            raise ValueError("An extraction endpoint URL is required for the proxy provider")
        self.endpoint = endpoint
        self.model = model or DEFAULT_MODELS.get(self.provider)
        self.timeout = timeout
        self.session = session or requests.Session()
        self._clients = {}

    @classmethod
    def from_settings(cls, settings, session=None) -> "ExtractionClient":
        return cls(endpoint=settings.endpoint, provider=settings.provider,
                   model=settings.model, timeout=settings.timeout, session=session)

    def extract(self, image: bytes) -> ReceiptFields:
        """Extract date, company, category, meal type and cost from a JPEG image."""
        image_b64 = base64.b64encode(image).decode("ascii")

        if self.provider == ExtractionProvider.PROXY:
            text = self._call_proxy(image_b64)
        elif self.provider == ExtractionProvider.OPENAI:
            text = self._call_openai(image_b64)
        else:
            text = self._call_anthropic(image_b64)

        fields = parse_fields(text)
        logger.debug("Extracted %s", fields)
        return fields

    def _call_proxy(self, image_b64: str) -> str:
        """Call the HTTP proxy and pull the JSON text out of its candidates."""
        body = {
            "prompt": PROMPT,
            "imageData": image_b64,
            "mimeType": JPEG_MIME_TYPE,
        }
        try:
            response = self.session.post(self.endpoint, json=body, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise ExtractionFailure(f"Extraction request failed: {e}") from e
        except ValueError as e:
            raise ExtractionFailure(f"Extraction service returned non-JSON body: {e}") from e
        return candidate_text(payload)

    def _get_openai_client(self):
        """Get or create OpenAI client (lazy initialization)."""
        if "openai" not in self._clients:
            import openai
            self._clients["openai"] = openai.OpenAI(timeout=self.timeout)  # Uses OPENAI_API_KEY env var
        return self._clients["openai"]

    def _get_anthropic_client(self):
        """Get or create Anthropic client (lazy initialization)."""
        if "anthropic" not in self._clients:
            import anthropic
            self._clients["anthropic"] = anthropic.Anthropic(timeout=self.timeout)  # Uses ANTHROPIC_API_KEY env var
        return self._clients["anthropic"]

    def _call_openai(self, image_b64: str) -> str:
        try:
            client = self._get_openai_client()
            response = client.chat.completions.create(
                model=self.model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": PROMPT + JSON_INSTRUCTION},
                        {"type": "image_url",
                         "image_url": {"url": f"data:{JPEG_MIME_TYPE};base64,{image_b64}"}},
                    ],
                }],
                max_tokens=300,
                temperature=0.0,
                response_format={"type": "json_object"},
            )
            text = response.choices[0].message.content
        except Exception as e:
            raise ExtractionFailure(f"OpenAI extraction failed: {e}") from e
        if not text:
            raise ExtractionFailure("OpenAI returned an empty response")
        return text

    def _call_anthropic(self, image_b64: str) -> str:
        try:
            client = self._get_anthropic_client()
            response = client.messages.create(
                model=self.model,
                max_tokens=300,
                temperature=0.0,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "image",
                         "source": {"type": "base64", "media_type": JPEG_MIME_TYPE, "data": image_b64}},
                        {"type": "text", "text": PROMPT + JSON_INSTRUCTION},
                    ],
                }],
            )
            text = response.content[0].text
        except Exception as e:
            raise ExtractionFailure(f"Anthropic extraction failed: {e}") from e
        if not text:
            raise ExtractionFailure("Anthropic returned an empty response")
        return text
