"""
openai_utils.py — Vision Classifier Client for Species Detection
-----------------------------------------------------------------

Provides:

* `SpeciesClassifier`: one synchronous call to the OpenAI Responses API with
  a system prompt and one inline image, bounded output and a client timeout
* Helpers to unwrap the response envelope and parse the JSON answer

Used for:
- Identifying the fish species on a catch photo (see core.species_detection)

Requirements:
- `openai` package for API access
- OPENAI_API_KEY must be set in `.env` or `.streamlit/secrets.toml`

No retries happen here (max_retries=0): a failed call is surfaced to the
caller as UpstreamFault and retrying is the mobile client's decision.
"""

import json
import re
from typing import Optional

import openai
from openai import OpenAI

from config.settings import (
    CLASSIFIER_MAX_OUTPUT_TOKENS,
    CLASSIFIER_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_REASONING_EFFORT,
)
from config.logging_config import get_logger
from core.exception import ConfigurationFault, UpstreamFault

logger = get_logger(__name__)

DEFAULT_IMAGE_PREFIX = "data:image/jpeg;base64,"

_CODE_FENCE = re.compile(r"```json|```", re.IGNORECASE)


def to_image_data_url(value: Optional[str]) -> Optional[str]:
    """Returns a data URL for the classifier; raw base64 is assumed to be JPEG."""
    if not value:
        return None
    if value.startswith("data:"):
        return value
    return f"{DEFAULT_IMAGE_PREFIX}{value}"


def extract_text_from_response(payload) -> str:
    """
    Pulls the model's text out of a Responses API envelope.

    Accepts either a flat `output_text` string or an `output` list of blocks,
    each carrying `text` or a `content` list of text parts.
    """
    if not isinstance(payload, dict):
        return ""
    if isinstance(payload.get("output_text"), str):
        return payload["output_text"]

    output = payload.get("output")
    if isinstance(output, list):
        for block in output:
            if not isinstance(block, dict):
                continue
            if isinstance(block.get("text"), str):
                return block["text"]
            content = block.get("content")
            if isinstance(content, list):
                joined = "\n".join(
                    c["text"] for c in content
                    if isinstance(c, dict) and isinstance(c.get("text"), str) and c["text"]
                )
                if joined.strip():
                    return joined
    return ""


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text or "").strip()


def parse_classifier_json(text: str) -> dict:
    """
    Parses the unwrapped model text as one JSON object.

    Raises:
        UpstreamFault: text is not valid JSON or not an object
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Classifier returned invalid JSON: {e}")
        raise UpstreamFault("Reponse d'analyse illisible", detail=cleaned or str(e)) from e

    if not isinstance(parsed, dict):
        raise UpstreamFault("Reponse d'analyse illisible", detail=cleaned)
    return parsed


class SpeciesClassifier:
    """
    Thin wrapper around the OpenAI client. Built once and reused; the
    underlying HTTP client is connection-pooled.

    Args:
        api_key (str | None): OpenAI key; without it the classifier is unconfigured
        model (str): vision-capable model name
        max_output_tokens (int): hard cap on the answer size
        timeout (float): seconds before the call is abandoned
        reasoning_effort (str | None): passed through for reasoning models
        client: pre-built OpenAI client (tests)
    """

    def __init__(
        self,
        api_key: Optional[str] = OPENAI_API_KEY,
        model: str = OPENAI_MODEL,
        max_output_tokens: int = CLASSIFIER_MAX_OUTPUT_TOKENS,
        timeout: float = CLASSIFIER_TIMEOUT,
        reasoning_effort: Optional[str] = OPENAI_REASONING_EFFORT,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.reasoning_effort = reasoning_effort
        if client is None and api_key:
            client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.client = client

    @property
    def configured(self) -> bool:
        return self.client is not None

    def classify(self, prompt: str, image_url: str, instruction: str) -> dict:
        """
        Sends the prompt and image and returns the response envelope as a dict.

        Raises:
            ConfigurationFault: no API key
            UpstreamFault: non-2xx status, timeout or connection failure
        """
        if not self.configured:
            raise ConfigurationFault()

        request = {
            "model": self.model,
            "input": [
                {"role": "system", "content": [{"type": "input_text", "text": prompt}]},
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": instruction},
                        {"type": "input_image", "image_url": image_url},
                    ],
                },
            ],
            "max_output_tokens": self.max_output_tokens,
            "text": {"format": {"type": "json_object"}},
        }
        if self.reasoning_effort:
            request["reasoning"] = {"effort": self.reasoning_effort}

        try:
            response = self.client.responses.create(**request)
        except openai.APIStatusError as e:
            logger.error(f"OpenAI error {e.status_code}: {e.response.text[:500]}")
            raise UpstreamFault(detail=e.response.text, status=e.status_code) from e
        except openai.APIConnectionError as e:
            # APITimeoutError is a subclass
            logger.error(f"OpenAI unreachable: {e}")
            raise UpstreamFault(detail=str(e)) from e

        return response.model_dump(mode="json")
