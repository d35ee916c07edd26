import json
import re
import logging
from typing import Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from cvtrack.core.config import settings
from cvtrack.core.exceptions import AIError, AIKillSwitchError, AIResponseError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class AIDomain:
    CV_VALIDATION = "cv_validation"
    CV_EXTRACTION = "cv_extraction"
    JOB_DETECTION = "job_detection"
    CANDIDATE_MATCHING = "candidate_matching"
    GENERAL = "general"


class AIOrchestrator:
    """
    Single entry point to the language-model provider.
    Each call is one blocking request; failures surface to the caller unretried.
    """

    @staticmethod
    def _do_call(prompt: str, model_name: str, temperature: float, json_mode: bool) -> str:
        payload = {
            "model": model_name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            response = requests.post(
                url=settings.ai.base_url,
                headers={
                    "Authorization": f"Bearer {settings.ai.openrouter_api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=settings.ai.request_timeout,
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"] or ""
        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise AIError("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            logger.error(f"AI service HTTP error: {e}")
            raise AIError(f"AI service returned error: {e.response.status_code}")
        except (requests.exceptions.RequestException, KeyError, IndexError, ValueError) as e:
            logger.exception("Unexpected error during AI call.")
            raise AIError(f"AI service error: {str(e)}")

    @classmethod
    def complete(
        cls,
        prompt: str,
        temperature: float = 0.3,
        json_mode: bool = True,
        domain: str = AIDomain.GENERAL,
    ) -> str:
        """Send one prompt and return the raw completion text."""
        logger.info(f"AI request | Domain: {domain} | Model: {settings.ai.model_name}")

        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not settings.ai.openrouter_api_key:
            logger.error("OpenRouter API Key missing.")
            raise AIError("AI service configuration error.")

        return cls._do_call(prompt, settings.ai.model_name, temperature, json_mode)

    @classmethod
    def analyze_json(
        cls,
        prompt: str,
        model_cls: Type[T],
        temperature: float = 0.3,
        domain: str = AIDomain.GENERAL,
    ) -> T:
        """
        Ask for a JSON object and validate it against ``model_cls``.
        Anything that is not exactly that shape raises AIResponseError.
        """
        response_text = cls.complete(prompt, temperature=temperature, json_mode=True, domain=domain)
        return parse_json_response(response_text, model_cls)


def parse_json_response(response_text: str, model_cls: Type[T]) -> T:
    text = (response_text or "").strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.error(f"Failed to decode AI JSON response: {response_text[:500]!r}")
        raise AIResponseError("AI response is not valid JSON.")

    if not isinstance(data, dict):
        raise AIResponseError("AI response is not a JSON object.")

    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        logger.error(f"AI response does not match {model_cls.__name__}: {e}")
        raise AIResponseError(
            f"AI response does not match the expected {model_cls.__name__} shape.",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        )
