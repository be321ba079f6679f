import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Any, Optional

import requests

from backend.app.config import Settings, get_settings
from backend.app.exceptions import (
    MediationError, MediatorNotConfigured, TokenAcquisitionFailed, CompletionRequestFailed,
    UNAVAILABLE_RECOMMENDATION
)
from backend.app.services.emotion_service import build_emotion_summary

logger = logging.getLogger(__name__)

# Used when the provider answers successfully but without any candidate text
FALLBACK_RECOMMENDATION = "Попробуйте выслушать друг друга и найти компромисс."

SYSTEM_PROMPT = """Ты опытный семейный психолог и медиатор. Твоя задача - помочь паре решить конфликт, проанализировав сообщения обеих сторон.

Правила:
- Отвечай только на русском языке
- Будь объективным и деликатным
- Предложи конкретные шаги для решения конфликта
- Помоги понять позицию каждой стороны
- Ответ должен быть кратким (максимум 150 слов)
- Не принимай ничью сторону, будь нейтральным медиатором"""

USER_PROMPT_TEMPLATE = """Партнер 1 говорит: "{message_a}"

Партнер 2 отвечает: "{message_b}"

Проанализируй ситуацию и дай совет, как лучше решить этот конфликт."""

@dataclass
class MediationResult:
    recommendation: str
    emotion_summary: Dict[str, Any]

class GigaChatMediator:
    """
    Turns a pair of partner messages into a recommendation via GigaChat.

    Every call performs a fresh OAuth token exchange followed by one
    chat-completion request. Nothing is cached or retried here; callers
    decide what to do with a failure.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def mediate(self, message_a: str, message_b: str) -> MediationResult:
        if not self.settings.gigachat_api_key:
            logger.error("GIGACHAT_API_KEY not found in environment")
            raise MediatorNotConfigured()

        access_token = self._acquire_token()
        recommendation = self._request_completion(access_token, message_a, message_b)

        return MediationResult(
            recommendation=recommendation,
            emotion_summary=build_emotion_summary(message_a, message_b)
        )

    def _acquire_token(self) -> str:
        rq_uid = str(uuid.uuid4())
        logger.info("Requesting GigaChat token (RqUID=%s)", rq_uid)

        try:
            response = self.session.post(
                self.settings.gigachat_auth_url,
                headers={
                    "Authorization": f"Bearer {self.settings.gigachat_api_key}",
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Accept": "application/json",
                    "RqUID": rq_uid,
                },
                data=f"scope={self.settings.gigachat_scope}",
                timeout=self.settings.gigachat_timeout_seconds,
                verify=self.settings.gigachat_verify_ssl,
            )
        except requests.RequestException as e:
            logger.error("Token request failed: %s", e)
            raise TokenAcquisitionFailed(body=str(e)) from e

        if not response.ok:
            logger.error("Token request failed: %s %s", response.status_code, response.text)
            raise TokenAcquisitionFailed(response.status_code, response.text)

        try:
            token_data = response.json()
        except ValueError:
            logger.error("Token response is not JSON: %s", response.text)
            raise TokenAcquisitionFailed(response.status_code, response.text)

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token:
            raise TokenAcquisitionFailed(response.status_code, "No access_token in GigaChat response")

        logger.info("GigaChat token received (expires_in=%s)", token_data.get("expires_in"))
        return access_token

    def _request_completion(self, access_token: str, message_a: str, message_b: str) -> str:
        payload = {
            "model": self.settings.gigachat_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT_TEMPLATE.format(message_a=message_a, message_b=message_b)},
            ],
            "max_tokens": self.settings.gigachat_max_tokens,
            "temperature": self.settings.gigachat_temperature,
        }

        try:
            response = self.session.post(
                f"{self.settings.gigachat_api_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                json=payload,
                timeout=self.settings.gigachat_timeout_seconds,
                verify=self.settings.gigachat_verify_ssl,
            )
        except requests.RequestException as e:
            # Timeouts count as a failed completion
            logger.error("Chat request failed: %s", e)
            raise CompletionRequestFailed(body=str(e)) from e

        if not response.ok:
            logger.error("Chat request failed: %s %s", response.status_code, response.text)
            raise CompletionRequestFailed(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError:
            logger.error("Chat response is not JSON: %s", response.text)
            raise CompletionRequestFailed(response.status_code, response.text)

        return extract_recommendation(data)

def extract_recommendation(data: Dict[str, Any]) -> str:
    """First candidate's text, or the fallback sentence when the provider returned none"""
    choices = data.get("choices") if isinstance(data, dict) else None
    if not choices or not isinstance(choices, list):
        logger.warning("GigaChat returned no choices, using fallback recommendation")
        return FALLBACK_RECOMMENDATION

    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content.strip():
        logger.warning("GigaChat returned a malformed choice, using fallback recommendation")
        return FALLBACK_RECOMMENDATION
    return content

def mediate_or_fallback(mediator: GigaChatMediator, message_a: str, message_b: str) -> Dict[str, Any]:
    """
    Stateless mediation for the public endpoint.

    Never raises for provider failures: returns an object with `error` and a
    displayable `recommendation` instead.
    """
    try:
        result = mediator.mediate(message_a, message_b)
    except MediationError as e:
        logger.error("AI mediator error: %s", e)
        return {
            "error": e.message,
            "recommendation": UNAVAILABLE_RECOMMENDATION,
            "upstream_status": e.status_code,
        }

    return {
        "recommendation": result.recommendation,
        "emotion_analysis": result.emotion_summary,
        "success": True,
    }

def get_mediator() -> GigaChatMediator:
    """Dependency returning the mediator used by the API routes"""
    return GigaChatMediator()
