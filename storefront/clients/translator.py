# storefront/clients/translator.py

import logging
import re
from typing import Optional

import httpx

from storefront.core.exceptions import TranslationServiceError

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "es": "Spanish",
    "en": "English",
}

_LABEL_PREFIX_RE = re.compile(r"^(english|spanish|translation)\s*:\s*", re.IGNORECASE)


def build_prompt(text: str, source_lang: str, target_lang: str) -> str:
    source_name = LANGUAGE_NAMES.get(source_lang, source_lang)
    target_name = LANGUAGE_NAMES.get(target_lang, target_lang)
    return (
        f"Translate this {source_name} bakery product text to {target_name}. "
        f"Reply with the translation only, keep it short and simple:\n\n"
        f"{source_name}: {text}\n"
        f"{target_name}:"
    )


def clean_translation(raw: str) -> str:
    """
    Модели любят добавлять кавычки, подписи вида "English:" и пояснения
    на следующих строках. Оставляем только первую строку с переводом.
    """
    lines = raw.strip().splitlines()
    text = lines[0].strip() if lines else ""
    text = _LABEL_PREFIX_RE.sub("", text)
    text = text.strip().strip("\"'").strip()
    if text.endswith(".") and not text.endswith(".."):
        text = text[:-1]
    return text.strip()


class TranslatorClient:
    """
    Клиент удаленного сервиса перевода (OpenAI-совместимый chat completions).
    Один вызов translate() означает один HTTP POST. Повторов и запасных переводов
    здесь нет: это решает вызывающая сторона.
    """
    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str = "llama3-70b-8192",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.async_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        if not text or not text.strip():
            return text
        if not self.is_configured:
            raise TranslationServiceError("Translation API key is not configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": build_prompt(text, source_lang, target_lang)}],
            "temperature": 0.1,
            "max_tokens": 200,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            response = await self.async_client.post(self.api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.RequestError as e:
            logger.error(f"Network error during translation request to {e.request.url!r}.", exc_info=True)
            raise TranslationServiceError("Translation service unreachable") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Translation service returned {e.response.status_code}: {e.response.text}",
                exc_info=True,
            )
            raise TranslationServiceError(
                f"Translation service returned {e.response.status_code}"
            ) from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Translation response has no translated text: {response.text[:200]!r}")
            raise TranslationServiceError("Translation response is missing translated text") from e

        if not isinstance(content, str):
            raise TranslationServiceError("Translation response is missing translated text")

        translated = clean_translation(content)
        if not translated:
            raise TranslationServiceError("Translation service returned an empty translation")

        logger.debug(f"Translated {text!r} ({source_lang}->{target_lang}) -> {translated!r}")
        return translated

    async def aclose(self):
        await self.async_client.aclose()
