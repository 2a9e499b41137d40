import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

from ..errors import StepResult, TranslationProviderError

DEEPL_API_URL = "https://api-free.deepl.com/v2/translate"
UNEXPECTED_RESPONSE = "unexpected response"


@dataclass
class Translation:
    text: str
    detected_source_language: Optional[str] = None


class DeepLTranslate:
    def __init__(self, api_key: str, api_url: str = DEEPL_API_URL, target_lang: str = "PT-BR", timeout: float = 15.0):
        if not api_key:
            raise ValueError("DeepL API key is required (DEEPL_API_KEY)")
        self.api_key = api_key
        self.api_url = api_url or DEEPL_API_URL
        self.target_lang = target_lang or "PT-BR"
        self.timeout = timeout
        self.logger = logging.getLogger("manga_tl")

    def _parse_response(self, payload: Dict) -> Translation:
        translations = payload.get("translations") if isinstance(payload, dict) else None
        if not isinstance(translations, list) or not translations:
            self.logger.warning("translate.deepl.no_translations")
            return Translation(text=UNEXPECTED_RESPONSE)
        first = translations[0]
        if not isinstance(first, dict) or not isinstance(first.get("text"), str):
            self.logger.error("translate.deepl.malformed_entry entry=%r", first)
            raise ValueError("malformed translation entry")
        text = first["text"]
        detected = first.get("detected_source_language")
        self.logger.info("translate.deepl.done detected=%s out_len=%d", detected, len(text))
        return Translation(text=text, detected_source_language=detected)

    def translate(self, text: str) -> StepResult[Translation]:
        if not text or not text.strip():
            self.logger.warning("translate.deepl.empty_input")
            return StepResult.ok(Translation(text=""))
        payload = {
            "text": [text],
            "target_lang": self.target_lang,
        }
        headers = {
            "Authorization": f"DeepL-Auth-Key {self.api_key}",
            "Content-Type": "application/json",
        }
        self.logger.info("translate.deepl.start chars=%d target=%s", len(text), self.target_lang)
        try:
            resp = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            translation = self._parse_response(data)
        except requests.HTTPError as e:
            self.logger.error("translate.deepl.http_failed status=%s body=%s", e.response.status_code, e.response.text[:500])
            return StepResult.fail(TranslationProviderError(f"Translation failed: {e}"))
        except (requests.RequestException, ValueError) as e:
            self.logger.error("translate.deepl.failed err=%s", e)
            return StepResult.fail(TranslationProviderError(f"Translation failed: {e}"))
        return StepResult.ok(translation)
