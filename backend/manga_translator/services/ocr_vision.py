import base64
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from ..errors import OcrProviderError, StepResult
from ..utils.image import DecodedImage

VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"
VISION_SCOPES = ["https://www.googleapis.com/auth/cloud-vision"]
# Dense text detection handles speech balloons better than TEXT_DETECTION
FEATURE_TYPE = "DOCUMENT_TEXT_DETECTION"


@dataclass
class OcrText:
    text: str

    @property
    def found(self) -> bool:
        return bool(self.text and self.text.strip())


class VisionOCR:
    """OCR client for the Google Cloud Vision images:annotate REST endpoint.

    Credentials are resolved once, either from a service-account JSON file or
    from an API key. A fresh HTTP session is opened for every call and closed
    when the call ends.
    """

    def __init__(
        self,
        credentials_file: str = "",
        api_key: str = "",
        endpoint: str = VISION_ENDPOINT,
        language_hints: Optional[List[str]] = None,
        timeout: float = 30.0,
    ):
        self.logger = logging.getLogger("manga_tl")
        self.endpoint = endpoint or VISION_ENDPOINT
        self.language_hints = list(language_hints or [])
        self.timeout = timeout
        self.api_key = api_key
        self.credentials = None
        if credentials_file:
            self.credentials = service_account.Credentials.from_service_account_file(
                credentials_file, scopes=VISION_SCOPES
            )
            self.logger.info("ocr.credentials.loaded source=service_account file=%s", credentials_file)
        elif not api_key:
            raise ValueError("OCR credentials are required (OCR_CREDENTIALS_FILE or OCR_API_KEY)")

    @property
    def credential_source(self) -> str:
        return "service_account" if self.credentials is not None else "api_key"

    def _open_session(self) -> requests.Session:
        if self.credentials is not None:
            return AuthorizedSession(self.credentials)
        return requests.Session()

    def _build_payload(self, image: DecodedImage) -> Dict:
        request: Dict = {
            "image": {"content": base64.b64encode(image.data).decode("ascii")},
            "features": [{"type": FEATURE_TYPE}],
        }
        if self.language_hints:
            request["imageContext"] = {"languageHints": self.language_hints}
        return {"requests": [request]}

    def _parse_response(self, payload: Dict) -> StepResult[OcrText]:
        if not isinstance(payload, dict):
            return StepResult.fail(OcrProviderError("OCR failed: invalid provider response"))
        responses = payload.get("responses")
        if not isinstance(responses, list) or not responses:
            self.logger.error("ocr.empty_provider_response keys=%s", list(payload.keys()))
            return StepResult.fail(OcrProviderError("OCR failed: empty provider response"))
        first = responses[0]
        if not isinstance(first, dict):
            return StepResult.fail(OcrProviderError("OCR failed: malformed provider response"))
        error = first.get("error")
        if error:
            if not isinstance(error, dict):
                return StepResult.fail(OcrProviderError(f"OCR failed: {error}"))
            message = error.get("message") or f"code {error.get('code')}"
            self.logger.error("ocr.provider_error code=%s msg=%s", error.get("code"), message)
            return StepResult.fail(OcrProviderError(f"OCR failed: {message}"))
        annotation = first.get("fullTextAnnotation") or {}
        if not isinstance(annotation, dict):
            return StepResult.fail(OcrProviderError("OCR failed: malformed provider response"))
        text = annotation.get("text") or ""
        if not isinstance(text, str):
            return StepResult.fail(OcrProviderError("OCR failed: malformed provider response"))
        return StepResult.ok(OcrText(text=text))

    def extract(self, image: DecodedImage) -> StepResult[OcrText]:
        body = self._build_payload(image)
        params = {} if self.credentials is not None else {"key": self.api_key}
        self.logger.info("ocr.extract.start bytes=%d hints=%s", image.size, ",".join(self.language_hints))
        try:
            with self._open_session() as session:
                resp = session.post(self.endpoint, json=body, params=params, timeout=self.timeout)
                if not resp.ok:
                    self.logger.error("ocr.http_failed status=%s body=%s", resp.status_code, resp.text[:500])
                    return StepResult.fail(OcrProviderError(f"OCR failed: {_error_message(resp)}"))
                data = resp.json()
        except (requests.RequestException, GoogleAuthError) as e:
            self.logger.error("ocr.request_failed err=%s", e)
            return StepResult.fail(OcrProviderError(f"OCR failed: {e}"))
        except ValueError as e:
            self.logger.error("ocr.bad_json err=%s", e)
            return StepResult.fail(OcrProviderError(f"OCR failed: invalid provider response ({e})"))

        result = self._parse_response(data)
        if not result.is_error:
            if result.value.found:
                self.logger.info("ocr.extract.done chars=%d", len(result.value.text))
            else:
                self.logger.warning("ocr.extract.empty")
        return result


def _error_message(resp: requests.Response) -> str:
    # Google APIs wrap failures as {"error": {"code": ..., "message": ...}}
    try:
        body = resp.json()
        err = body.get("error") if isinstance(body, dict) else None
        if isinstance(err, dict) and err.get("message"):
            return err["message"]
    except ValueError:
        pass
    return f"HTTP {resp.status_code}"
