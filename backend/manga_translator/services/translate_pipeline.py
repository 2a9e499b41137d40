import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import InvalidInput, PipelineError
from ..utils.image import decode_image_base64
from .ocr_vision import VisionOCR
from .translate_deepl import DeepLTranslate

NO_TEXT_FOUND = "no text found"

_STATUS_BY_ERROR = {
    InvalidInput: 400,
}


@dataclass
class PipelineOutcome:
    status_code: int
    message: str


def _error_outcome(error: PipelineError) -> PipelineOutcome:
    status = _STATUS_BY_ERROR.get(type(error), 500)
    if status >= 500:
        return PipelineOutcome(status, f"Internal error: {error.message}")
    return PipelineOutcome(status, error.message)


class MangaTranslatePipeline:
    """Image in, translated text out.

    Steps: validate and decode the base64 image, run OCR, translate the
    extracted text. Every step hands back a StepResult; the HTTP status is
    picked here and nowhere else.
    """

    def __init__(self, ocr: VisionOCR, translator: DeepLTranslate):
        self.logger = logging.getLogger("manga_tl")
        self.ocr = ocr
        self.translator = translator

    def run(self, image_base64: Optional[str]) -> PipelineOutcome:
        decoded = decode_image_base64(image_base64)
        if decoded.is_error:
            return _error_outcome(decoded.error)

        try:
            self.logger.info("pipeline.ocr.start size_kb=%.2f", decoded.value.size_kb)
            extracted = self.ocr.extract(decoded.value)
            if extracted.is_error:
                return _error_outcome(extracted.error)
            if not extracted.value.found:
                self.logger.warning("pipeline.ocr.no_text")
                return PipelineOutcome(200, NO_TEXT_FOUND)
            self.logger.info("pipeline.ocr.text text=%r", extracted.value.text)

            self.logger.info("pipeline.translate.start")
            translated = self.translator.translate(extracted.value.text)
            if translated.is_error:
                return _error_outcome(translated.error)
        except Exception as e:
            self.logger.exception("pipeline.failed err=%s", e)
            return PipelineOutcome(500, f"Internal error: {e}")

        self.logger.info("pipeline.done text=%r", translated.value.text)
        return PipelineOutcome(200, translated.value.text)
