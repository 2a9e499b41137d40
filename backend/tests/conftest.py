import base64
from unittest.mock import MagicMock

import pytest

from manga_translator.errors import StepResult
from manga_translator.services.ocr_vision import OcrText
from manga_translator.services.translate_deepl import Translation

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def png_b64():
    return PNG_B64


@pytest.fixture
def fake_ocr():
    ocr = MagicMock()
    ocr.extract.return_value = StepResult.ok(OcrText(text="こんにちは"))
    return ocr


@pytest.fixture
def fake_translator():
    translator = MagicMock()
    translator.translate.return_value = StepResult.ok(
        Translation(text="Olá", detected_source_language="JA")
    )
    return translator


def _make_response(status_code=200, json_body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.text = text
    resp.json.return_value = json_body
    return resp


@pytest.fixture
def make_response():
    return _make_response
