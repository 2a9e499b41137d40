from unittest.mock import MagicMock

import pytest
import requests

from manga_translator.errors import OcrProviderError
from manga_translator.services import ocr_vision
from manga_translator.services.ocr_vision import FEATURE_TYPE, VisionOCR
from manga_translator.utils.image import DecodedImage

IMAGE = DecodedImage(data=b"\x00\x00\x00")


@pytest.fixture
def session():
    s = MagicMock()
    s.__enter__.return_value = s
    s.__exit__.return_value = False
    return s


@pytest.fixture
def ocr(monkeypatch, session):
    client = VisionOCR(api_key="vision-key", language_hints=["ja", "ko"])
    monkeypatch.setattr(client, "_open_session", lambda: session)
    return client


def test_requires_credentials():
    with pytest.raises(ValueError):
        VisionOCR()


def test_extracts_full_text(ocr, session, make_response):
    session.post.return_value = make_response(
        json_body={"responses": [{"fullTextAnnotation": {"text": "こんにちは"}}]}
    )
    result = ocr.extract(IMAGE)

    assert not result.is_error
    assert result.value.found
    assert result.value.text == "こんにちは"

    _, kwargs = session.post.call_args
    request = kwargs["json"]["requests"][0]
    assert request["image"]["content"] == "AAAA"
    assert request["features"] == [{"type": FEATURE_TYPE}]
    assert request["imageContext"] == {"languageHints": ["ja", "ko"]}
    assert kwargs["params"] == {"key": "vision-key"}
    session.__exit__.assert_called_once()


@pytest.mark.parametrize("body", [
    {"responses": [{}]},
    {"responses": [{"fullTextAnnotation": {"text": "  \n"}}]},
])
def test_blank_extraction_is_not_an_error(ocr, session, make_response, body):
    session.post.return_value = make_response(json_body=body)
    result = ocr.extract(IMAGE)
    assert not result.is_error
    assert not result.value.found


@pytest.mark.parametrize("body", [{"responses": []}, {}, {"responses": None}])
def test_missing_image_response_is_provider_error(ocr, session, make_response, body):
    session.post.return_value = make_response(json_body=body)
    result = ocr.extract(IMAGE)
    assert isinstance(result.error, OcrProviderError)
    assert "empty provider response" in result.error.message


@pytest.mark.parametrize("body", [
    {"responses": ["text"]},
    {"responses": [{"error": "denied"}]},
    {"responses": [{"fullTextAnnotation": "text"}]},
    {"responses": [{"fullTextAnnotation": {"text": 42}}]},
    ["not", "an", "object"],
])
def test_malformed_response_is_provider_error(ocr, session, make_response, body):
    session.post.return_value = make_response(json_body=body)
    result = ocr.extract(IMAGE)
    assert isinstance(result.error, OcrProviderError)


def test_provider_error_in_response(ocr, session, make_response):
    session.post.return_value = make_response(
        json_body={"responses": [{"error": {"code": 3, "message": "Bad image data."}}]}
    )
    result = ocr.extract(IMAGE)
    assert isinstance(result.error, OcrProviderError)
    assert "Bad image data." in result.error.message


def test_http_error_uses_google_error_message(ocr, session, make_response):
    session.post.return_value = make_response(
        status_code=403,
        json_body={"error": {"code": 403, "message": "API key not valid."}},
        text="forbidden",
    )
    result = ocr.extract(IMAGE)
    assert isinstance(result.error, OcrProviderError)
    assert "API key not valid." in result.error.message
    session.__exit__.assert_called_once()


def test_timeout_is_a_provider_error(ocr, session):
    session.post.side_effect = requests.Timeout("read timed out")
    result = ocr.extract(IMAGE)
    assert isinstance(result.error, OcrProviderError)
    assert "read timed out" in result.error.message
    session.__exit__.assert_called_once()


def test_service_account_uses_authorized_session(monkeypatch, make_response):
    creds = object()
    monkeypatch.setattr(
        ocr_vision.service_account.Credentials,
        "from_service_account_file",
        MagicMock(return_value=creds),
    )
    authorized = MagicMock()
    authorized.__enter__.return_value = authorized
    authorized.__exit__.return_value = False
    authorized.post.return_value = make_response(
        json_body={"responses": [{"fullTextAnnotation": {"text": "テスト"}}]}
    )
    session_cls = MagicMock(return_value=authorized)
    monkeypatch.setattr(ocr_vision, "AuthorizedSession", session_cls)

    client = VisionOCR(credentials_file="/secrets/google-credentials.json")
    result = client.extract(IMAGE)

    assert client.credential_source == "service_account"
    session_cls.assert_called_once_with(creds)
    assert result.value.text == "テスト"
    _, kwargs = authorized.post.call_args
    assert kwargs["params"] == {}
    assert "imageContext" not in kwargs["json"]["requests"][0]
