import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .models.schemas import (
    HealthResponse,
    ProviderHealth,
    TranslateHealth,
    TranslationRequest,
    TranslationResponse,
)
from .services.ocr_vision import VisionOCR
from .services.translate_deepl import DeepLTranslate
from .services.translate_pipeline import MangaTranslatePipeline
from .utils.image import MSG_IMAGE_MISSING, MSG_INVALID_BASE64

logger = logging.getLogger("manga_tl")


def _configure_logging(level: str) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level, logging.INFO))


def mask(s: Optional[str]) -> str:
    if not s:
        return ""
    return (s[:3] + "***" + s[-2:]) if len(s) > 5 else "***"


def build_pipeline(settings: Settings) -> MangaTranslatePipeline:
    ocr = VisionOCR(
        credentials_file=settings.OCR_CREDENTIALS_FILE,
        api_key=settings.OCR_API_KEY,
        endpoint=settings.OCR_ENDPOINT,
        language_hints=settings.OCR_LANGUAGE_HINTS,
        timeout=settings.OCR_TIMEOUT,
    )
    translator = DeepLTranslate(
        api_key=settings.DEEPL_API_KEY,
        api_url=settings.DEEPL_API_URL,
        target_lang=settings.TARGET_LANG,
        timeout=settings.DEEPL_TIMEOUT,
    )
    return MangaTranslatePipeline(ocr, translator)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API app.

    Providers are created by the startup hook, so serve the app through
    uvicorn or a `with TestClient(app)` block. Until then the translate
    endpoint answers 500.
    """
    settings = settings or Settings()
    _configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Manga Translator")
    app.state.settings = settings
    app.state.pipeline = None

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def load_providers():
        if app.state.pipeline is not None:
            return
        logger.info(
            "startup ocr_endpoint=%s ocr_credentials=%s deepl_url=%s deepl_key=%s target=%s",
            settings.OCR_ENDPOINT,
            settings.ocr_credential_source or "missing",
            settings.DEEPL_API_URL,
            mask(settings.DEEPL_API_KEY),
            settings.TARGET_LANG,
        )
        try:
            app.state.pipeline = build_pipeline(settings)
        except ValueError as e:
            raise RuntimeError(f"{e}. See backend/.env.example") from e
        logger.info("Providers ready. Backend ready.")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # A badly typed imageBase64 is a bad encoding; any other body problem means no image
        bad_field = any(tuple(err.get("loc", ()))[-1:] == ("imageBase64",) for err in exc.errors())
        message = MSG_INVALID_BASE64 if bad_field else MSG_IMAGE_MISSING
        logger.warning("translate.endpoint.invalid_body errors=%d msg=%s", len(exc.errors()), message)
        return JSONResponse(status_code=400, content=TranslationResponse(message=message).model_dump())

    @app.post("/api/manga/translate", response_model=TranslationResponse)
    def translate(payload: TranslationRequest, request: Request):
        pipeline: MangaTranslatePipeline = request.app.state.pipeline
        if pipeline is None:
            logger.error("translate.endpoint.not_ready")
            return JSONResponse(
                status_code=500,
                content=TranslationResponse(message="Internal error: providers not initialized").model_dump(),
            )
        logger.info("translate.endpoint.called has_image=%s", bool(payload.image_base64))
        outcome = pipeline.run(payload.image_base64)
        if outcome.status_code != 200:
            logger.warning("translate.endpoint.failed status=%d msg=%s", outcome.status_code, outcome.message)
        return JSONResponse(
            status_code=outcome.status_code,
            content=TranslationResponse(message=outcome.message).model_dump(),
        )

    @app.get("/api/health", response_model=HealthResponse)
    def health():
        """Configuration diagnostics. Keys are masked and providers are not called."""
        return HealthResponse(
            status="ok",
            ocr=ProviderHealth(
                endpoint=settings.OCR_ENDPOINT,
                credential_source=settings.ocr_credential_source,
                key_masked=mask(settings.OCR_API_KEY),
            ),
            translate=TranslateHealth(
                endpoint=settings.DEEPL_API_URL,
                credential_source="api_key" if settings.DEEPL_API_KEY else "",
                key_masked=mask(settings.DEEPL_API_KEY),
                target_lang=settings.TARGET_LANG,
            ),
        )

    return app


app = create_app()
