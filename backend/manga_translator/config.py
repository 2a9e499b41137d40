import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load .env from the backend directory
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)


def _split_csv(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


class Settings:
    def __init__(self):
        self.OCR_CREDENTIALS_FILE: str = os.getenv("OCR_CREDENTIALS_FILE", "")
        self.OCR_API_KEY: str = os.getenv("OCR_API_KEY", "")
        self.OCR_ENDPOINT: str = os.getenv("OCR_ENDPOINT", "https://vision.googleapis.com/v1/images:annotate")
        self.OCR_LANGUAGE_HINTS: List[str] = _split_csv(os.getenv("OCR_LANGUAGE_HINTS", ""))
        self.OCR_TIMEOUT: float = float(os.getenv("OCR_TIMEOUT", "30"))
        self.DEEPL_API_KEY: str = os.getenv("DEEPL_API_KEY", "")
        self.DEEPL_API_URL: str = os.getenv("DEEPL_API_URL", "https://api-free.deepl.com/v2/translate")
        self.DEEPL_TIMEOUT: float = float(os.getenv("DEEPL_TIMEOUT", "15"))
        self.TARGET_LANG: str = os.getenv("TARGET_LANG", "PT-BR")
        self.CORS_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"]
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def ocr_credential_source(self) -> str:
        if self.OCR_CREDENTIALS_FILE:
            return "service_account"
        if self.OCR_API_KEY:
            return "api_key"
        return ""
