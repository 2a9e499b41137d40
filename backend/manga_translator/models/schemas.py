from typing import Optional

from pydantic import BaseModel, Field

class TranslationRequest(BaseModel):
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")

class TranslationResponse(BaseModel):
    message: str

class ProviderHealth(BaseModel):
    endpoint: str
    credential_source: str
    key_masked: str

class TranslateHealth(ProviderHealth):
    target_lang: str

class HealthResponse(BaseModel):
    status: str
    ocr: ProviderHealth
    translate: TranslateHealth
