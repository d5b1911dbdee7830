"""Pydantic models for the API layer and the orchestration results.

Defines request/response schemas for all endpoints.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

SupportedLanguage = Literal["en", "es", "fr", "de", "it", "pt", "zh", "ja", "ko"]


# Chat

class ChatMessage(BaseModel):
    """Single prior turn supplied by the client."""
    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=4000)


class ChatRequest(BaseModel):
    """Incoming chat message from the client."""
    message: str = Field(..., min_length=1, max_length=2000, description="User question")
    context: list[ChatMessage] = Field(default_factory=list, max_length=20)
    language: SupportedLanguage = "en"

    @model_validator(mode="after")
    def _reject_blank_message(self):
        if not self.message.strip():
            raise ValueError("message must not be blank")
        return self


class ChatOptions(BaseModel):
    """Generation options for one chat turn."""
    language: str = "en"
    context: list[ChatMessage] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 2048


class ChatResult(BaseModel):
    text: str = Field(..., min_length=1)
    tokens_used: int
    suggestions: list[str] = Field(default_factory=list, max_length=3)


class ChatMetadata(BaseModel):
    timestamp: str
    language: str
    tokens_used: int


class ChatResponseData(BaseModel):
    message: str
    metadata: ChatMetadata
    suggestions: list[str] | None = None


# Diagnosis

class DiagnosisOptions(BaseModel):
    """Options forwarded to the identification request."""
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    similar_images: bool = False
    plant_details: list[str] = Field(default_factory=lambda: ["common_names", "url"])
    plant_language: str = "en"

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class SimilarImage(BaseModel):
    id: str | int | None = None
    url: str | None = None
    similarity: float | None = None


class PlantDetails(BaseModel):
    scientific_name: str | None = None
    common_names: list[str] = Field(default_factory=list)
    url: str | None = None
    description: str | None = None
    synonyms: list[str] = Field(default_factory=list)
    image: str | None = None


class PlantSuggestion(BaseModel):
    id: str | int | None = None
    name: str | None = None
    plant_details: PlantDetails
    probability: float | None = None
    confirmed: bool = False
    similar_images: list[SimilarImage] = Field(default_factory=list)


class DiseaseDetails(BaseModel):
    # Vendor returns free text or nested objects here depending on the field
    description: Any = None
    treatment: Any = None
    cause: Any = None
    url: str | None = None


class DiseaseSuggestion(BaseModel):
    id: str | int | None = None
    name: str | None = None
    probability: float | None = None
    disease_details: DiseaseDetails
    similar_images: list[SimilarImage] = Field(default_factory=list)


class HealthAssessment(BaseModel):
    is_healthy: bool | None = None
    is_healthy_probability: float | None = None
    diseases: list[DiseaseSuggestion] = Field(default_factory=list)


class DiagnosisResult(BaseModel):
    """Stable, vendor-independent identification result."""
    is_plant: bool
    is_plant_probability: float | None = None
    suggestions: list[PlantSuggestion] = Field(default_factory=list)
    health_assessment: HealthAssessment | None = None
    version: str | None = None
    custom_id: Any = None


class Location(BaseModel):
    latitude: float
    longitude: float


class DiagnosisMetadata(BaseModel):
    date: str
    version: str | None = None
    custom_id: Any = None
    location: Location | None = None


class DiagnosisResponseData(BaseModel):
    is_plant: bool
    is_plant_probability: float | None = None
    suggestions: list[PlantSuggestion]
    health_assessment: HealthAssessment | None = None
    disease_suggestions: list[DiseaseSuggestion]
    metadata: DiagnosisMetadata


# Static catalogue

class LanguageInfo(BaseModel):
    code: str
    name: str
    native: str


class StartersData(BaseModel):
    language: str
    starters: list[str]
