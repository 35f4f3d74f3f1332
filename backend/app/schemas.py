from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class PredictionResult(BaseModel):
    """One classification outcome. Serialized with camelCase `createdAt`."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Random UUID4 of this prediction")
    result: str = Field(..., description="Cancer or Non-cancer")
    suggestion: str = Field(..., description="Advice tied to the label")
    created_at: str = Field(..., alias="createdAt", description="UTC ISO-8601 timestamp")


class PredictResponse(BaseModel):
    status: str = "success"
    message: str = "Model is predicted successfully"
    data: PredictionResult


class FailResponse(BaseModel):
    status: str = "fail"
    message: str


class HealthResponse(BaseModel):
    status: str
    model: str
    detail: Optional[str] = None
