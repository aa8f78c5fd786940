from pydantic import BaseModel
from typing import List, Literal, Optional


class AnalyzeResponse(BaseModel):
    success: bool = True
    text: str
    mode: Literal["simple", "complex"]
    timing: int
    audio: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class HealthResponse(BaseModel):
    status: str
    model: str
    modes: List[str]
    tts: Optional[str] = None
