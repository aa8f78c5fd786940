from .request import AnalyzeRequest
from .response import AnalyzeResponse, ErrorResponse, HealthResponse

__all__ = ["AnalyzeRequest", "AnalyzeResponse", "ErrorResponse", "HealthResponse"]
