from pydantic import BaseModel
from typing import List, Optional


class AnalyzeRequest(BaseModel):
    """Body of POST /analyze and POST /analyze/mp3.

    ``transcription`` is honoured by the text deployment, ``audio`` (base64,
    optionally a data URI) by the audio deployment.
    """
    image: Optional[str] = None
    images: Optional[List[str]] = None
    transcription: Optional[str] = None
    audio: Optional[str] = None

    def image_list(self) -> List[str]:
        if self.images:
            return list(self.images)
        return [self.image] if self.image else []
