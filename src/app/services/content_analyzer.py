"""Content Analyzer Interface"""

from abc import ABC, abstractmethod
from typing import List
from pydantic import BaseModel, Field
from src.domain.media_resource import MediaResource


class ContentAnalysis(BaseModel):
    descriptor: str = Field(..., description="Short human-readable description of the content")
    extracted_text: str = Field(default="", description="Text pulled out of the file")
    detected_objects: List[str] = Field(default_factory=list, description="Objects or topics found in the content")
    file_type: str = Field(default="unknown")
    analysis_method: str = Field(default="metadata", description="How the analysis was produced")


class ContentAnalyzer(ABC):

    @abstractmethod
    async def analyze(self, resource: MediaResource) -> ContentAnalysis:
        """
        Raises:
            ContentAnalysisError: The content could not be analyzed
        """
        pass
