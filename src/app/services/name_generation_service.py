"""Name Generation Service Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.app.services.content_analyzer import ContentAnalysis
from src.app.services.context_extractor import PageContext


class NameGenerationService(ABC):

    @abstractmethod
    async def generate(
        self,
        analysis: ContentAnalysis,
        context: PageContext,
        count: int,
        timeout: Optional[float] = None,
    ) -> List[str]:
        """
        Generate up to ``count`` sanitized filename suggestions

        Raises:
            AIServiceError: Remote call failed or returned nothing usable
            ConfigurationError: Service endpoint or key missing or rejected
        """
        pass

    @abstractmethod
    async def test_connection(self) -> bool:
        pass
