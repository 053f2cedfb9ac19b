"""Metadata Content Analyzer

Describes a media file from its catalog metadata. Deep content analysis
(vision, OCR) is provided by other ContentAnalyzer implementations.
"""

import logging
from src.app.services.content_analyzer import ContentAnalysis, ContentAnalyzer
from src.domain.errors import ContentAnalysisError
from src.domain.media_resource import MediaResource
from src.domain.naming import metadata_descriptor, slugify

logger = logging.getLogger(__name__)

MAX_EXTRACTED_TEXT = 1000


class MetadataContentAnalyzer(ContentAnalyzer):

    async def analyze(self, resource: MediaResource) -> ContentAnalysis:
        if not resource.is_supported:
            raise ContentAnalysisError(f"Content analysis is not available for {resource.mime_type}")

        text_parts = [part for part in (resource.caption, resource.description) if part]
        has_metadata = bool(resource.title or resource.alt_text or text_parts or resource.tags)
        if not has_metadata and len(slugify(resource.filename or "")) < 3:
            raise ContentAnalysisError(f"Content analysis found nothing to describe resource {resource.id}")

        file_type = resource.mime_type.split("/")[0]
        if file_type == "application":
            file_type = "document"

        return ContentAnalysis(
            descriptor=metadata_descriptor(resource),
            extracted_text=" ".join(text_parts)[:MAX_EXTRACTED_TEXT],
            detected_objects=list(resource.tags or []),
            file_type=file_type,
            analysis_method="metadata",
        )
