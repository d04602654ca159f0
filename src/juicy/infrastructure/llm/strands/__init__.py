"""strands-agents infrastructure."""

from juicy.infrastructure.llm.strands.attachment_analyzer import (
    ATTACHMENT_MAX_TOKENS,
    ATTACHMENT_TEMPERATURE,
    StrandsAttachmentAnalyzer,
)
from juicy.infrastructure.llm.strands.exceptions import map_strands_exception
from juicy.infrastructure.llm.strands.factory import create_model
from juicy.infrastructure.llm.strands.models import StructuredSummaryOutput
from juicy.infrastructure.llm.strands.summary_generator import StrandsSummaryGenerator

__all__ = [
    "ATTACHMENT_MAX_TOKENS",
    "ATTACHMENT_TEMPERATURE",
    "StrandsAttachmentAnalyzer",
    "StrandsSummaryGenerator",
    "StructuredSummaryOutput",
    "create_model",
    "map_strands_exception",
]
