"""StrandsAttachmentAnalyzer implementation."""

import base64
import logging
from pathlib import PurePath
from typing import Any

from strands import Agent
from strands.models.litellm import LiteLLMModel

from juicy.domain.entities.summary import AttachmentInput, GeneratedSummary
from juicy.infrastructure.llm.strands.exceptions import map_strands_exception
from juicy.infrastructure.llm.strands.usage import output_tokens
from juicy.infrastructure.llm.templates import create_jinja_env

logger = logging.getLogger(__name__)

ATTACHMENT_MAX_TOKENS = 1500
ATTACHMENT_TEMPERATURE = 0.3

IMAGE_FORMATS = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/gif": "gif",
    "image/webp": "webp",
}

DOCUMENT_FORMATS = {
    "application/pdf": "pdf",
    "text/plain": "txt",
    "text/markdown": "md",
    "text/csv": "csv",
    "text/html": "html",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
}


def build_content(attachment: AttachmentInput) -> list[dict[str, Any]]:
    """Build the multimodal strands message content for an attachment.

    Raises:
        ValueError: Unsupported attachment kind or MIME type.
    """
    data = base64.b64decode(attachment.data)
    if attachment.kind == "image":
        image_format = IMAGE_FORMATS.get(attachment.mime_type)
        if image_format is None:
            raise ValueError(f"Unsupported image type: {attachment.mime_type}")
        return [
            {"image": {"format": image_format, "source": {"bytes": data}}},
            {"text": "Analyze and summarize this image."},
        ]
    if attachment.kind == "document":
        document_format = DOCUMENT_FORMATS.get(attachment.mime_type)
        if document_format is None:
            raise ValueError(f"Unsupported document type: {attachment.mime_type}")
        name = PurePath(attachment.filename).stem if attachment.filename else "document"
        return [
            {
                "document": {
                    "format": document_format,
                    "name": name,
                    "source": {"bytes": data},
                }
            },
            {"text": "Analyze and summarize this document."},
        ]
    raise ValueError(f"Unsupported attachment kind: {attachment.kind}")


class StrandsAttachmentAnalyzer:
    """strands-agents based AttachmentAnalyzer implementation."""

    def __init__(self, model: LiteLLMModel, model_name: str | None = None) -> None:
        """Initialize the analyzer.

        Args:
            model: LiteLLMModel instance to be reused across requests.
            model_name: Model ID recorded on generated summaries.
        """
        self._model = model
        self._model_name = model_name
        self._jinja_env = create_jinja_env()
        self._system_template = self._jinja_env.get_template("attachment_system.j2")

    async def analyze(self, attachment: AttachmentInput) -> GeneratedSummary:
        """Summarize an image or document.

        Args:
            attachment: Attachment to analyze.

        Returns:
            GeneratedSummary with the markdown summary.

        Raises:
            ValueError: Unsupported attachment type.
            LLMError: If generation fails.
        """
        content = build_content(attachment)
        agent = Agent(model=self._model, system_prompt=self._system_template.render())

        try:
            result = await agent.invoke_async(content)
        except Exception as e:
            raise map_strands_exception(e)

        return GeneratedSummary(
            text=str(result).strip(),
            token_count=output_tokens(result),
            model=self._model_name,
        )
