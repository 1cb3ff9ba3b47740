"""
Book Metadata Inference

Turns the OCR lines of a Hebrew book cover into a BookRecord with a single
LLM call. The prompt casts the model as a bibliographic researcher (not a chat
assistant), names the sources it should cross-reference, embeds the OCR lines
verbatim, and asks it to repair OCR letter confusions and to leave unknown
fields empty.

Sampling is pinned low (temperature 0.2, top_p 0.8). At higher temperatures
the model answered with the same famous book whatever the cover said.

Usage:
    from book_scanner.pipelines.metadata_inference import MetadataInferenceClient

    inference = MetadataInferenceClient(llm_client)
    record = await inference.infer(["יהודה עמיחי", "שירי אהבה"])
"""

import logging
from typing import Optional, Sequence

from book_scanner.config.settings import yaml_config
from book_scanner.enums.pipeline import PipelineOperation
from book_scanner.exceptions import MalformedJson
from book_scanner.models.book import BookRecord
from book_scanner.pipelines.utils.text_utils import extract_json_from_response
from book_scanner.services.llm import LLMClient

logger = logging.getLogger(__name__)

METADATA_TEMPERATURE = 0.2
METADATA_TOP_P = 0.8
METADATA_MAX_TOKENS = 1024

DEFAULT_REFERENCE_SOURCES = (
    "Simania (simania.co.il)",
    "Hebrew Wikipedia",
    "Israeli National Library (nli.org.il)",
    "Israeli Bookstores (Steimatzky/Tzomet Sfarim)",
)

PROMPT_TEMPLATE = """# Hebrew Book Information Retrieval Agent
You are a specialized research assistant focused on finding comprehensive information about Hebrew books.
Your mission is to gather detailed information based on OCR text from a book cover.

## Priority Sources
{sources}

## OCR TEXT FROM COVER
---
{ocr_text}
---

## Instructions
- Analyze the OCR text for Title, Author, and Publisher.
- Correct OCR typos using the linguistic context (e.g., 'ח' instead of 'ה').
- Cross-reference with your knowledge of the priority sources above to ensure accuracy.
- Do not guess; if a field is unknown based on the text and your source knowledge, leave it empty.

Return ONLY a JSON object:
{{
  "title": "Hebrew Title",
  "authors": ["Author 1"],
  "publisher": "Hebrew Publisher",
  "year": "YYYY",
  "description": "2-3 sentence summary in Hebrew",
  "language": "he"
}}"""


def get_reference_sources() -> tuple[str, ...]:
    """Reference sources from config/default.yaml, else the built-in list."""
    configured = (yaml_config.get("inference") or {}).get("reference_sources")
    if isinstance(configured, list) and configured:
        return tuple(str(source) for source in configured)
    return DEFAULT_REFERENCE_SOURCES


class MetadataInferenceClient:
    """Builds the bibliographic prompt and decodes the model's JSON reply."""

    def __init__(
        self,
        llm_client: LLMClient,
        temperature: float = METADATA_TEMPERATURE,
        top_p: float = METADATA_TOP_P,
        max_tokens: int = METADATA_MAX_TOKENS,
        reference_sources: Optional[Sequence[str]] = None,
    ) -> None:
        self.llm_client = llm_client
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens
        self.reference_sources: tuple[str, ...] = tuple(
            reference_sources or get_reference_sources()
        )

    def build_prompt(self, ocr_lines: Sequence[str]) -> str:
        """Render the research prompt around the literal OCR lines."""
        sources = "\n".join(
            f"{idx}. {source}" for idx, source in enumerate(self.reference_sources, 1)
        )
        return PROMPT_TEMPLATE.format(sources=sources, ocr_text="\n".join(ocr_lines))

    async def infer(self, ocr_lines: Sequence[str]) -> BookRecord:
        """
        Identify the book behind the OCR lines.

        The returned record is not validated: an empty record is a legitimate
        "nothing found" answer and the caller decides what to show for it.

        Args:
            ocr_lines: Cleaned OCR lines, top to bottom

        Returns:
            BookRecord normalized from the model's JSON object

        Raises:
            EmptyResponse: If the model returned no text
            MalformedJson: If the reply is not a JSON object
            ServiceError: If the inference request failed
        """
        prompt = self.build_prompt(ocr_lines)
        logger.debug(f"Inferring metadata from {len(ocr_lines)} OCR line(s)")

        response_text, _usage = await self.llm_client.complete(
            prompt,
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            operation=PipelineOperation.METADATA_INFERENCE,
        )

        data = extract_json_from_response(response_text)
        if not isinstance(data, dict):
            logger.warning(f"Unparseable metadata reply: {response_text[:200]!r}")
            raise MalformedJson(
                "The inference reply is not a JSON object",
                details={"reply": response_text[:500]},
            )

        record = BookRecord.from_llm_payload(data)
        logger.info(f"Inferred title: {record.title!r}, authors: {record.authors}")
        return record
