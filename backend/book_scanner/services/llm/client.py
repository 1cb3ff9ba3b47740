"""
LLM Client for the Gemini inference endpoint via LiteLLM.

LiteLLM provides a unified interface to LLM providers using the format
"provider/model-name". The scanner talks to Gemini's generateContent endpoint
as "gemini/<model>"; LiteLLM translates the chat messages and the
temperature/top_p settings into the contents/generationConfig request body.

See: https://docs.litellm.ai/

Usage:
    from book_scanner.services.llm import LLMClient

    client = LLMClient(config)
    text, usage = await client.complete(prompt, temperature=0.2, top_p=0.8)
    status = await client.heartbeat()  # "AI Heartbeat: OK" or "AI Offline: ..."
"""

import logging
import os
import time
from typing import Optional, Union

import litellm
from litellm import acompletion

from book_scanner.config.settings import ScannerConfig, settings
from book_scanner.enums.pipeline import PipelineName, PipelineOperation
from book_scanner.exceptions import EmptyResponse, ServiceError
from book_scanner.models.llm_usage import (
    LLMUsage,
    create_error_usage,
    extract_usage_from_response,
)

logger = logging.getLogger(__name__)

# Configure LiteLLM
litellm.drop_params = True  # Drop unsupported params instead of erroring
if settings.DEBUG:
    os.environ["LITELLM_LOG"] = "DEBUG"

HEARTBEAT_PROMPT = "Repeat: 'AI Heartbeat: OK'"
HEARTBEAT_NO_RESPONSE = "No response"
HEARTBEAT_OFFLINE_PREFIX = "AI Offline"
HEARTBEAT_MAX_TOKENS = 50


def build_messages(
    prompt: str,
    system_prompt: Optional[str] = None,
) -> list[dict[str, str]]:
    """
    Build messages list from prompt and optional system prompt.

    Args:
        prompt: User prompt text
        system_prompt: Optional system prompt

    Returns:
        List of message dicts for LLM API
    """
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def is_offline_reply(reply: str) -> bool:
    """Check if a heartbeat reply reports an unreachable endpoint."""
    return reply.startswith(HEARTBEAT_OFFLINE_PREFIX)


class LLMClient:
    """
    Client for the hosted inference endpoint.

    Holds the endpoint, credential and model from ScannerConfig and returns
    (text, LLMUsage) tuples so every call is logged with tokens and cost.
    No automatic retries: a failed inference ends the scan.
    """

    def __init__(self, config: ScannerConfig) -> None:
        """
        Initialize the client.

        Args:
            config: Scanner configuration with inference endpoint and credential
        """
        self.model: str = config.inference_model
        self.api_key: str = config.inference_credential
        self.api_base: Optional[str] = config.inference_endpoint
        logger.info(f"LLM client initialized with model {self.model}")

    async def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        max_tokens: Optional[int] = None,
        operation: Union[PipelineOperation, str] = PipelineOperation.METADATA_INFERENCE,
        pipeline: Union[PipelineName, str] = PipelineName.BOOK_SCAN,
    ) -> tuple[str, LLMUsage]:
        """
        Generate a completion for a single user prompt.

        Args:
            prompt: Prompt text sent as the only user message
            temperature: Sampling temperature (lower = more deterministic)
            top_p: Nucleus sampling parameter
            max_tokens: Maximum tokens in response
            operation: Operation name for usage attribution
            pipeline: Pipeline name for usage attribution

        Returns:
            Tuple of (response_text, LLMUsage)

        Raises:
            EmptyResponse: If the reply carries no text
            ServiceError: If the provider call fails
        """
        kwargs = {
            "model": self.model,
            "messages": build_messages(prompt),
            "api_key": self.api_key,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if temperature is not None:
            kwargs["temperature"] = temperature
        if top_p is not None:
            kwargs["top_p"] = top_p
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens

        operation_name = getattr(operation, "value", operation)
        pipeline_name = getattr(pipeline, "value", pipeline)
        start_time = time.perf_counter()

        try:
            response = await acompletion(**kwargs)
        except Exception as e:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            usage = create_error_usage(
                model=self.model,
                latency_ms=latency_ms,
                error_message=str(e),
                pipeline=pipeline_name,
                operation=operation_name,
            )
            logger.error(f"LLM completion failed with {self.model}: {e} ({usage})")
            raise ServiceError(
                f"Inference request failed: {e}",
                details={"model": self.model, "operation": operation_name},
            ) from e

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        usage = extract_usage_from_response(
            response=response,
            model=self.model,
            latency_ms=latency_ms,
            pipeline=pipeline_name,
            operation=operation_name,
        )
        logger.info(f"LLM completion [{operation_name}] - {usage}")

        text = _response_text(response)
        if not text:
            raise EmptyResponse(
                "The inference endpoint returned no text",
                details={"model": self.model, "operation": operation_name},
            )
        return text, usage

    async def heartbeat(self) -> str:
        """
        Probe the endpoint with a trivial scripted prompt.

        Never raises: failures come back as an "AI Offline: ..." string so the
        caller can tell an unreachable endpoint from a failed inference.

        Returns:
            The model's reply, "No response", or "AI Offline: <error>"
        """
        try:
            text, _ = await self.complete(
                HEARTBEAT_PROMPT,
                max_tokens=HEARTBEAT_MAX_TOKENS,
                operation=PipelineOperation.HEARTBEAT,
            )
        except EmptyResponse:
            return HEARTBEAT_NO_RESPONSE
        except ServiceError as e:
            cause = e.__cause__ or e
            return f"{HEARTBEAT_OFFLINE_PREFIX}: {cause}"
        except Exception as e:
            logger.exception("Unexpected heartbeat failure")
            return f"{HEARTBEAT_OFFLINE_PREFIX}: {e}"
        return text.strip()


def _response_text(response) -> Optional[str]:
    """Pull choices[0].message.content out of a LiteLLM response."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return None
    if not isinstance(content, str) or not content.strip():
        return None
    return content
