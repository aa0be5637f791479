"""
LLM Client Module

Single responsibility: messages → completion text from the Groq chat-completions API.
Groq speaks the OpenAI wire format, so the official openai client is pointed at it.
"""

from typing import Any, Dict, List, Optional

import structlog
from openai import OpenAI, APIConnectionError, APIStatusError, RateLimitError
from openai.types.chat import ChatCompletion
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from config import config

# Configure structured logger
logger = structlog.get_logger(__name__)


class LLMError(Exception):
    """Custom exception for text-generation failures"""
    pass


class LLMNotConfigured(LLMError):
    """No API key available"""
    pass


class APIError(LLMError):
    """Provider returned a non-2xx response or could not be reached"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(APIError):
    """Provider rejected the call with HTTP 429"""
    pass


class EmptyResponseError(LLMError):
    """Provider answered without any completion text"""
    pass


def create_client() -> OpenAI:
    """Build an OpenAI client bound to the configured Groq endpoint"""

    api_key = config.llm.groq_api_key
    if not api_key:
        raise LLMNotConfigured("API key not configured")

    return OpenAI(
        api_key=api_key,
        base_url=config.llm.base_url,
        timeout=config.llm.api_timeout,
        max_retries=0
    )


def _provider_message(error: APIStatusError) -> str:
    """Pull the provider's own error message out of a status error"""
    body = error.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return error.message or "Groq API error"


@retry(
    stop=stop_after_attempt(config.llm.max_retries),
    wait=wait_exponential(
        multiplier=config.llm.retry_delay,
        min=1,
        max=60
    ),
    retry=retry_if_exception_type((RateLimitedError,)),
    reraise=True
)
def chat_completion(
    messages: List[Dict[str, str]],
    *,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    json_mode: bool = False,
    client: Any = None
) -> str:
    """Issue one chat-completions call and return the assistant text"""

    client = client or create_client()

    request: Dict[str, Any] = {
        "model": config.llm.model,
        "messages": messages,
        "temperature": config.llm.temperature if temperature is None else temperature,
        "max_tokens": max_tokens or config.llm.max_tokens,
    }
    if json_mode:
        request["response_format"] = {"type": "json_object"}

    logger.debug("Calling LLM",
                 model=request["model"],
                 message_count=len(messages),
                 json_mode=json_mode)

    try:
        response: ChatCompletion = client.chat.completions.create(**request)
    except RateLimitError as e:
        logger.warning("LLM rate limited", error=_provider_message(e))
        raise RateLimitedError(_provider_message(e), status_code=e.status_code)
    except APIStatusError as e:
        logger.error("LLM API error", status_code=e.status_code, error=_provider_message(e))
        raise APIError(_provider_message(e), status_code=e.status_code)
    except APIConnectionError as e:
        logger.error("LLM API unreachable", error=str(e))
        raise APIError(str(e))

    if not response.choices:
        raise EmptyResponseError("LLM returned no choices")

    content = response.choices[0].message.content
    if not content:
        raise EmptyResponseError("LLM returned an empty response")

    usage = getattr(response, "usage", None)
    if usage is not None:
        logger.debug("LLM call completed",
                     input_tokens=usage.prompt_tokens,
                     output_tokens=usage.completion_tokens)

    return content
