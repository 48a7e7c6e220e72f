from typing import Any, Dict, Optional, Type, Union, Tuple
from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel, ValidationError
import json
import logging

from ..exceptions import APICallError, ResponseParsingError

logger = logging.getLogger(__name__)


def create_prompt_template(system_prompt: str, user_prompt: str):
    """Create a standardized system/user prompt."""
    template = ChatPromptTemplate([
        ("system", "{system_prompt}"),
        ("user", "{user_prompt}")
    ])
    return template.invoke({"system_prompt": system_prompt, "user_prompt": user_prompt})


def extract_token_usage(response: Any) -> Dict[str, Any]:
    """Extract token usage information from a response object.

    Args:
        response: Response message from LangChain

    Returns:
        Dictionary with input, output, total and (when reported) reasoning tokens
    """
    token_info = {}

    usage = getattr(response, 'usage_metadata', None)
    if isinstance(usage, dict):
        token_info['input_tokens'] = usage.get('input_tokens', 0)
        token_info['output_tokens'] = usage.get('output_tokens', 0)
        token_info['total_tokens'] = usage.get('total_tokens', 0)

        details = usage.get('output_token_details') or {}
        if 'reasoning' in details:
            token_info['reasoning_tokens'] = details.get('reasoning', 0)

    # Older integrations only report usage in response_metadata
    metadata = getattr(response, 'response_metadata', None)
    if 'input_tokens' not in token_info and isinstance(metadata, dict) and 'token_usage' in metadata:
        token_usage = metadata['token_usage']
        token_info['input_tokens'] = token_usage.get('prompt_tokens', 0)
        token_info['output_tokens'] = token_usage.get('completion_tokens', 0)
        token_info['total_tokens'] = token_usage.get('total_tokens', 0)

    return token_info


def log_token_usage(token_info: Dict[str, Any], model_name: str = None, operation: str = None):
    """Log token usage information at debug level."""
    if not token_info:
        return

    log_msg = "Token Usage"
    if model_name:
        log_msg += f" [{model_name}]"
    if operation:
        log_msg += f" - {operation}"

    log_msg += f": Input={token_info.get('input_tokens', 0)}, "
    log_msg += f"Output={token_info.get('output_tokens', 0)}, "
    log_msg += f"Total={token_info.get('total_tokens', 0)}"

    if 'reasoning_tokens' in token_info:
        log_msg += f", Reasoning={token_info['reasoning_tokens']}"

    logger.debug(log_msg)


def _message_text(response: Any) -> str:
    """Return the text of a chat message, joining content blocks when needed."""
    content = response.content if hasattr(response, 'content') else response
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get('type') == 'text':
                parts.append(block.get('text', ''))
        return ''.join(parts)
    return str(content)


def parse_json_response(content: str, response_schema: Type[BaseModel]) -> BaseModel:
    """
    Parse the first JSON object found in free text into a schema instance.

    Args:
        content: Raw model output, possibly wrapped in prose or code fences
        response_schema: Pydantic model to validate against

    Returns:
        Validated schema instance

    Raises:
        ResponseParsingError: If no valid JSON object matching the schema is found
    """
    start_idx = content.find('{')
    end_idx = content.rfind('}') + 1
    if start_idx == -1 or end_idx <= start_idx:
        raise ResponseParsingError(f"No JSON object found in model response for {response_schema.__name__}")

    try:
        data = json.loads(content[start_idx:end_idx])
        return response_schema.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ResponseParsingError(f"Model response does not match {response_schema.__name__}: {e}") from e


async def make_api_call(
        llm: object,
        system_prompt: str,
        user_prompt: str,
        response_schema: Optional[Type[BaseModel]] = None,
        return_token_usage: bool = False,
        operation: str = None,
    ) -> Union[BaseModel, str, Tuple[Any, Dict[str, Any]]]:
        """
        Make an async API call to an LLM with flexible response handling.

        Args:
            llm: The LangChain chat model
            system_prompt: System prompt
            user_prompt: User prompt
            response_schema: Optional Pydantic schema for structured output
            return_token_usage: If True, returns tuple of (response, token_usage)
            operation: Short label used in token usage logs

        Returns:
            Schema instance, or text when no schema is given.
            If return_token_usage=True, returns tuple of (response, token_usage)

        Raises:
            APICallError: If the provider call fails
            ResponseParsingError: If a structured response cannot be parsed

        Note:
            When native structured output yields nothing usable, the raw text is
            searched for a JSON object and validated against the schema.
        """
        messages = create_prompt_template(system_prompt, user_prompt)
        model_name = getattr(llm, 'model_name', None) or getattr(llm, 'model', 'unknown')

        # Case 1: No schema requested, return raw content
        if response_schema is None:
            try:
                response = await llm.ainvoke(messages)
            except Exception as e:
                raise APICallError(f"LLM call failed: {e}") from e

            token_info = extract_token_usage(response)
            log_token_usage(token_info, model_name, operation)
            content = _message_text(response)

            if return_token_usage:
                return content, token_info
            return content

        # Case 2: Native structured output
        try:
            client = llm.with_structured_output(response_schema, include_raw=True)
            response_with_raw = await client.ainvoke(messages)
        except Exception as e:
            raise APICallError(f"LLM call failed: {e}") from e

        token_info = {}
        if isinstance(response_with_raw, dict) and 'raw' in response_with_raw:
            parsed = response_with_raw.get('parsed')
            raw_response = response_with_raw['raw']
            token_info = extract_token_usage(raw_response)

            if parsed is None:
                parsing_error = response_with_raw.get('parsing_error')
                logger.warning(f"Structured output parsing failed ({parsing_error}); falling back to JSON extraction")
                parsed = parse_json_response(_message_text(raw_response), response_schema)
        else:
            parsed = response_with_raw

        if isinstance(parsed, dict):
            try:
                parsed = response_schema.model_validate(parsed)
            except ValidationError as e:
                raise ResponseParsingError(f"Model response does not match {response_schema.__name__}: {e}") from e

        log_token_usage(token_info, model_name, operation)

        if return_token_usage:
            return parsed, token_info
        return parsed
