from .api_provider import LLM, ModelConfig
from .api_call import (
    make_api_call,
    create_prompt_template,
    extract_token_usage,
    log_token_usage,
    parse_json_response
)
from .speech import SpeechSynthesizer

__all__ = ['LLM', 'ModelConfig', 'make_api_call',
           'create_prompt_template', 'extract_token_usage',
           'log_token_usage', 'parse_json_response',
           'SpeechSynthesizer']
