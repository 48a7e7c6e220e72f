import os
import json
from pathlib import Path
from typing import Dict, List, Optional, Any
from dotenv import load_dotenv
from langchain_openai import ChatOpenAI
from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI
from ..exceptions import MissingAPIKeyError, InvalidProviderError, ConfigurationError

load_dotenv()

SUPPORTED_PROVIDERS = ("gemini", "openai", "anthropic")
TEXT_TASKS = ("simulation", "chat", "analysis")


class ModelConfig:
    """Manages model configuration from JSON file."""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = Path(__file__).parent / "model_config.json"
        with open(config_path, 'r') as f:
            self.config = json.load(f)

    def get_models(self, provider: str) -> List[Dict]:
        """Get list of models for a provider."""
        return self.config["models"].get(provider, [])

    def get_model_info(self, provider: str, model_id: str) -> Optional[Dict]:
        """Get information about a specific model."""
        for model in self.get_models(provider):
            if model["id"] == model_id:
                return model
        return None

    def get_model_parameters(self, provider: str, model_id: str) -> Dict[str, Any]:
        """Get default parameters for a specific model."""
        model_info = self.get_model_info(provider, model_id)
        if model_info and "parameters" in model_info:
            defaults = {}
            for param_name, param_def in model_info["parameters"].items():
                if "default" in param_def:
                    defaults[param_name] = param_def["default"]
            return defaults

        # Models missing from the catalogue fall back to provider defaults
        provider_config = self.get_provider_config(provider)
        return dict(provider_config.get("default_parameters", {"temperature": 0.7}))

    def get_unsupported_parameters(self, provider: str, model_id: str) -> List[str]:
        """Get list of unsupported parameters for a model."""
        model_info = self.get_model_info(provider, model_id)
        if model_info:
            return model_info.get("unsupported_parameters", [])
        return []

    def is_reasoning_model(self, provider: str, model_id: str) -> bool:
        """Check if a model is a reasoning model."""
        model_info = self.get_model_info(provider, model_id)
        return model_info.get("is_reasoning", False) if model_info else False

    def get_provider_config(self, provider: str) -> Dict:
        """Get provider configuration."""
        return self.config["provider_config"].get(provider, {})

    def get_task_model(self, task: str) -> Dict[str, Any]:
        """
        Get the provider/model assignment for a task.

        PHISHERMAN_PROVIDER and PHISHERMAN_MODEL override the catalogue for
        the text tasks (simulation, chat, analysis). Speech always uses the
        catalogue entry because only Gemini offers the PCM voice output.

        Args:
            task: One of 'simulation', 'chat', 'analysis', 'speech'

        Returns:
            Dictionary with at least 'provider' and 'model' keys
        """
        tasks = self.config.get("tasks", {})
        if task not in tasks:
            raise ConfigurationError(f"No model configured for task: {task}")

        assignment = dict(tasks[task])
        if task in TEXT_TASKS:
            provider_override = os.getenv("PHISHERMAN_PROVIDER")
            model_override = os.getenv("PHISHERMAN_MODEL")
            if provider_override:
                assignment["provider"] = provider_override
            if model_override:
                assignment["model"] = model_override
        return assignment


class LLM:
    """A factory class for creating LangChain chat clients for the supported providers."""

    # Class-level model config instance
    _model_config = None

    @classmethod
    def get_model_config(cls) -> ModelConfig:
        """Get or create the model configuration singleton."""
        if cls._model_config is None:
            cls._model_config = ModelConfig()
        return cls._model_config

    @classmethod
    def for_task(cls, task: str, **kwargs) -> "LLM":
        """Create a factory for the provider/model assigned to a task."""
        assignment = cls.get_model_config().get_task_model(task)
        return cls(provider=assignment["provider"], model=assignment["model"], **kwargs)

    def __init__(self, provider: str, model: str, **kwargs):
        """
        Initializes the LLM factory.

        Args:
            provider: The name of the LLM provider ('gemini', 'openai', 'anthropic').
            model: The specific model name to use.
            **kwargs: Additional parameters to override defaults.
        """
        self.provider = provider
        self.model = model
        self.model_config = self.get_model_config()

        # Get model-specific default parameters
        self.parameters = self.model_config.get_model_parameters(provider, model)

        # Override with any provided parameters
        self.parameters.update(kwargs)

        # Filter out unsupported parameters
        for param in self.model_config.get_unsupported_parameters(provider, model):
            self.parameters.pop(param, None)

    def _prepare_gemini_params(self) -> Dict[str, Any]:
        """Prepare parameters for Gemini models."""
        params = {
            "api_key": os.getenv("GEMINI_API_KEY"),
            "model": self.model
        }

        if not params["api_key"]:
            raise MissingAPIKeyError("GEMINI_API_KEY environment variable is not set")

        if "temperature" in self.parameters:
            params["temperature"] = self.parameters["temperature"]
        if "top_p" in self.parameters:
            params["top_p"] = self.parameters["top_p"]
        if "max_output_tokens" in self.parameters:
            params["max_output_tokens"] = self.parameters["max_output_tokens"]

        # Thinking budget only applies to reasoning-capable Gemini models
        if self.model_config.is_reasoning_model(self.provider, self.model):
            params["thinking_budget"] = self.parameters.get("thinking_budget", 0)

        return params

    def _prepare_openai_params(self) -> Dict[str, Any]:
        """Prepare parameters for OpenAI models."""
        params = {
            "api_key": os.getenv("OPENAI_API_KEY"),
            "model": self.model,
            "stream_usage": True
        }

        if not params["api_key"]:
            raise MissingAPIKeyError("OPENAI_API_KEY environment variable is not set")

        if self.model_config.is_reasoning_model(self.provider, self.model):
            if "reasoning_effort" in self.parameters:
                params["reasoning_effort"] = self.parameters["reasoning_effort"]
        else:
            for name in ("temperature", "top_p", "max_tokens"):
                if name in self.parameters:
                    params[name] = self.parameters[name]

        return params

    def _prepare_anthropic_params(self) -> Dict[str, Any]:
        """Prepare parameters for Anthropic models."""
        params = {
            "api_key": os.getenv("ANTHROPIC_API_KEY"),
            "model": self.model
        }

        if not params["api_key"]:
            raise MissingAPIKeyError("ANTHROPIC_API_KEY environment variable is not set")

        for name in ("temperature", "top_p", "max_tokens"):
            if name in self.parameters:
                params[name] = self.parameters[name]

        return params

    def get_llm(self):
        """
        Initializes and returns a LangChain chat model for the configured provider.

        Returns:
            A LangChain chat model instance.

        Raises:
            MissingAPIKeyError: If required API keys are not set.
            InvalidProviderError: If the provider is unsupported.
        """
        if self.provider == "gemini":
            return ChatGoogleGenerativeAI(**self._prepare_gemini_params())
        elif self.provider == "openai":
            return ChatOpenAI(**self._prepare_openai_params())
        elif self.provider == "anthropic":
            return ChatAnthropic(**self._prepare_anthropic_params())
        else:
            raise InvalidProviderError(
                f"Unsupported provider: {self.provider}. Supported: {', '.join(SUPPORTED_PROVIDERS)}"
            )
