from .simulate import SimulationGenerator
from .llm_core import LLM, SpeechSynthesizer
from .database import get_training_data_service, TrainingDataService
from .audio import create_wav_header, pcm_to_wav
from .server import create_app

# Import custom exceptions
from .exceptions import (
    PhishermanBaseError,
    ConfigurationError,
    MissingAPIKeyError,
    InvalidProviderError,
    InvalidInputError,
    InvalidDifficultyError,
    ProcessingError,
    ModelInitializationError,
    APICallError,
    ResponseParsingError,
    SimulationError,
    AudioError,
    AudioGenerationError,
    AudioFormatError,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseOperationError,
    RecordNotFoundError
)

__all__ = [
    'SimulationGenerator',
    'LLM',
    'SpeechSynthesizer',
    'get_training_data_service',
    'TrainingDataService',
    'create_wav_header',
    'pcm_to_wav',
    'create_app',
    # Exceptions
    'PhishermanBaseError',
    'ConfigurationError',
    'MissingAPIKeyError',
    'InvalidProviderError',
    'InvalidInputError',
    'InvalidDifficultyError',
    'ProcessingError',
    'ModelInitializationError',
    'APICallError',
    'ResponseParsingError',
    'SimulationError',
    'AudioError',
    'AudioGenerationError',
    'AudioFormatError',
    'DatabaseError',
    'DatabaseConnectionError',
    'DatabaseOperationError',
    'RecordNotFoundError'
]
