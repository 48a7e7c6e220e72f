"""
Custom exceptions for the Phisherman training backend.

This module provides specific exception classes for different error scenarios,
so the API layer can map each failure to a meaningful HTTP status.
"""


class PhishermanBaseError(Exception):
    """Base exception class for all Phisherman errors."""
    pass


# Configuration Errors
class ConfigurationError(PhishermanBaseError):
    """Raised when there are configuration issues."""
    pass


class MissingAPIKeyError(ConfigurationError):
    """Raised when required API keys are not set."""
    pass


class InvalidProviderError(ConfigurationError):
    """Raised when an unsupported provider is specified."""
    pass


# Input Errors
class InvalidInputError(PhishermanBaseError):
    """Raised when a caller supplies a value the operation cannot accept."""
    pass


class InvalidDifficultyError(InvalidInputError):
    """Raised when a simulation difficulty is outside the 1-5 range."""
    pass


# Processing Errors
class ProcessingError(PhishermanBaseError):
    """Base class for processing-related errors."""
    pass


class ModelInitializationError(ProcessingError):
    """Raised when LLM model initialization fails."""
    pass


class APICallError(ProcessingError):
    """Raised when API calls fail."""
    pass


class ResponseParsingError(ProcessingError):
    """Raised when LLM response parsing fails."""
    pass


class SimulationError(ProcessingError):
    """Raised when a training simulation cannot be produced."""
    pass


# Audio Errors
class AudioError(PhishermanBaseError):
    """Base class for audio-related errors."""
    pass


class AudioGenerationError(AudioError):
    """Raised when the speech model returns no usable audio."""
    pass


class AudioFormatError(AudioError, InvalidInputError):
    """Raised when PCM data or WAV parameters are malformed."""
    pass


# Database Errors
class DatabaseError(PhishermanBaseError):
    """Base class for database-related errors."""
    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails."""
    pass


class DatabaseOperationError(DatabaseError):
    """Raised when database operations fail."""
    pass


class RecordNotFoundError(DatabaseError):
    """Raised when a referenced employee, simulation, campaign or department does not exist."""
    pass
