from .simulation_generator import SimulationGenerator, BATCH_KINDS, default_difficulty
from .schemas import (
    SimulationType,
    DeepfakeVerdict,
    PhishingEmail,
    PhoneScript,
    PhoneSimulation,
    SimulationAnalysis,
    DeepfakeChallenge
)
from .grading import grade_deepfake_guess, analysis_is_correct, parse_verdict, PASS_SCORE
from .simulation_prompts import validate_difficulty, MIN_DIFFICULTY, MAX_DIFFICULTY

__all__ = [
    'SimulationGenerator',
    'BATCH_KINDS',
    'default_difficulty',
    'SimulationType',
    'DeepfakeVerdict',
    'PhishingEmail',
    'PhoneScript',
    'PhoneSimulation',
    'SimulationAnalysis',
    'DeepfakeChallenge',
    'grade_deepfake_guess',
    'analysis_is_correct',
    'parse_verdict',
    'PASS_SCORE',
    'validate_difficulty',
    'MIN_DIFFICULTY',
    'MAX_DIFFICULTY'
]
