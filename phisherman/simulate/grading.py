"""
Scoring rules that do not need a model call.
"""

from typing import Dict, Any, Union

from .schemas import DeepfakeVerdict, SimulationAnalysis
from ..exceptions import InvalidInputError

# An analysed response counts as a pass above this score
PASS_SCORE = 70

DEEPFAKE_CORRECT_FEEDBACK = (
    "Correct! You identified the synthetic patterns in the voice. Notice the "
    "slight lack of natural breathing and the consistent pitch."
)
DEEPFAKE_INCORRECT_FEEDBACK = (
    "Incorrect. This was an AI-generated clone. Modern deepfakes can be extremely "
    "convincing, but often lack the subtle emotional variance of human speech."
)


def parse_verdict(guess: Union[str, DeepfakeVerdict]) -> DeepfakeVerdict:
    """Normalise a deepfake guess, rejecting anything but authentic/synthetic."""
    if isinstance(guess, DeepfakeVerdict):
        return guess
    try:
        return DeepfakeVerdict(str(guess).strip().lower())
    except ValueError:
        raise InvalidInputError(f"Guess must be 'authentic' or 'synthetic', got {guess!r}") from None


def grade_deepfake_guess(guess: Union[str, DeepfakeVerdict],
                         solution: Union[str, DeepfakeVerdict]) -> Dict[str, Any]:
    """
    Grade an employee's verdict on a deepfake voice clip.

    Args:
        guess: 'authentic' or 'synthetic'
        solution: The true verdict for the clip

    Returns:
        Dictionary with is_correct, score, feedback, correct_flags, missed_flags
    """
    is_correct = parse_verdict(guess) == parse_verdict(solution)
    return {
        'is_correct': is_correct,
        'score': 100 if is_correct else 0,
        'feedback': DEEPFAKE_CORRECT_FEEDBACK if is_correct else DEEPFAKE_INCORRECT_FEEDBACK,
        'correct_flags': ["AI Voice Pattern"] if is_correct else [],
        'missed_flags': [] if is_correct else ["Synthetic Pitch Consistency"],
    }


def analysis_is_correct(analysis: SimulationAnalysis) -> bool:
    return analysis.score > PASS_SCORE
