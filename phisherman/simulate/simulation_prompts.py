#!/usr/bin/env python3
"""
Prompts for training content generation.

Each builder returns the user prompt for one AI call; the system prompts set
the role the model plays.
"""

from typing import List

from ..exceptions import InvalidDifficultyError

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

SIMULATION_SYSTEM_PROMPT = (
    "You are a red-team content designer for a corporate security-awareness "
    "programme. You write realistic but harmless simulated attacks for employee "
    "training. Never include real company names, real people, working links "
    "or real phone numbers."
)

ANALYSIS_SYSTEM_PROMPT = (
    "You are a security-awareness coach grading an employee's response to a "
    "phishing simulation. Be accurate and encouraging."
)

CHAT_SYSTEM_PROMPT = (
    "You are a specialized cybersecurity training assistant. Provide brief, "
    "accurate, and actionable advice on digital safety and threat detection. "
    "Keep responses under 3 sentences for maximum speed."
)

DEEPFAKE_SCRIPT = (
    "This is a highly confidential message from the executive office. We need "
    "you to authorize the transfer immediately to avoid any legal complications."
)


def validate_difficulty(difficulty: int) -> int:
    """
    Check a simulation difficulty level.

    Args:
        difficulty: 1 (obvious) to 5 (extremely sophisticated)

    Returns:
        The difficulty unchanged

    Raises:
        InvalidDifficultyError: If it is not an integer in range
    """
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidDifficultyError(f"Difficulty must be an integer, got {difficulty!r}")
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise InvalidDifficultyError(
            f"Difficulty must be between {MIN_DIFFICULTY} and {MAX_DIFFICULTY}, got {difficulty}"
        )
    return difficulty


def phishing_email_prompt(difficulty: int) -> str:
    """Prompt for a training phishing email."""
    validate_difficulty(difficulty)
    return f"""Generate a realistic phishing email for employee training.
Difficulty Level: {difficulty} (1 = obvious, 5 = extremely sophisticated).
The email should include:
- Subject line
- Sender name and email (suspicious but realistic)
- Body content (Markdown)
- A list of "red flags" that the user should identify.
- A brief explanation of why this is a phishing attempt."""


def phone_script_prompt(difficulty: int) -> str:
    """Prompt for a vishing call script."""
    validate_difficulty(difficulty)
    return f"""Generate a script for a social engineering phone call (vishing).
Difficulty Level: {difficulty}.
The script should be for an attacker pretending to be from IT, HR, or a Bank.
Include:
- Attacker's opening line
- The "hook" (the reason for the call)
- The "ask" (what sensitive info they want)
- A list of red flags in the conversation."""


def analysis_prompt(simulation_content: str, user_flags: List[str]) -> str:
    """Prompt asking the model to grade the flags an employee selected."""
    flags = ", ".join(user_flags) if user_flags else "(none)"
    return f"""Analyze a user's response to a phishing simulation.
Simulation Content: {simulation_content}
User Identified Flags: {flags}

Provide feedback on:
- What they missed.
- What they correctly identified.
- Overall score (0-100).
- Encouraging advice."""
