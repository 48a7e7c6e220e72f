#!/usr/bin/env python3
"""
Response schemas for AI-generated training content.

The LLM-facing models (PhishingEmail, PhoneScript, SimulationAnalysis) are
passed to structured output, so their field descriptions double as
instructions to the model.
"""

from enum import Enum
from typing import List
from pydantic import BaseModel, Field


class SimulationType(str, Enum):
    """Kinds of simulation stored in the simulations table."""
    EMAIL = "email"
    PHONE = "phone"
    DEEPFAKE = "deepfake"
    AUDIO = "audio"
    VIDEO = "video"
    UNKNOWN = "unknown"


class DeepfakeVerdict(str, Enum):
    """Possible answers to a deepfake voice challenge."""
    AUTHENTIC = "authentic"
    SYNTHETIC = "synthetic"


class PhishingEmail(BaseModel):
    """A simulated phishing email"""
    subject: str = Field(..., description="Email subject line")
    sender_name: str = Field(..., description="Display name of the sender, suspicious but realistic")
    sender_email: str = Field(..., description="Sender email address, suspicious but realistic")
    body: str = Field(..., description="Email body in Markdown")
    red_flags: List[str] = Field(..., description="Red flags the employee should identify")
    explanation: str = Field(..., description="Brief explanation of why this is a phishing attempt")


class PhoneScript(BaseModel):
    """A social engineering phone call (vishing) script"""
    scenario: str = Field(..., description="Who the attacker pretends to be and the pretext of the call")
    attacker_script: str = Field(..., description="What the attacker says: opening line, hook and ask")
    red_flags: List[str] = Field(..., description="Red flags in the conversation")
    explanation: str = Field(..., description="Why this call is a social engineering attempt")


class SimulationAnalysis(BaseModel):
    """AI feedback on the red flags an employee selected"""
    score: float = Field(..., ge=0, le=100, description="Overall score from 0 to 100")
    missed_flags: List[str] = Field(..., description="Red flags the employee missed")
    correct_flags: List[str] = Field(..., description="Red flags the employee correctly identified")
    feedback: str = Field(..., description="Encouraging advice for the employee")


class DeepfakeChallenge(BaseModel):
    """A synthetic voice clip the employee must classify"""
    text: str
    solution: DeepfakeVerdict
    audio: bytes = Field(..., repr=False, description="Raw PCM speech")


class PhoneSimulation(BaseModel):
    """A vishing script together with the synthetic voice of the attacker"""
    script: PhoneScript
    audio: bytes = Field(..., repr=False, description="Raw PCM speech of the attacker script")
