"""Request bodies accepted by the REST API."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..database.training_models import CampaignStatus


class CampaignCreate(BaseModel):
    name: str
    target_dept_id: int
    sim_type: str


class CampaignStatusUpdate(BaseModel):
    status: CampaignStatus


class ResultCreate(BaseModel):
    """An answer reported by the client without server-side grading."""
    is_correct: bool
    employee_id: Optional[int] = None
    simulation_id: Optional[int] = None
    campaign_id: Optional[int] = None
    response_time: Optional[int] = Field(default=None, ge=0)
    feedback: Optional[str] = None


class SimulationRequest(BaseModel):
    # Checked against 1-5 by validate_difficulty
    difficulty: Optional[int] = None


class AnswerContext(BaseModel):
    employee_id: Optional[int] = None
    campaign_id: Optional[int] = None
    response_time: Optional[int] = Field(default=None, ge=0)


class AnalysisRequest(AnswerContext):
    selected_flags: List[str] = Field(default_factory=list)


class GuessRequest(AnswerContext):
    # "authentic" or "synthetic"
    guess: str


class ChatRequest(BaseModel):
    message: str


class AudioRequest(BaseModel):
    audio_base64: str
    sample_rate: Optional[int] = None
