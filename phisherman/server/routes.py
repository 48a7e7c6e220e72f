#!/usr/bin/env python3
"""
REST endpoints for the employee training app and the admin/SOC dashboard.

Database-only endpoints are plain functions. Endpoints that call the AI
models are coroutines and run their database work in the threadpool.
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.concurrency import run_in_threadpool

from ..audio import SAMPLE_RATE, base64_pcm_to_wav, wav_to_base64
from ..database import (
    DEFAULT_EMPLOYEE_ID,
    TrainingDataService,
    AdminOverview,
    Department,
    Campaign,
    EmployeeStats,
    Report,
)
from ..exceptions import InvalidInputError
from ..simulate import (
    SimulationGenerator,
    SimulationType,
    analysis_is_correct,
    default_difficulty,
    grade_deepfake_guess,
    validate_difficulty,
)
from .api_models import (
    CampaignCreate,
    CampaignStatusUpdate,
    ResultCreate,
    SimulationRequest,
    AnalysisRequest,
    GuessRequest,
    ChatRequest,
    AudioRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

ANALYSABLE_TYPES = (SimulationType.EMAIL.value, SimulationType.PHONE.value)


def get_data_service(request: Request) -> TrainingDataService:
    return request.app.state.data_service


def get_generator(request: Request) -> SimulationGenerator:
    return request.app.state.generator


def _requested_difficulty(body: Optional[SimulationRequest], kind: str) -> int:
    if body is None or body.difficulty is None:
        return default_difficulty(kind)
    return validate_difficulty(body.difficulty)


@router.get("/health")
def health():
    return {"status": "ok"}


# ============================================================
# ADMIN / SOC DASHBOARD
# ============================================================

@router.get("/admin/overview", response_model=AdminOverview)
def admin_overview(data: TrainingDataService = Depends(get_data_service)):
    return data.get_admin_overview()


@router.get("/admin/departments", response_model=List[Department])
def admin_departments(data: TrainingDataService = Depends(get_data_service)):
    return data.get_departments()


@router.get("/admin/campaigns", response_model=List[Campaign])
def admin_campaigns(data: TrainingDataService = Depends(get_data_service)):
    return data.get_campaigns()


@router.post("/admin/campaigns")
def launch_campaign(body: CampaignCreate, data: TrainingDataService = Depends(get_data_service)):
    campaign_id = data.create_campaign(body.name, body.target_dept_id, body.sim_type)
    return {"id": campaign_id}


@router.patch("/admin/campaigns/{campaign_id}")
def change_campaign_status(campaign_id: int,
                           body: CampaignStatusUpdate,
                           data: TrainingDataService = Depends(get_data_service)):
    data.update_campaign_status(campaign_id, body.status)
    return {"id": campaign_id, "status": body.status.value}


# ============================================================
# EMPLOYEE
# ============================================================

@router.get("/stats", response_model=EmployeeStats)
def employee_stats(employee_id: int = DEFAULT_EMPLOYEE_ID,
                   data: TrainingDataService = Depends(get_data_service)):
    return data.get_employee_stats(employee_id)


@router.get("/reports", response_model=List[Report])
def employee_reports(employee_id: int = DEFAULT_EMPLOYEE_ID,
                     data: TrainingDataService = Depends(get_data_service)):
    return data.get_reports(employee_id)


@router.post("/results")
def record_result(body: ResultCreate, data: TrainingDataService = Depends(get_data_service)):
    record = data.record_result(
        is_correct=body.is_correct,
        employee_id=body.employee_id,
        simulation_id=body.simulation_id,
        campaign_id=body.campaign_id,
        response_time=body.response_time,
        feedback=body.feedback
    )
    return {"id": record.id, "security_score": record.security_score}


# ============================================================
# SIMULATIONS
# ============================================================

@router.post("/simulations/email")
async def email_simulation(body: Optional[SimulationRequest] = None,
                           data: TrainingDataService = Depends(get_data_service),
                           generator: SimulationGenerator = Depends(get_generator)):
    difficulty = _requested_difficulty(body, SimulationType.EMAIL.value)
    email = await generator.generate_phishing_email(difficulty)
    simulation_id = await run_in_threadpool(
        data.save_simulation, SimulationType.EMAIL, email.model_dump(), difficulty
    )
    return {"simulation_id": simulation_id, "difficulty": difficulty, "email": email.model_dump()}


@router.post("/simulations/phone")
async def phone_simulation(body: Optional[SimulationRequest] = None,
                           data: TrainingDataService = Depends(get_data_service),
                           generator: SimulationGenerator = Depends(get_generator)):
    difficulty = _requested_difficulty(body, SimulationType.PHONE.value)
    simulation = await generator.generate_phone_simulation(difficulty)
    simulation_id = await run_in_threadpool(
        data.save_simulation, SimulationType.PHONE, simulation.script.model_dump(), difficulty
    )
    return {
        "simulation_id": simulation_id,
        "difficulty": difficulty,
        "script": simulation.script.model_dump(),
        "audio_wav_base64": wav_to_base64(simulation.audio),
    }


@router.post("/simulations/deepfake")
async def deepfake_simulation(data: TrainingDataService = Depends(get_data_service),
                              generator: SimulationGenerator = Depends(get_generator)):
    challenge = await generator.generate_deepfake_challenge()
    simulation_id = await run_in_threadpool(
        data.save_simulation,
        SimulationType.DEEPFAKE,
        {"text": challenge.text, "solution": challenge.solution.value}
    )
    # The solution stays server-side until the employee guesses
    return {
        "simulation_id": simulation_id,
        "text": challenge.text,
        "audio_wav_base64": wav_to_base64(challenge.audio),
    }


@router.post("/simulations/{simulation_id}/analysis")
async def analyse_simulation(simulation_id: int,
                             body: AnalysisRequest,
                             data: TrainingDataService = Depends(get_data_service),
                             generator: SimulationGenerator = Depends(get_generator)):
    simulation = await run_in_threadpool(data.get_simulation, simulation_id)
    if simulation.type not in ANALYSABLE_TYPES or not simulation.content:
        raise InvalidInputError(f"Simulation {simulation_id} ({simulation.type}) cannot be analysed")

    analysis = await generator.analyze_response(json.dumps(simulation.content), body.selected_flags)
    is_correct = analysis_is_correct(analysis)
    record = await run_in_threadpool(
        data.record_result,
        is_correct=is_correct,
        employee_id=body.employee_id,
        simulation_id=simulation_id,
        campaign_id=body.campaign_id,
        response_time=body.response_time,
        feedback=analysis.feedback
    )
    return {"analysis": analysis.model_dump(), "is_correct": is_correct, "result": record.model_dump()}


@router.post("/simulations/{simulation_id}/guess")
def guess_deepfake(simulation_id: int,
                   body: GuessRequest,
                   data: TrainingDataService = Depends(get_data_service)):
    simulation = data.get_simulation(simulation_id)
    if simulation.type != SimulationType.DEEPFAKE.value or not simulation.content:
        raise InvalidInputError(f"Simulation {simulation_id} is not a deepfake challenge")

    grade = grade_deepfake_guess(body.guess, simulation.content["solution"])
    record = data.record_result(
        is_correct=grade['is_correct'],
        employee_id=body.employee_id,
        simulation_id=simulation_id,
        campaign_id=body.campaign_id,
        response_time=body.response_time,
        feedback=grade['feedback']
    )
    return {**grade, "result": record.model_dump()}


# ============================================================
# ASSISTANT AND AUDIO
# ============================================================

@router.post("/chat")
async def security_chat(body: ChatRequest, generator: SimulationGenerator = Depends(get_generator)):
    reply = await generator.security_chat(body.message)
    return {"reply": reply}


@router.post("/audio/wav")
def audio_wav(body: AudioRequest):
    """Wrap base64 PCM from the speech model into a playable WAV file."""
    sample_rate = SAMPLE_RATE if body.sample_rate is None else body.sample_rate
    wav = base64_pcm_to_wav(body.audio_base64, sample_rate)
    return Response(content=wav, media_type="audio/wav")
