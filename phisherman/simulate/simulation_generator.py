#!/usr/bin/env python3
"""
Simulation Generator

This module turns prompts into training content: phishing emails, vishing
call scripts with a synthetic attacker voice, deepfake voice challenges, AI
grading of employee answers and a short security assistant chat.
"""

import asyncio
import json
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple

import pandas as pd
from tqdm import tqdm

from ..audio import pcm_to_wav
from ..llm_core.api_provider import LLM
from ..llm_core.api_call import make_api_call
from ..llm_core.speech import SpeechSynthesizer
from ..exceptions import ConfigurationError, ModelInitializationError, InvalidInputError, SimulationError
from .schemas import (
    PhishingEmail,
    PhoneScript,
    PhoneSimulation,
    SimulationAnalysis,
    DeepfakeChallenge,
    DeepfakeVerdict,
    SimulationType,
)
from .simulation_prompts import (
    SIMULATION_SYSTEM_PROMPT,
    ANALYSIS_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    DEEPFAKE_SCRIPT,
    validate_difficulty,
    phishing_email_prompt,
    phone_script_prompt,
    analysis_prompt,
)

logger = logging.getLogger(__name__)

BATCH_KINDS = (SimulationType.EMAIL.value, SimulationType.PHONE.value, SimulationType.DEEPFAKE.value)
DEFAULT_PHONE_DIFFICULTY = 2


def default_difficulty(kind: str) -> int:
    """Emails default to a random 1-3 difficulty, phone calls to 2."""
    if kind == SimulationType.EMAIL.value:
        return random.randint(1, 3)
    return DEFAULT_PHONE_DIFFICULTY


class SimulationGenerator:
    """
    Produces training simulations through the configured LLM and speech models.
    Models are created on first use.
    """

    def __init__(self,
                 speech: Optional[SpeechSynthesizer] = None,
                 output_dir: str = "results/simulations"):
        """
        Initialize the generator.

        Args:
            speech: Speech synthesizer for voice content. Defaults to the Gemini TTS model
            output_dir: Directory for batch generation output
        """
        self.speech = speech or SpeechSynthesizer()
        self.output_dir = Path(output_dir)

        self.simulation_llm = None
        self.analysis_llm = None
        self.chat_llm = None

    def setup_models(self):
        """Initialize the LLM models for each task."""
        try:
            self.simulation_llm = LLM.for_task("simulation").get_llm()
            self.analysis_llm = LLM.for_task("analysis").get_llm()
            self.chat_llm = LLM.for_task("chat").get_llm()
            logger.info("Simulation, analysis and chat models initialized")
        except ConfigurationError:
            raise
        except Exception as e:
            raise ModelInitializationError(f"Error initializing models: {e}") from e

    def _ensure_models(self):
        if self.simulation_llm is None or self.analysis_llm is None or self.chat_llm is None:
            self.setup_models()

    async def generate_phishing_email(self, difficulty: int) -> PhishingEmail:
        """
        Generate a phishing email for training.

        Args:
            difficulty: 1 (obvious) to 5 (extremely sophisticated)

        Returns:
            PhishingEmail with its red flags and explanation
        """
        user_prompt = phishing_email_prompt(difficulty)
        self._ensure_models()

        email = await make_api_call(
            self.simulation_llm,
            SIMULATION_SYSTEM_PROMPT,
            user_prompt,
            response_schema=PhishingEmail,
            operation="phishing_email"
        )
        logger.info(f"Generated phishing email (difficulty {difficulty}): {email.subject!r}")
        return email

    async def generate_phone_script(self, difficulty: int) -> PhoneScript:
        """Generate the text of a vishing call."""
        user_prompt = phone_script_prompt(difficulty)
        self._ensure_models()

        return await make_api_call(
            self.simulation_llm,
            SIMULATION_SYSTEM_PROMPT,
            user_prompt,
            response_schema=PhoneScript,
            operation="phone_script"
        )

    async def generate_phone_simulation(self, difficulty: int) -> PhoneSimulation:
        """
        Generate a vishing script and voice the attacker's lines.

        Args:
            difficulty: 1 (obvious) to 5 (extremely sophisticated)

        Returns:
            PhoneSimulation with the script and raw PCM audio
        """
        script = await self.generate_phone_script(difficulty)
        if not script.attacker_script.strip():
            raise SimulationError("Model returned a phone script without attacker lines")
        audio = await self.speech.synthesize(script.attacker_script)
        logger.info(f"Generated phone simulation (difficulty {difficulty}): {script.scenario[:60]!r}")
        return PhoneSimulation(script=script, audio=audio)

    async def generate_deepfake_challenge(self) -> DeepfakeChallenge:
        """Voice the executive transfer request; the clip is always synthetic."""
        audio = await self.speech.synthesize(DEEPFAKE_SCRIPT)
        return DeepfakeChallenge(text=DEEPFAKE_SCRIPT, solution=DeepfakeVerdict.SYNTHETIC, audio=audio)

    async def analyze_response(self, simulation_content: str, user_flags: List[str]) -> SimulationAnalysis:
        """
        Ask the analysis model to grade the red flags an employee picked.

        Args:
            simulation_content: JSON text of the simulation shown to the employee
            user_flags: Red flags the employee selected

        Returns:
            SimulationAnalysis with score, missed and correct flags, and feedback
        """
        if not simulation_content or not simulation_content.strip():
            raise InvalidInputError("Simulation content is required for analysis")
        self._ensure_models()

        return await make_api_call(
            self.analysis_llm,
            ANALYSIS_SYSTEM_PROMPT,
            analysis_prompt(simulation_content, user_flags or []),
            response_schema=SimulationAnalysis,
            operation="analysis"
        )

    async def security_chat(self, message: str) -> str:
        """Answer a security question in at most a few sentences."""
        if not message or not message.strip():
            raise InvalidInputError("Chat message cannot be empty")
        self._ensure_models()

        reply = await make_api_call(
            self.chat_llm,
            CHAT_SYSTEM_PROMPT,
            message.strip(),
            operation="chat"
        )
        return reply or "No response"

    async def generate_single_item(self, kind: str, difficulty: Optional[int] = None) -> Dict[str, Any]:
        """
        Generate one simulation of the given kind, never raising.

        Args:
            kind: 'email', 'phone' or 'deepfake'
            difficulty: Difficulty level; defaults depend on the kind

        Returns:
            Dictionary with generation result
        """
        if difficulty is None:
            difficulty = default_difficulty(kind)

        try:
            if kind == SimulationType.EMAIL.value:
                response = await self.generate_phishing_email(difficulty)
            elif kind == SimulationType.PHONE.value:
                response = await self.generate_phone_simulation(difficulty)
            elif kind == SimulationType.DEEPFAKE.value:
                response = await self.generate_deepfake_challenge()
            else:
                raise InvalidInputError(f"Unknown simulation kind: {kind}. Available: {', '.join(BATCH_KINDS)}")

            return {
                'success': True,
                'response': response,
                'kind': kind,
                'difficulty': difficulty
            }

        except Exception as e:
            logger.warning(f"Failed to generate {kind} simulation: {e}")
            return {
                'success': False,
                'error': str(e),
                'kind': kind,
                'difficulty': difficulty
            }

    async def generate_batch_async(self,
                                   kind: str,
                                   count: int,
                                   difficulty: Optional[int] = None,
                                   concurrent_requests: int = 5,
                                   show_progress: bool = True) -> List[Dict[str, Any]]:
        """
        Generate multiple simulations asynchronously.

        Args:
            kind: 'email', 'phone' or 'deepfake'
            count: Number of simulations to generate
            difficulty: Fixed difficulty, or None for the per-kind default
            concurrent_requests: Number of concurrent API requests
            show_progress: Whether to show progress bar

        Returns:
            List of generation results ordered by index
        """
        if kind not in BATCH_KINDS:
            raise InvalidInputError(f"Unknown simulation kind: {kind}. Available: {', '.join(BATCH_KINDS)}")
        if count <= 0:
            raise InvalidInputError("Count must be positive")
        if difficulty is not None:
            validate_difficulty(difficulty)

        semaphore = asyncio.Semaphore(max(1, concurrent_requests))

        async def process_with_semaphore(index):
            async with semaphore:
                result = await self.generate_single_item(kind, difficulty)
                result['index'] = index
                return result

        tasks = [asyncio.ensure_future(process_with_semaphore(i)) for i in range(count)]

        results = []
        with tqdm(total=count, desc=f"Generating {kind}", disable=not show_progress) as pbar:
            for future in asyncio.as_completed(tasks):
                results.append(await future)
                pbar.update(1)

        results.sort(key=lambda r: r['index'])
        successful = sum(1 for r in results if r['success'])
        logger.info(f"Batch generation finished: {successful}/{count} {kind} simulations succeeded")
        return results

    def save_results(self, results: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Save batch results to CSV/JSON, and voice clips to WAV files.

        Args:
            results: Output of generate_batch_async

        Returns:
            Dictionary with file paths and save statistics
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        kind = results[0]['kind'] if results else "empty"
        results_dir = self.output_dir / kind / timestamp
        results_dir.mkdir(parents=True, exist_ok=True)

        records, audio_files = self._build_records(results, results_dir)

        save_paths: Dict[str, Any] = {'results_directory': str(results_dir)}

        if records:
            detailed_path = results_dir / "simulations.csv"
            pd.DataFrame(records).to_csv(detailed_path, index=False)
            save_paths['detailed_results'] = str(detailed_path)

        successful = sum(1 for r in results if r['success'])
        summary = {
            'kind': kind,
            'generated_at': datetime.now().isoformat(),
            'total': len(results),
            'successful': successful,
            'failed': len(results) - successful,
            'audio_files': audio_files,
            'items': records
        }
        summary_path = results_dir / "summary.json"
        with open(summary_path, 'w') as f:
            json.dump(summary, f, indent=2, default=str)
        save_paths['summary_json'] = str(summary_path)
        save_paths['audio_files'] = audio_files

        logger.info(f"Saved {len(results)} simulation records to {results_dir}")
        return save_paths

    def _build_records(self, results: List[Dict[str, Any]], results_dir: Path) -> Tuple[List[Dict], List[str]]:
        """Flatten results into table rows, writing any audio alongside."""
        records = []
        audio_files = []

        for result in results:
            record = {
                'index': result.get('index'),
                'kind': result['kind'],
                'difficulty': result.get('difficulty'),
                'success': result['success'],
            }
            if not result['success']:
                record['error'] = result.get('error', 'Unknown error')
                records.append(record)
                continue

            response = result['response']
            audio = getattr(response, 'audio', None)
            if isinstance(response, PhoneSimulation):
                record.update(response.script.model_dump())
            else:
                record.update(response.model_dump(mode='json', exclude={'audio'}))

            if audio:
                wav_path = results_dir / f"{result['kind']}_{result.get('index', 0)}.wav"
                wav_path.write_bytes(pcm_to_wav(audio))
                record['audio_file'] = wav_path.name
                audio_files.append(str(wav_path))

            records.append(record)

        return records, audio_files
