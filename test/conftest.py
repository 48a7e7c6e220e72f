"""
Pytest configuration and shared fixtures for Phisherman tests
"""

import random
import pytest
from unittest.mock import Mock, AsyncMock

from phisherman.database import SQLiteConfig, SQLiteConnection, TrainingDataService
from phisherman.simulate import (
    SimulationGenerator,
    PhishingEmail,
    PhoneScript,
    PhoneSimulation,
    SimulationAnalysis,
    DeepfakeChallenge,
    DeepfakeVerdict,
)
from phisherman.simulate.simulation_prompts import DEEPFAKE_SCRIPT

# 512 samples of 16-bit PCM
SAMPLE_PCM = bytes(range(256)) * 4


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Setup test environment variables"""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key-123")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key-456")
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-789")
    monkeypatch.delenv("PHISHERMAN_PROVIDER", raising=False)
    monkeypatch.delenv("PHISHERMAN_MODEL", raising=False)
    monkeypatch.setenv("PHISHERMAN_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("PHISHERMAN_STATIC_DIR", str(tmp_path / "no-dist"))


@pytest.fixture
def sample_pcm():
    return SAMPLE_PCM


@pytest.fixture
def sqlite_connection(tmp_path):
    """A connection to a fresh database file, closed after the test"""
    connection = SQLiteConnection(SQLiteConfig(str(tmp_path / "phisherman.db")))
    yield connection
    connection.disconnect()


@pytest.fixture
def empty_data_service(sqlite_connection):
    """Data service with tables but no rows"""
    service = TrainingDataService(sqlite_connection, rng=random.Random(42))
    service.initialize()
    return service


@pytest.fixture
def data_service(empty_data_service):
    """Data service seeded with the demo organisation"""
    empty_data_service.seed_if_empty()
    return empty_data_service


@pytest.fixture
def mock_llm():
    """Create a mock LLM instance"""
    mock = Mock()
    mock.ainvoke = AsyncMock()
    mock.with_structured_output = Mock()
    mock.model_name = "mock-model"
    return mock


@pytest.fixture
def mock_speech():
    """Speech synthesizer that returns fixed PCM without calling Gemini"""
    mock = Mock()
    mock.synthesize = AsyncMock(return_value=SAMPLE_PCM)
    return mock


@pytest.fixture
def sample_email():
    return PhishingEmail(
        subject="Action required: verify your payroll details",
        sender_name="HR Payroll Team",
        sender_email="payroll@corp-hr-portal.net",
        body="Please **verify** your bank details within 24 hours or your salary will be delayed.",
        red_flags=["Urgency", "Lookalike domain", "Request for bank details"],
        explanation="Payroll never asks for bank details by email."
    )


@pytest.fixture
def sample_phone_script():
    return PhoneScript(
        scenario="Caller claims to be from the IT helpdesk",
        attacker_script="Hi, this is Mark from IT. We saw a login from abroad, can you read me the code we just sent?",
        red_flags=["Unsolicited call", "Asks for MFA code"],
        explanation="IT staff never ask for one-time codes."
    )


@pytest.fixture
def sample_analysis():
    return SimulationAnalysis(
        score=85,
        missed_flags=["Lookalike domain"],
        correct_flags=["Urgency", "Request for bank details"],
        feedback="Great job spotting the urgency. Check sender domains carefully."
    )


@pytest.fixture
def fake_generator(sample_email, sample_phone_script, sample_analysis):
    """SimulationGenerator with every AI call replaced by an AsyncMock"""
    generator = Mock(spec=SimulationGenerator)
    generator.generate_phishing_email = AsyncMock(return_value=sample_email)
    generator.generate_phone_simulation = AsyncMock(
        return_value=PhoneSimulation(script=sample_phone_script, audio=SAMPLE_PCM)
    )
    generator.generate_deepfake_challenge = AsyncMock(
        return_value=DeepfakeChallenge(text=DEEPFAKE_SCRIPT, solution=DeepfakeVerdict.SYNTHETIC, audio=SAMPLE_PCM)
    )
    generator.analyze_response = AsyncMock(return_value=sample_analysis)
    generator.security_chat = AsyncMock(return_value="Never share one-time codes over the phone.")
    return generator
