"""
Test cases for simulation prompts, grading and the simulation generator
"""

import json
import asyncio
import pytest
import pandas as pd
from unittest.mock import patch, AsyncMock

from phisherman.simulate import (
    SimulationGenerator,
    SimulationAnalysis,
    PhoneSimulation,
    DeepfakeVerdict,
    default_difficulty,
    grade_deepfake_guess,
    analysis_is_correct,
    parse_verdict,
    validate_difficulty,
)
from phisherman.simulate.simulation_prompts import (
    DEEPFAKE_SCRIPT,
    phishing_email_prompt,
    phone_script_prompt,
    analysis_prompt,
)
from phisherman.exceptions import (
    InvalidDifficultyError,
    InvalidInputError,
    MissingAPIKeyError,
    ModelInitializationError,
    SimulationError,
)


class TestPrompts:
    """Test cases for prompt builders"""

    @pytest.mark.parametrize("difficulty", [1, 3, 5])
    def test_valid_difficulty(self, difficulty):
        assert validate_difficulty(difficulty) == difficulty

    @pytest.mark.parametrize("difficulty", [0, 6, -1, 2.5, "3", True, None])
    def test_invalid_difficulty(self, difficulty):
        with pytest.raises(InvalidDifficultyError):
            validate_difficulty(difficulty)

    def test_phishing_email_prompt(self):
        prompt = phishing_email_prompt(4)

        assert "Difficulty Level: 4" in prompt
        assert "red flags" in prompt

    def test_phone_script_prompt(self):
        prompt = phone_script_prompt(2)

        assert "vishing" in prompt
        assert "Difficulty Level: 2" in prompt

    def test_prompt_rejects_bad_difficulty(self):
        with pytest.raises(InvalidDifficultyError):
            phishing_email_prompt(9)

    def test_analysis_prompt(self):
        prompt = analysis_prompt('{"subject": "Invoice"}', ["Urgency", "Spoofed sender"])

        assert '{"subject": "Invoice"}' in prompt
        assert "Urgency, Spoofed sender" in prompt

    def test_analysis_prompt_without_flags(self):
        assert "User Identified Flags: (none)" in analysis_prompt("content", [])


class TestGrading:
    """Test cases for rule-based grading"""

    def test_correct_deepfake_guess(self):
        grade = grade_deepfake_guess("synthetic", DeepfakeVerdict.SYNTHETIC)

        assert grade["is_correct"] is True
        assert grade["score"] == 100
        assert grade["correct_flags"] == ["AI Voice Pattern"]
        assert grade["missed_flags"] == []
        assert grade["feedback"].startswith("Correct!")

    def test_incorrect_deepfake_guess(self):
        grade = grade_deepfake_guess("authentic", "synthetic")

        assert grade["is_correct"] is False
        assert grade["score"] == 0
        assert grade["correct_flags"] == []
        assert grade["missed_flags"] == ["Synthetic Pitch Consistency"]
        assert grade["feedback"].startswith("Incorrect.")

    def test_guess_is_normalised(self):
        assert parse_verdict("  Synthetic ") == DeepfakeVerdict.SYNTHETIC

    def test_invalid_guess(self):
        with pytest.raises(InvalidInputError):
            grade_deepfake_guess("maybe", "synthetic")

    @pytest.mark.parametrize("score,expected", [(100, True), (71, True), (70.5, True), (70, False), (0, False)])
    def test_analysis_pass_threshold(self, score, expected):
        analysis = SimulationAnalysis(score=score, missed_flags=[], correct_flags=[], feedback="")
        assert analysis_is_correct(analysis) is expected

    def test_default_difficulty(self):
        for _ in range(20):
            assert 1 <= default_difficulty("email") <= 3
        assert default_difficulty("phone") == 2


class TestSimulationGenerator:
    """Test cases for SimulationGenerator"""

    @pytest.fixture
    def generator(self, mock_speech, mock_llm, tmp_path):
        generator = SimulationGenerator(speech=mock_speech, output_dir=str(tmp_path / "simulations"))
        generator.simulation_llm = mock_llm
        generator.analysis_llm = mock_llm
        generator.chat_llm = mock_llm
        return generator

    @patch('phisherman.simulate.simulation_generator.LLM')
    def test_setup_models(self, mock_llm_class, mock_speech, mock_llm):
        mock_llm_class.for_task.return_value.get_llm.return_value = mock_llm
        generator = SimulationGenerator(speech=mock_speech)

        generator.setup_models()

        tasks = [call.args[0] for call in mock_llm_class.for_task.call_args_list]
        assert tasks == ["simulation", "analysis", "chat"]
        assert generator.analysis_llm is mock_llm

    @patch('phisherman.simulate.simulation_generator.LLM')
    def test_setup_models_wraps_errors(self, mock_llm_class, mock_speech):
        mock_llm_class.for_task.return_value.get_llm.side_effect = RuntimeError("bad parameter")

        with pytest.raises(ModelInitializationError):
            SimulationGenerator(speech=mock_speech).setup_models()

    def test_setup_models_missing_key(self, monkeypatch, mock_speech):
        monkeypatch.delenv("GEMINI_API_KEY")

        with pytest.raises(MissingAPIKeyError):
            SimulationGenerator(speech=mock_speech).setup_models()

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_generate_phishing_email(self, mock_api_call, generator, sample_email, mock_llm):
        mock_api_call.return_value = sample_email

        email = asyncio.run(generator.generate_phishing_email(3))

        assert email == sample_email
        args, kwargs = mock_api_call.call_args
        assert args[0] is mock_llm
        assert "Difficulty Level: 3" in args[2]
        assert kwargs["operation"] == "phishing_email"

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_invalid_difficulty_skips_model(self, mock_api_call, generator):
        with pytest.raises(InvalidDifficultyError):
            asyncio.run(generator.generate_phishing_email(0))
        mock_api_call.assert_not_called()

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_generate_phone_simulation(self, mock_api_call, generator, sample_phone_script, mock_speech, sample_pcm):
        mock_api_call.return_value = sample_phone_script

        simulation = asyncio.run(generator.generate_phone_simulation(2))

        assert simulation.script == sample_phone_script
        assert simulation.audio == sample_pcm
        mock_speech.synthesize.assert_awaited_once_with(sample_phone_script.attacker_script)

    def test_generate_deepfake_challenge(self, generator, mock_speech, sample_pcm):
        challenge = asyncio.run(generator.generate_deepfake_challenge())

        assert challenge.text == DEEPFAKE_SCRIPT
        assert challenge.solution == DeepfakeVerdict.SYNTHETIC
        assert challenge.audio == sample_pcm
        mock_speech.synthesize.assert_awaited_once_with(DEEPFAKE_SCRIPT)

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_analyze_response(self, mock_api_call, generator, sample_analysis):
        mock_api_call.return_value = sample_analysis

        analysis = asyncio.run(generator.analyze_response('{"subject": "Invoice"}', ["Urgency"]))

        assert analysis.score == 85
        assert "User Identified Flags: Urgency" in mock_api_call.call_args.args[2]

    def test_analyze_empty_content(self, generator):
        with pytest.raises(InvalidInputError):
            asyncio.run(generator.analyze_response("  ", ["Urgency"]))

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_security_chat(self, mock_api_call, generator):
        mock_api_call.return_value = "Hover over links before clicking."

        reply = asyncio.run(generator.security_chat("  How do I check a link?  "))

        assert reply == "Hover over links before clicking."
        assert mock_api_call.call_args.args[2] == "How do I check a link?"

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_security_chat_empty_reply(self, mock_api_call, generator):
        mock_api_call.return_value = ""
        assert asyncio.run(generator.security_chat("Hi")) == "No response"

    def test_security_chat_empty_message(self, generator):
        with pytest.raises(InvalidInputError):
            asyncio.run(generator.security_chat(""))

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_generate_single_item_failure(self, mock_api_call, generator):
        mock_api_call.side_effect = RuntimeError("model overloaded")

        result = asyncio.run(generator.generate_single_item("email", 2))

        assert result["success"] is False
        assert "model overloaded" in result["error"]
        assert result["difficulty"] == 2

    def test_generate_single_item_unknown_kind(self, generator):
        result = asyncio.run(generator.generate_single_item("sms", 1))

        assert result["success"] is False
        assert "Unknown simulation kind" in result["error"]

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_generate_batch(self, mock_api_call, generator, sample_email):
        mock_api_call.return_value = sample_email

        results = asyncio.run(generator.generate_batch_async("email", 4, difficulty=5,
                                                             concurrent_requests=2, show_progress=False))

        assert [r["index"] for r in results] == [0, 1, 2, 3]
        assert all(r["success"] for r in results)
        assert all(r["difficulty"] == 5 for r in results)
        assert mock_api_call.call_count == 4

    @pytest.mark.parametrize("kind,count,difficulty", [("sms", 1, None), ("email", 0, None), ("email", 1, 7)])
    def test_generate_batch_invalid_arguments(self, generator, kind, count, difficulty):
        with pytest.raises(InvalidInputError):
            asyncio.run(generator.generate_batch_async(kind, count, difficulty=difficulty, show_progress=False))

    def test_save_results(self, generator, sample_phone_script, sample_pcm):
        results = [
            {'index': 0, 'kind': 'phone', 'difficulty': 2, 'success': True,
             'response': PhoneSimulation(script=sample_phone_script, audio=sample_pcm)},
            {'index': 1, 'kind': 'phone', 'difficulty': 2, 'success': False, 'error': 'quota exceeded'},
        ]

        paths = generator.save_results(results)

        df = pd.read_csv(paths['detailed_results'])
        assert len(df) == 2
        assert df.loc[0, 'scenario'] == sample_phone_script.scenario
        assert df.loc[1, 'error'] == 'quota exceeded'

        assert len(paths['audio_files']) == 1
        with open(paths['audio_files'][0], 'rb') as f:
            wav = f.read()
        assert wav[:4] == b'RIFF'
        assert wav[44:] == sample_pcm

        with open(paths['summary_json']) as f:
            summary = json.load(f)
        assert summary['kind'] == 'phone'
        assert summary['successful'] == 1
        assert summary['failed'] == 1

    @patch('phisherman.simulate.simulation_generator.make_api_call')
    def test_phone_script_without_lines(self, mock_api_call, generator, sample_phone_script, mock_speech):
        mock_api_call.return_value = sample_phone_script.model_copy(update={"attacker_script": "  "})

        with pytest.raises(SimulationError):
            asyncio.run(generator.generate_phone_simulation(2))
        mock_speech.synthesize.assert_not_called()
