"""
Test cases for the REST API
"""

import base64
import struct
import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from phisherman.server import ServerConfig, create_app, status_for_error
from phisherman.simulate.simulation_prompts import DEEPFAKE_SCRIPT
from phisherman.exceptions import (
    APICallError,
    MissingAPIKeyError,
    AudioFormatError,
    AudioGenerationError,
    RecordNotFoundError,
    DatabaseOperationError,
    InvalidDifficultyError,
)


@pytest.fixture
def server_config(tmp_path):
    return ServerConfig(static_dir=str(tmp_path / "dist"), seed=True)


@pytest.fixture
def client(server_config, empty_data_service, fake_generator):
    app = create_app(config=server_config, data_service=empty_data_service, generator=fake_generator)
    with TestClient(app) as test_client:
        yield test_client


def create_email_simulation(client, difficulty=3):
    response = client.post("/api/simulations/email", json={"difficulty": difficulty})
    assert response.status_code == 200
    return response.json()["simulation_id"]


class TestErrorMapping:
    """Test cases for mapping errors to HTTP status codes"""

    @pytest.mark.parametrize("error,status", [
        (InvalidDifficultyError("bad"), 400),
        (AudioFormatError("bad"), 400),
        (RecordNotFoundError("missing"), 404),
        (MissingAPIKeyError("no key"), 503),
        (APICallError("upstream"), 502),
        (AudioGenerationError("silent"), 502),
        (DatabaseOperationError("locked"), 500),
        (RuntimeError("other"), 500),
    ])
    def test_status_for_error(self, error, status):
        assert status_for_error(error) == status


class TestAdminEndpoints:
    """Test cases for the admin/SOC dashboard endpoints"""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_startup_seeds_database(self, client):
        departments = client.get("/api/admin/departments").json()

        assert [d["name"] for d in departments] == ['Engineering', 'Finance', 'Marketing', 'HR', 'Sales']
        assert departments[0]["employee_count"] == 1

    def test_startup_without_seed(self, tmp_path, empty_data_service, fake_generator):
        config = ServerConfig(static_dir=str(tmp_path / "dist"), seed=False)
        app = create_app(config=config, data_service=empty_data_service, generator=fake_generator)

        with TestClient(app) as client:
            assert client.get("/api/admin/departments").json() == []

    def test_overview(self, client):
        client.post("/api/results", json={"is_correct": True})
        client.post("/api/results", json={"is_correct": False})

        assert client.get("/api/admin/overview").json() == {
            "total_sims": 2,
            "total_reports": 1,
            "total_compromises": 1
        }

    def test_launch_campaign(self, client):
        response = client.post("/api/admin/campaigns",
                               json={"name": "Q3 Finance Phish", "target_dept_id": 2, "sim_type": "email"})

        assert response.status_code == 200
        campaign_id = response.json()["id"]

        campaigns = client.get("/api/admin/campaigns").json()
        assert campaigns[0]["id"] == campaign_id
        assert campaigns[0]["status"] == "active"
        assert campaigns[0]["dept_name"] == "Finance"

    def test_launch_campaign_invalid_type(self, client):
        response = client.post("/api/admin/campaigns",
                               json={"name": "Pigeons", "target_dept_id": 1, "sim_type": "carrier-pigeon"})

        assert response.status_code == 400
        assert "Unknown simulation type" in response.json()["error"]

    def test_launch_campaign_unknown_department(self, client):
        response = client.post("/api/admin/campaigns",
                               json={"name": "Ghost", "target_dept_id": 99, "sim_type": "email"})
        assert response.status_code == 404

    def test_launch_campaign_missing_fields(self, client):
        response = client.post("/api/admin/campaigns", json={"name": "Incomplete"})

        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"

    def test_change_campaign_status(self, client):
        campaign_id = client.post("/api/admin/campaigns",
                                  json={"name": "Drill", "target_dept_id": 1, "sim_type": "phone"}).json()["id"]

        response = client.patch(f"/api/admin/campaigns/{campaign_id}", json={"status": "completed"})

        assert response.json() == {"id": campaign_id, "status": "completed"}
        assert client.get("/api/admin/campaigns").json()[0]["status"] == "completed"

    def test_change_status_unknown_campaign(self, client):
        response = client.patch("/api/admin/campaigns/77", json={"status": "completed"})
        assert response.status_code == 404


class TestEmployeeEndpoints:
    """Test cases for the employee stats, reports and results endpoints"""

    def test_stats_default_employee(self, client):
        client.post("/api/results", json={"is_correct": True, "response_time": 4000})
        client.post("/api/results", json={"is_correct": False, "response_time": 2000, "employee_id": 2})

        assert client.get("/api/stats").json() == {
            "total_simulations": 1,
            "correct_count": 1,
            "avg_response_time": 4000
        }
        assert client.get("/api/stats", params={"employee_id": 2}).json()["correct_count"] == 0

    def test_record_result(self, client):
        response = client.post("/api/results", json={"is_correct": False, "feedback": "Clicked the link"})

        assert response.status_code == 200
        assert response.json()["security_score"] == 95

        reports = client.get("/api/reports").json()
        assert reports[0]["id"] == response.json()["id"]
        assert reports[0]["feedback"] == "Clicked the link"
        assert reports[0]["sim_type"] == "unknown"

    def test_record_result_unknown_employee(self, client):
        response = client.post("/api/results", json={"is_correct": True, "employee_id": 50})

        assert response.status_code == 404
        assert "Employee 50" in response.json()["error"]

    def test_record_result_negative_time(self, client):
        response = client.post("/api/results", json={"is_correct": True, "response_time": -10})
        assert response.status_code == 422


class TestSimulationEndpoints:
    """Test cases for AI-backed simulation endpoints"""

    def test_email_simulation(self, client, fake_generator, sample_email, empty_data_service):
        response = client.post("/api/simulations/email", json={"difficulty": 4})

        assert response.status_code == 200
        body = response.json()
        assert body["difficulty"] == 4
        assert body["email"]["subject"] == sample_email.subject
        fake_generator.generate_phishing_email.assert_awaited_once_with(4)

        stored = empty_data_service.get_simulation(body["simulation_id"])
        assert stored.type == "email"
        assert stored.content["red_flags"] == sample_email.red_flags

    def test_email_default_difficulty(self, client, fake_generator):
        body = client.post("/api/simulations/email").json()

        assert 1 <= body["difficulty"] <= 3
        fake_generator.generate_phishing_email.assert_awaited_once_with(body["difficulty"])

    def test_email_invalid_difficulty(self, client, fake_generator):
        response = client.post("/api/simulations/email", json={"difficulty": 9})

        assert response.status_code == 400
        fake_generator.generate_phishing_email.assert_not_called()

    def test_phone_simulation(self, client, sample_phone_script, sample_pcm):
        body = client.post("/api/simulations/phone").json()

        assert body["difficulty"] == 2
        assert body["script"]["attacker_script"] == sample_phone_script.attacker_script
        wav = base64.b64decode(body["audio_wav_base64"])
        assert wav[:4] == b"RIFF"
        assert wav[44:] == sample_pcm

    def test_deepfake_hides_solution(self, client, empty_data_service):
        body = client.post("/api/simulations/deepfake").json()

        assert body["text"] == DEEPFAKE_SCRIPT
        assert "solution" not in body
        assert base64.b64decode(body["audio_wav_base64"])[8:12] == b"WAVE"
        assert empty_data_service.get_simulation(body["simulation_id"]).content["solution"] == "synthetic"

    def test_analysis_records_result(self, client, fake_generator):
        simulation_id = create_email_simulation(client)

        response = client.post(f"/api/simulations/{simulation_id}/analysis",
                               json={"selected_flags": ["Urgency"], "response_time": 3000})

        assert response.status_code == 200
        body = response.json()
        assert body["is_correct"] is True
        assert body["analysis"]["score"] == 85
        assert body["result"]["simulation_id"] == simulation_id
        assert body["result"]["response_time"] == 3000
        assert body["result"]["security_score"] == 100

        content, flags = fake_generator.analyze_response.call_args.args
        assert '"subject"' in content
        assert flags == ["Urgency"]

    def test_analysis_low_score_is_compromise(self, client, fake_generator, sample_analysis):
        fake_generator.analyze_response.return_value = sample_analysis.model_copy(update={"score": 70})
        simulation_id = create_email_simulation(client)

        body = client.post(f"/api/simulations/{simulation_id}/analysis", json={}).json()

        assert body["is_correct"] is False
        assert body["result"]["security_score"] == 95
        assert client.get("/api/admin/overview").json()["total_compromises"] == 1

    def test_analysis_of_deepfake_rejected(self, client):
        simulation_id = client.post("/api/simulations/deepfake").json()["simulation_id"]

        response = client.post(f"/api/simulations/{simulation_id}/analysis", json={"selected_flags": []})
        assert response.status_code == 400

    def test_analysis_unknown_simulation(self, client):
        response = client.post("/api/simulations/321/analysis", json={"selected_flags": []})
        assert response.status_code == 404

    def test_analysis_model_failure(self, client, fake_generator):
        fake_generator.analyze_response.side_effect = APICallError("LLM call failed: quota")
        simulation_id = create_email_simulation(client)

        response = client.post(f"/api/simulations/{simulation_id}/analysis", json={"selected_flags": []})

        assert response.status_code == 502
        assert client.get("/api/admin/overview").json()["total_sims"] == 0

    @pytest.mark.parametrize("guess,is_correct,score", [("synthetic", True, 100), ("authentic", False, 95)])
    def test_deepfake_guess(self, client, guess, is_correct, score):
        simulation_id = client.post("/api/simulations/deepfake").json()["simulation_id"]

        body = client.post(f"/api/simulations/{simulation_id}/guess", json={"guess": guess}).json()

        assert body["is_correct"] is is_correct
        assert body["score"] == (100 if is_correct else 0)
        assert body["result"]["security_score"] == score

    def test_invalid_guess(self, client):
        simulation_id = client.post("/api/simulations/deepfake").json()["simulation_id"]

        response = client.post(f"/api/simulations/{simulation_id}/guess", json={"guess": "maybe"})
        assert response.status_code == 400

    def test_guess_on_email_rejected(self, client):
        simulation_id = create_email_simulation(client)

        response = client.post(f"/api/simulations/{simulation_id}/guess", json={"guess": "synthetic"})
        assert response.status_code == 400

    def test_speech_failure(self, client, fake_generator):
        fake_generator.generate_deepfake_challenge.side_effect = AudioGenerationError("No audio data")

        response = client.post("/api/simulations/deepfake")

        assert response.status_code == 502
        assert response.json() == {"error": "No audio data"}

    def test_database_work_runs_in_threadpool(self, client, empty_data_service):
        run_sync = AsyncMock(side_effect=lambda func, *args, **kwargs: func(*args, **kwargs))

        with patch("phisherman.server.routes.run_in_threadpool", run_sync):
            simulation_id = create_email_simulation(client)
            client.post(f"/api/simulations/{simulation_id}/analysis", json={"selected_flags": ["Urgency"]})

        functions = [call.args[0] for call in run_sync.await_args_list]
        assert functions == [
            empty_data_service.save_simulation,
            empty_data_service.get_simulation,
            empty_data_service.record_result,
        ]


class TestAssistantAndAudio:
    """Test cases for chat and WAV conversion endpoints"""

    def test_chat(self, client, fake_generator):
        response = client.post("/api/chat", json={"message": "Is this link safe?"})

        assert response.json() == {"reply": "Never share one-time codes over the phone."}
        fake_generator.security_chat.assert_awaited_once_with("Is this link safe?")

    def test_chat_without_api_key(self, client, fake_generator):
        fake_generator.security_chat.side_effect = MissingAPIKeyError("GEMINI_API_KEY environment variable is not set")

        response = client.post("/api/chat", json={"message": "Hi"})

        assert response.status_code == 503
        assert "GEMINI_API_KEY" in response.json()["error"]

    def test_audio_wav(self, client, sample_pcm):
        payload = base64.b64encode(sample_pcm).decode("ascii")

        response = client.post("/api/audio/wav", json={"audio_base64": payload})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/wav"
        assert response.content[:4] == b"RIFF"
        assert response.content[44:] == sample_pcm

    def test_audio_wav_invalid_payload(self, client):
        response = client.post("/api/audio/wav", json={"audio_base64": "%%%"})
        assert response.status_code == 400

    @pytest.mark.parametrize("sample_rate", [0, -8000, 3_000_000_000])
    def test_audio_wav_invalid_sample_rate(self, client, sample_rate):
        response = client.post("/api/audio/wav", json={"audio_base64": "AAA=", "sample_rate": sample_rate})

        assert response.status_code == 400
        assert "Invalid sample rate" in response.json()["error"]

    def test_audio_wav_custom_sample_rate(self, client):
        response = client.post("/api/audio/wav", json={"audio_base64": "AAA=", "sample_rate": 16000})

        assert response.status_code == 200
        assert struct.unpack_from("<I", response.content, 24)[0] == 16000


class TestStaticApp:
    """Test cases for serving the built web app"""

    @pytest.fixture
    def spa_client(self, tmp_path, empty_data_service, fake_generator):
        dist = tmp_path / "dist"
        (dist / "assets").mkdir(parents=True)
        (dist / "index.html").write_text("<html>phisherman</html>")
        (dist / "assets" / "app.js").write_text("console.log('ok')")
        (tmp_path / "secret.txt").write_text("do not serve")

        config = ServerConfig(static_dir=str(dist), seed=True)
        app = create_app(config=config, data_service=empty_data_service, generator=fake_generator)
        with TestClient(app) as test_client:
            yield test_client

    def test_serves_files(self, spa_client):
        assert spa_client.get("/assets/app.js").text == "console.log('ok')"

    def test_index_fallback(self, spa_client):
        assert spa_client.get("/").text == "<html>phisherman</html>"
        assert spa_client.get("/admin/campaigns").text == "<html>phisherman</html>"

    def test_no_escape_from_bundle(self, spa_client):
        assert "do not serve" not in spa_client.get("/..%2Fsecret.txt").text

    def test_api_routes_win(self, spa_client):
        assert spa_client.get("/api/health").json() == {"status": "ok"}

    def test_unknown_api_path(self, spa_client):
        response = spa_client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_not_served_without_bundle(self, client):
        assert client.get("/").status_code == 404
