"""
Tests for the uploaded problem and solution endpoints.

Problems and solutions are posted as text files, validated by identifier
and read back as interpolated frames or CSV.
"""

import io
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Add the backend directory to sys.path so we can import the app
sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.api import routes_problems  # type: ignore
from app.main import app  # type: ignore
from app.services.asv_model import ASVConfig  # type: ignore
from app.services.problem_store import ProblemStore  # type: ignore

PROBLEM_TEXT = b"""3
0.4 0.4 0.46 0.4 0.43 0.451961524
0.402 0.4 0.462 0.4 0.432 0.451961524
1
0.7 0.7 0.8 0.7 0.8 0.8 0.7 0.8
"""

SOLUTION_TEXT = b"""5 0.006
0.4 0.4 0.46 0.4 0.43 0.451961524
0.4005 0.4 0.4605 0.4 0.4305 0.451961524
0.401 0.4 0.461 0.4 0.431 0.451961524
0.4015 0.4 0.4615 0.4 0.4315 0.451961524
0.402 0.4 0.462 0.4 0.432 0.451961524
"""


@pytest.fixture
def client(monkeypatch) -> TestClient:
    monkeypatch.setattr(routes_problems, "problem_store", ProblemStore(capacity=4))
    return TestClient(app)


def _upload(client: TestClient, url: str, content: bytes, name: str):
    return client.post(url, files={"file": (name, io.BytesIO(content), "text/plain")})


@pytest.fixture
def ids(client: TestClient):
    problem = _upload(client, "/api/problems", PROBLEM_TEXT, "3ASV.txt")
    assert problem.status_code == 201
    problem_id = problem.json()["problemId"]
    solution = _upload(client, f"/api/problems/{problem_id}/solutions", SOLUTION_TEXT, "out.txt")
    assert solution.status_code == 201
    return problem_id, solution.json()["solutionId"]


def test_upload_problem_returns_metadata(client: TestClient) -> None:
    data = _upload(client, "/api/problems", PROBLEM_TEXT, "3ASV.txt").json()
    assert data["filename"] == "3ASV.txt"
    assert data["asvCount"] == 3
    assert data["obstacleCount"] == 1
    problem = client.get(f"/api/problems/{data['problemId']}").json()
    assert problem["asvCount"] == 3
    assert problem["obstacles"][0]["width"] == pytest.approx(0.1)


def test_upload_solution_returns_metadata(client: TestClient, ids) -> None:
    problem_id, _ = ids
    data = _upload(client, f"/api/problems/{problem_id}/solutions", SOLUTION_TEXT, "s.txt").json()
    assert data["problemId"] == problem_id
    assert data["pathLength"] == 5
    assert data["declaredCost"] == pytest.approx(0.006)


def test_validate_stored_solution(client: TestClient, ids) -> None:
    problem_id, solution_id = ids
    data = client.post(
        f"/api/problems/{problem_id}/validate", json={"solutionId": solution_id}
    ).json()
    assert data["valid"] is True
    assert len(data["results"]) == 9

    direct = client.post(f"/api/problems/{problem_id}/validate", json={}).json()
    assert len(direct["results"]) == 5


def test_frames_interpolate_and_include_last_state(client: TestClient, ids) -> None:
    problem_id, solution_id = ids
    data = client.get(
        f"/api/problems/{problem_id}/solutions/{solution_id}/frames", params={"resolution": 2}
    ).json()
    assert data["resolution"] == 2
    # Four steps at two frames each, plus the final state.
    assert len(data["frames"]) == 9
    assert data["frames"][1]["positions"][0]["x"] == pytest.approx(0.40025)
    assert data["frames"][-1]["positions"][0]["x"] == pytest.approx(0.402)
    assert data["extent"]["x"] == pytest.approx(0.4)
    assert data["extent"]["x"] + data["extent"]["width"] == pytest.approx(0.8)


def test_frames_are_downsampled(client: TestClient, ids, monkeypatch) -> None:
    problem_id, solution_id = ids
    monkeypatch.setattr(routes_problems, "MAX_FRAMES", 10)
    data = client.get(
        f"/api/problems/{problem_id}/solutions/{solution_id}/frames", params={"resolution": 100}
    ).json()
    assert len(data["frames"]) <= 11
    # 401 frames at a stride of 41: the second sample is frame 41 of step 0.
    assert data["frames"][1]["positions"][0]["x"] == pytest.approx(0.4 + 0.0005 * 0.41)
    assert data["frames"][-1]["positions"][0]["x"] == pytest.approx(0.402)


def test_frames_only_interpolate_sampled_states(client: TestClient, ids, monkeypatch) -> None:
    """A high resolution does not build every intermediate frame."""
    problem_id, solution_id = ids
    monkeypatch.setattr(routes_problems, "MAX_FRAMES", 10)
    calls = []
    original = ASVConfig.interpolate

    def counting(self, other, t):
        calls.append(t)
        return original(self, other, t)

    monkeypatch.setattr(ASVConfig, "interpolate", counting)
    response = client.get(
        f"/api/problems/{problem_id}/solutions/{solution_id}/frames", params={"resolution": 1000}
    )
    assert response.status_code == 200
    assert len(response.json()["frames"]) <= 11
    assert len(calls) <= 10


def test_export_csv(client: TestClient, ids) -> None:
    problem_id, solution_id = ids
    response = client.get(f"/api/problems/{problem_id}/solutions/{solution_id}/export")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0] == "index,x0,y0,x1,y1,x2,y2"
    assert lines[1] == "0,0.400000,0.400000,0.460000,0.400000,0.430000,0.451962"
    assert len(lines) == 6


def test_missing_resources_return_404(client: TestClient, ids) -> None:
    problem_id, solution_id = ids
    assert client.get("/api/problems/nope").status_code == 404
    assert client.post("/api/problems/nope/validate", json={}).status_code == 404
    assert (
        client.post(f"/api/problems/{problem_id}/validate", json={"solutionId": "nope"}).status_code
        == 404
    )
    assert client.get(f"/api/problems/nope/solutions/{solution_id}/export").status_code == 404
    assert _upload(client, "/api/problems/nope/solutions", SOLUTION_TEXT, "s.txt").status_code == 404


def test_invalid_files_return_400(client: TestClient, ids) -> None:
    problem_id, _ = ids
    bad = _upload(client, "/api/problems", b"3\n0.4 0.4\n", "bad.txt")
    assert bad.status_code == 400
    assert "Line 2" in bad.json()["detail"]
    binary = _upload(client, "/api/problems", b"\xff\xfe\x00", "bad.bin")
    assert binary.status_code == 400
    short = _upload(client, f"/api/problems/{problem_id}/solutions", b"2 0.0\n", "s.txt")
    assert short.status_code == 400
