"""Trial API tests: submission, lifecycle, ownership, auth, key-value store.

The external model is never called: the text-generation client dependency is
overridden to ``None`` (heuristic) or to a fake client per test.
"""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from trial_feasibility.database import Base, get_db
from trial_feasibility.main import app
from trial_feasibility.services.auth_utils import JWT_ALGORITHM, get_jwt_secret
from trial_feasibility.services.kv_store import KVStore
from trial_feasibility.services.openai_client import get_text_generation_client

# ---------------------------------------------------------------------------
# Test database setup
# ---------------------------------------------------------------------------
TEST_DATABASE_URL = "sqlite:///./test_trials.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    """Create tables before each test, drop after."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_text_generation_client] = lambda: None
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_text_generation_client, None)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _auth(user_id="user-a"):
    token = jwt.encode(
        {
            "sub": user_id,
            "email": f"{user_id}@hospital.test",
            "exp": datetime.utcnow() + timedelta(hours=1),
        },
        get_jwt_secret(),
        algorithm=JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


PROPOSAL = {
    "legalName": "Dr. Jordan Reyes",
    "placeOfEmployment": "General Hospital",
    "degree": "MD, PhD",
    "studyTitle": "Early mobilization after hip fracture surgery",
    "researchQuestion": "Does mobilization within 24 hours reduce 90-day mortality in elderly patients?",
    "backgroundRationale": "Prolonged bed rest after hip fracture surgery is associated with " * 3,
    "studyPhase": "Phase 2",
    "studySize": "200",
}


def _submit(data=None, user_id="user-a"):
    res = client.post("/trials", json=PROPOSAL if data is None else data, headers=_auth(user_id))
    assert res.status_code == 201, f"Trial submission failed: {res.text}"
    return res.json()


class _StaticClient:
    def __init__(self, result):
        self.result = result

    async def complete_json(self, *, messages, max_completion_tokens=0):
        return self.result


# ===================================================================== #
#  Submission                                                             #
# ===================================================================== #

class TestSubmitTrial:
    def test_submit_returns_id_and_analysis(self):
        data = _submit()

        assert data["trialId"].startswith("trial_user-a_")
        analysis = data["analysis"]
        assert analysis["medicalFeasibility"]["score"] == 100
        assert analysis["financialFeasibility"]["score"] == 90
        assert analysis["administrativeFeasibility"]["score"] == 90
        assert analysis["outcomePredictor"]["successProbability"] == 93
        assert analysis["overallRecommendation"]["verdict"] == "proceed"
        assert analysis["financialFeasibility"]["estimatedCost"] == "$1,200,000 - $2,400,000"

    def test_stored_trial_is_completed_with_passthrough_fields(self):
        trial_id = _submit()["trialId"]

        res = client.get(f"/trials/{trial_id}", headers=_auth())
        assert res.status_code == 200
        trial = res.json()["trial"]
        assert trial["trialId"] == trial_id
        assert trial["userId"] == "user-a"
        assert trial["status"] == "completed"
        assert trial["legalName"] == "Dr. Jordan Reyes"
        assert trial["degree"] == "MD, PhD"
        assert trial["analysis"]["overallRecommendation"]["verdict"] == "proceed"
        assert datetime.fromisoformat(trial["createdAt"])

    def test_empty_proposal_is_scored_with_defaults(self):
        data = _submit({})
        assert data["analysis"]["outcomePredictor"]["successProbability"] == 83

    def test_malformed_size_is_not_rejected(self):
        data = _submit({"studySize": "about forty", "studyPhase": "Phase 4"})
        # size defaults to 100: 55+5+10+5, 60+20+5, 60+20+0
        assert data["analysis"]["medicalFeasibility"]["score"] == 75
        assert data["analysis"]["financialFeasibility"]["score"] == 85
        assert data["analysis"]["administrativeFeasibility"]["score"] == 80

    def test_client_fields_cannot_override_server_fields(self):
        trial_id = _submit({**PROPOSAL, "userId": "someone-else", "status": "hacked"})["trialId"]
        trial = client.get(f"/trials/{trial_id}", headers=_auth()).json()["trial"]
        assert trial["userId"] == "user-a"
        assert trial["status"] == "completed"

    def test_model_report_is_returned_when_configured(self):
        model_report = _submit()["analysis"]
        model_report["overallRecommendation"]["verdict"] = "abandon"
        model_report["outcomePredictor"]["successProbability"] = 20

        app.dependency_overrides[get_text_generation_client] = lambda: _StaticClient(model_report)
        data = _submit()

        assert data["analysis"]["overallRecommendation"]["verdict"] == "abandon"
        assert data["analysis"]["outcomePredictor"]["successProbability"] == 20

    def test_unusable_model_reply_falls_back(self):
        app.dependency_overrides[get_text_generation_client] = lambda: _StaticClient({"nope": 1})
        data = _submit()
        assert data["analysis"]["outcomePredictor"]["successProbability"] == 93

    def test_storage_failure_returns_500(self):
        with patch.object(KVStore, "set", side_effect=RuntimeError("disk full")):
            res = client.post("/trials", json=PROPOSAL, headers=_auth())
        assert res.status_code == 500
        assert "disk full" in res.json()["detail"]

    def test_analysis_written_after_analyzing_record(self):
        writes = []
        original_set = KVStore.set

        def spy(self, key, value):
            writes.append(value["status"])
            return original_set(self, key, value)

        with patch.object(KVStore, "set", spy):
            _submit()

        assert writes == ["analyzing", "completed"]


# ===================================================================== #
#  Retrieval and deletion                                                 #
# ===================================================================== #

class TestTrialRetrieval:
    def test_list_only_own_trials(self):
        first = _submit()["trialId"]
        second = _submit({**PROPOSAL, "studyTitle": "Second study"})["trialId"]
        _submit(user_id="user-b")

        res = client.get("/trials", headers=_auth())
        assert res.status_code == 200
        ids = {t["trialId"] for t in res.json()["trials"]}
        assert ids == {first, second}

    def test_list_empty(self):
        res = client.get("/trials", headers=_auth())
        assert res.status_code == 200
        assert res.json() == {"trials": []}

    def test_get_missing_trial(self):
        res = client.get("/trials/trial_user-a_0", headers=_auth())
        assert res.status_code == 404

    def test_get_other_users_trial_is_not_found(self):
        trial_id = _submit(user_id="user-b")["trialId"]
        res = client.get(f"/trials/{trial_id}", headers=_auth("user-a"))
        assert res.status_code == 404

    def test_debug_listing(self):
        trial_id = _submit()["trialId"]
        res = client.get("/trials/debug", headers=_auth())
        assert res.status_code == 200
        data = res.json()
        assert data["userId"] == "user-a"
        assert data["trialCount"] == 1
        assert data["trials"][0]["trialId"] == trial_id
        assert data["trials"][0]["studyTitle"] == PROPOSAL["studyTitle"]
        assert data["trials"][0]["status"] == "completed"


class TestTrialDeletion:
    def test_delete_own_trial(self):
        trial_id = _submit()["trialId"]
        res = client.delete(f"/trials/{trial_id}", headers=_auth())
        assert res.status_code == 200
        assert res.json() == {"success": True, "message": "Trial deleted successfully"}
        assert client.get(f"/trials/{trial_id}", headers=_auth()).status_code == 404

    def test_delete_missing_trial(self):
        res = client.delete("/trials/trial_user-a_0", headers=_auth())
        assert res.status_code == 404

    def test_delete_other_users_trial_is_forbidden(self):
        trial_id = _submit(user_id="user-b")["trialId"]
        res = client.delete(f"/trials/{trial_id}", headers=_auth("user-a"))
        assert res.status_code == 403
        assert client.get(f"/trials/{trial_id}", headers=_auth("user-b")).status_code == 200


# ===================================================================== #
#  Auth                                                                   #
# ===================================================================== #

class TestTrialAuth:
    def test_missing_token(self):
        assert client.get("/trials").status_code == 401
        assert client.post("/trials", json=PROPOSAL).status_code == 401

    def test_invalid_token(self):
        res = client.get("/trials", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "user-a"}, "some-other-secret", algorithm=JWT_ALGORITHM)
        res = client.get("/trials", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_expired_token(self):
        token = jwt.encode(
            {"sub": "user-a", "exp": datetime.utcnow() - timedelta(minutes=5)},
            get_jwt_secret(),
            algorithm=JWT_ALGORITHM,
        )
        res = client.get("/trials", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401

    def test_token_without_subject(self):
        token = jwt.encode({"email": "x@y.z"}, get_jwt_secret(), algorithm=JWT_ALGORITHM)
        res = client.get("/trials", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401


# ===================================================================== #
#  Key-value store                                                        #
# ===================================================================== #

@pytest.fixture
def store():
    db = TestingSessionLocal()
    try:
        yield KVStore(db)
    finally:
        db.close()


class TestKVStore:
    def test_get_set_overwrite(self, store):
        assert store.get("k") is None
        store.set("k", {"v": 1})
        store.set("k", {"v": 2})
        assert store.get("k") == {"v": 2}

    def test_prefix_is_literal(self, store):
        store.set("trial_u1_1", {"n": 1})
        store.set("trial_u1_2", {"n": 2})
        store.set("trialXu1X3", {"n": 3})
        store.set("trial_u2_1", {"n": 4})

        assert [v["n"] for v in store.get_by_prefix("trial_u1_")] == [1, 2]

    def test_delete(self, store):
        store.set("k", {"v": 1})
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None
