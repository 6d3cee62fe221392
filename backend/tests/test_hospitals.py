"""Hospital matching and match-invitation tests."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from trial_feasibility.database import Base, get_db
from trial_feasibility.main import app
from trial_feasibility.services.auth_utils import JWT_ALGORITHM, get_jwt_secret
from trial_feasibility.services.hospital_matching import generate_hospital_matches

TEST_DATABASE_URL = "sqlite:///./test_hospitals.db"
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
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db, None)


def _auth(user_id="user-a"):
    token = jwt.encode(
        {"sub": user_id, "exp": datetime.utcnow() + timedelta(hours=1)},
        get_jwt_secret(),
        algorithm=JWT_ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}


# ===================================================================== #
#  Matching                                                               #
# ===================================================================== #

class TestHospitalMatching:
    def test_all_sites_without_filter(self):
        matches = generate_hospital_matches()
        assert len(matches) == 6
        scores = [m.match_score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert matches[0].name == "Mayo Clinic"

    def test_filter_is_case_insensitive_substring(self):
        names = {m.id for m in generate_hospital_matches("cardio")}
        assert names == {"hosp_001", "hosp_002", "hosp_005"}

    def test_unknown_area_returns_nothing(self):
        assert generate_hospital_matches("Dermatology") == []

    def test_indication_in_relevant_conditions(self):
        match = generate_hospital_matches("Oncology", "breast cancer")[0]
        assert "breast cancer" in match.patient_population.relevant_conditions

    def test_route_returns_camel_case(self):
        res = client.get(
            "/hospitals",
            params={"therapeuticArea": "Neurology", "indication": "migraine"},
            headers=_auth(),
        )
        assert res.status_code == 200
        hospitals = res.json()["hospitals"]
        assert [h["id"] for h in hospitals] == ["hosp_004", "hosp_001", "hosp_003", "hosp_002"]
        first = hospitals[0]
        assert first["matchScore"] == 96
        assert "migraine" in first["patientPopulation"]["relevantConditions"]
        assert "coordinators" in first["staffCapacity"]

    def test_route_requires_auth(self):
        assert client.get("/hospitals").status_code == 401


# ===================================================================== #
#  Invitations                                                            #
# ===================================================================== #

class TestInvitations:
    def test_send_and_list(self):
        res = client.post(
            "/match-invitation",
            json={"hospitalId": "hosp_001", "trialId": "trial_user-a_1", "trialTitle": "Study A"},
            headers=_auth(),
        )
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["invitationId"].startswith("invitation_user-a_hosp_001_")

        client.post(
            "/match-invitation",
            json={"hospitalId": "hosp_002", "trialId": "trial_user-b_1"},
            headers=_auth("user-b"),
        )

        listed = client.get("/invitations", headers=_auth()).json()["invitations"]
        assert len(listed) == 1
        assert listed[0]["hospitalId"] == "hosp_001"
        assert listed[0]["trialTitle"] == "Study A"
        assert listed[0]["status"] == "pending"

    def test_blank_ids_rejected(self):
        res = client.post(
            "/match-invitation",
            json={"hospitalId": "  ", "trialId": "trial_user-a_1"},
            headers=_auth(),
        )
        assert res.status_code == 422

    def test_missing_trial_id_rejected(self):
        res = client.post("/match-invitation", json={"hospitalId": "hosp_001"}, headers=_auth())
        assert res.status_code == 422

    def test_requires_auth(self):
        res = client.post("/match-invitation", json={"hospitalId": "hosp_001", "trialId": "t"})
        assert res.status_code == 401
        assert client.get("/invitations").status_code == 401
