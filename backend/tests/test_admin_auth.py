"""Tests for admin endpoints and JWT auth in web mode."""

import csv
import io
import logging
from unittest.mock import patch

import jwt
import pytest
from fastapi.testclient import TestClient

from algorithms.definitions import CV_RISK_ALGORITHM
from api import audit, auth, routes
from main import create_app
from storage.sessions import SessionStore

SECRET = "test-secret-0123456789abcdef0123456789"


def _token(sub: str = "user-1", **claims) -> str:
    return jwt.encode({"sub": sub, **claims}, SECRET, algorithm="HS256")


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def client(sessions):
    with patch.object(routes, "get_session_store", return_value=sessions):
        with TestClient(create_app()) as c:
            yield c


@pytest.fixture
def web_client(sessions):
    """Client with auth switched on."""
    with patch.object(routes, "get_session_store", return_value=sessions), \
         patch.object(auth, "REQUIRE_AUTH", True), \
         patch.object(auth, "JWT_SECRET", SECRET):
        with TestClient(create_app()) as c:
            yield c


class TestCalculatorExport:
    def test_json(self, client):
        resp = client.get("/admin/calculators/das28/export")
        assert resp.status_code == 200
        assert resp.json()["id"] == "das28"

    def test_csv(self, client):
        resp = client.get("/admin/calculators/fib-4/export", params={"format": "csv"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "fib-4-parameters.csv" in resp.headers["content-disposition"]
        rows = list(csv.reader(io.StringIO(resp.text)))
        assert rows[0] == ["id", "name", "type", "unit", "tooltip", "storable"]
        assert rows[1][:4] == ["age", "Age", "number", "years"]
        assert rows[1][5] == "true"
        assert len(rows) == 5

    def test_bad_format(self, client):
        assert client.get("/admin/calculators/fib-4/export", params={"format": "xml"}).status_code == 422

    def test_unknown(self, client):
        assert client.get("/admin/calculators/nope/export").status_code == 404


class TestAlgorithmAdmin:
    def test_export_round_trips_through_validate(self, client):
        exported = client.get("/admin/algorithms/cv-risk/export").json()
        assert exported["start_node_id"] == "initial-assessment"
        report = client.post("/admin/algorithms/validate", json=exported).json()
        assert report == {"valid": True, "errors": [], "warnings": []}

    def test_validate_reports_graph_errors(self, client):
        draft = CV_RISK_ALGORITHM.model_dump(mode="json")
        draft["nodes"]["initial-assessment"]["branches"][0]["next_node_id"] = "nowhere"
        report = client.post("/admin/algorithms/validate", json=draft).json()
        assert report["valid"] is False
        assert any("nowhere" in e for e in report["errors"])

    def test_validate_reports_schema_errors(self, client):
        report = client.post("/admin/algorithms/validate", json={"id": "x"}).json()
        assert report["valid"] is False
        assert any(e.startswith("name:") for e in report["errors"])

    def test_validate_rejects_unknown_condition_op(self, client):
        draft = CV_RISK_ALGORITHM.model_dump(mode="json")
        draft["nodes"]["initial-assessment"]["branches"][0]["condition"] = {"op": "between"}
        report = client.post("/admin/algorithms/validate", json=draft).json()
        assert report["valid"] is False

    def test_range_check(self, client):
        resp = client.post("/admin/calculators/validate", json={"interpretation_ranges": [
            {"min": 0, "max": 1, "interpretation": "low"},
            {"min": 4, "max": 9, "interpretation": "high"},
        ]})
        body = resp.json()
        assert body["valid"] is True
        assert len(body["warnings"]) == 1


class TestWebModeAuth:
    def test_health_is_public(self, web_client):
        assert web_client.get("/health").status_code == 200

    def test_missing_token(self, web_client):
        resp = web_client.get("/calculators")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Missing authorization header"

    def test_bad_token(self, web_client):
        bad = jwt.encode({"sub": "user-1"}, "other-secret-0123456789abcdef0123456789", algorithm="HS256")
        assert web_client.get("/calculators", headers=_bearer(bad)).status_code == 401

    def test_token_without_sub(self, web_client):
        token = jwt.encode({"roles": ["admin"]}, SECRET, algorithm="HS256")
        resp = web_client.get("/calculators", headers=_bearer(token))
        assert resp.status_code == 401

    def test_valid_token(self, web_client):
        assert web_client.get("/calculators", headers=_bearer(_token())).status_code == 200

    def test_sessions_follow_user(self, web_client):
        web_client.put("/parameters/age", json={"value": 60}, headers=_bearer(_token("u1")))
        mine = web_client.get("/parameters", headers=_bearer(_token("u1"))).json()["parameters"]
        theirs = web_client.get("/parameters", headers=_bearer(_token("u2"))).json()["parameters"]
        assert len(mine) == 1
        assert theirs == []

    def test_admin_requires_role(self, web_client):
        resp = web_client.get("/admin/algorithms/cv-risk/export", headers=_bearer(_token()))
        assert resp.status_code == 403

    def test_admin_with_role(self, web_client):
        token = _token(roles=["admin"])
        resp = web_client.get("/admin/algorithms/cv-risk/export", headers=_bearer(token))
        assert resp.status_code == 200

    def test_single_role_string(self, web_client):
        token = _token(roles="admin")
        assert web_client.get("/admin/calculators/fib-4/export", headers=_bearer(token)).status_code == 200


class TestAuditTrail:
    @pytest.mark.parametrize("method,path,expected", [
        ("POST", "/calculators/fib-4/calculate", ("calculator.calculate", "fib-4")),
        ("POST", "/algorithms/cv-risk/navigator", ("navigator.start", "cv-risk")),
        ("POST", "/algorithms/cv-risk/navigator/next", ("navigator.next", "cv-risk")),
        ("PUT", "/parameters/egfr", ("parameter.store", "egfr")),
        ("DELETE", "/parameters", ("parameter.clear", None)),
        ("GET", "/admin/algorithms/cv-risk/export", ("admin.export_algorithm", "cv-risk")),
        ("GET", "/calculators", ("read", None)),
        ("PATCH", "/parameters/egfr", ("other", None)),
    ])
    def test_classify_request(self, method, path, expected):
        assert audit.classify_request(method, path) == expected

    def test_calculation_is_audited_without_values(self, web_client, caplog):
        inputs = {"age": 50, "ast": 40, "alt": 30, "platelets": 150}
        with caplog.at_level(logging.INFO, logger="audit"):
            web_client.post("/calculators/fib-4/calculate", json={"inputs": inputs}, headers=_bearer(_token("u1")))
        assert "user=u1 action=calculator.calculate resource=fib-4 status=200 outcome=ok" in caplog.text
        assert "2.43" not in caplog.text

    def test_rejected_parameter_write_is_audited(self, web_client, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            web_client.put("/parameters/smoker", json={"value": "yes"}, headers=_bearer(_token("u1")))
        assert "action=parameter.store resource=smoker status=422 outcome=rejected" in caplog.text

    def test_unauthenticated_request_is_audited(self, web_client, caplog):
        with caplog.at_level(logging.INFO, logger="audit"):
            web_client.get("/calculators")
        assert "user=anonymous action=read resource=- status=401" in caplog.text
