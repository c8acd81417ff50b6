from healthflow.ai_effects import INTERVENTION_NAMES
from healthflow.config import Config

SIMULATE_BODY = {
    "disease": "malaria",
    "health_system": "weak_rural_system",
    "population": 20000,
    "weeks": 6,
    "interventions": {"chw_ai": True, "diagnostic_ai": True},
}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_profiles(client):
    data = client.get("/profiles").get_json()
    assert "malaria" in data["diseases"]
    assert "weak_rural_system" in data["health_systems"]
    assert "kenya" in data["countries"]
    assert data["interventions"] == list(INTERVENTION_NAMES)
    assert data["disease_names"]["urti"] == "Upper Respiratory Tract Infection"


class TestSimulate:
    def test_baseline_and_intervention(self, client):
        response = client.post("/simulate", json=SIMULATE_BODY)
        assert response.status_code == 200

        data = response.get_json()
        assert data["interventions"] == ["chw_ai", "diagnostic_ai"]
        assert data["baseline"]["icer"] is None
        assert isinstance(data["intervention"]["icer"], float)
        assert isinstance(data["intervention"]["raw_icer"], float)
        assert data["intervention"]["weeks"] == 6
        assert "weekly" not in data["intervention"]

    def test_baseline_is_cached(self, client):
        hits_before = client.get("/cache/stats").get_json()["hits"]
        client.post("/simulate", json=SIMULATE_BODY)
        client.post("/simulate", json={**SIMULATE_BODY, "interventions": {"triage_ai": True}})

        stats = client.get("/cache/stats").get_json()
        assert stats["hits"] - hits_before == 1
        assert stats["entries"] == 1

    def test_weekly_rows(self, client):
        data = client.post("/simulate", json={**SIMULATE_BODY, "include_weekly": True}).get_json()
        assert len(data["intervention"]["weekly"]) == 6

    def test_no_interventions_gives_sentinel_icer(self, client):
        data = client.post("/simulate", json={**SIMULATE_BODY, "interventions": {}}).get_json()
        assert data["intervention"]["raw_icer"] == Config.NUMERIC_SENTINEL
        assert data["deaths_averted"] == 0.0

    def test_parameter_overrides(self, client):
        expensive = client.post("/simulate", json={
            **SIMULATE_BODY, "parameter_overrides": {"per_diem_costs": {"L2": 5000}}
        }).get_json()
        cheap = client.post("/simulate", json=SIMULATE_BODY).get_json()
        assert expensive["baseline"]["total_cost"] > cheap["baseline"]["total_cost"]

    def test_country_adjustment(self, client):
        response = client.post("/simulate", json={**SIMULATE_BODY, "country": "nigeria", "is_urban": False})
        assert response.status_code == 200
        assert response.get_json()["country"] == "nigeria"

    def test_unknown_disease_is_404(self, client):
        response = client.post("/simulate", json={**SIMULATE_BODY, "disease": "dragon_pox"})
        assert response.status_code == 404
        assert response.get_json()["error_type"] == "UnknownIdentifierError"

    def test_missing_body_is_400(self, client):
        response = client.post("/simulate")
        assert response.status_code == 400
        assert response.get_json()["error_type"] == "ValidationError"

    def test_non_object_body_is_400(self, client):
        response = client.post("/simulate", json=[1, 2])
        assert response.status_code == 400
        assert response.get_json()["error_type"] == "ValidationError"

    def test_invalid_intervention_is_400(self, client):
        response = client.post("/simulate", json={**SIMULATE_BODY, "interventions": {"magic_ai": True}})
        assert response.status_code == 400

    def test_bad_override_is_400(self, client):
        response = client.post("/simulate", json={**SIMULATE_BODY, "parameter_overrides": {"warp_speed": 9}})
        assert response.status_code == 400
        assert response.get_json()["error_type"] == "ParameterPathError"


class TestSensitivity:
    def test_one_way(self, client):
        response = client.post("/sensitivity", json={**SIMULATE_BODY, "parameter": "per_diem_costs.L2"})
        assert response.status_code == 200

        data = response.get_json()
        assert data["parameter"] == "per_diem_costs.L2"
        assert len(data["points"]) == 11

    def test_two_way(self, client):
        response = client.post("/sensitivity", json={
            **SIMULATE_BODY, "weeks": 2, "parameter": "mu_0", "secondary_parameter": "rho_0"
        })
        assert response.status_code == 200

        data = response.get_json()
        assert len(data["deaths"]) == 6
        assert len(data["deaths"][0]) == 6
        assert len(data["icer"]) == 6
        assert len(data["points"]) == 36

    def test_group_path_is_400(self, client):
        response = client.post("/sensitivity", json={**SIMULATE_BODY, "parameter": "per_diem_costs"})
        assert response.status_code == 400

    def test_compiler_owned_path_is_400(self, client):
        response = client.post("/sensitivity", json={**SIMULATE_BODY, "parameter": "queue_prevention_rate"})
        assert response.status_code == 400
        assert response.get_json()["error_type"] == "ValidationError"


def test_cache_clear(client):
    client.post("/simulate", json=SIMULATE_BODY)
    assert client.post("/cache/clear").get_json()["cleared"] == 1
    assert client.get("/cache/stats").get_json()["entries"] == 0


def test_unknown_route_is_404(client):
    assert client.get("/nope").status_code == 404


def test_wrong_method_is_405(client):
    assert client.get("/simulate").status_code == 405
