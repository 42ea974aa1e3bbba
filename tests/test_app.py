from typing import Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from app.api import NO_DATA_MESSAGE, SERVER_ERROR_MESSAGE
from app.main import create_app
from datastore.readings import InMemoryReadingStore, ReadingStoreError
from models.records import TelemetryReading
from services.calculator import EnergyCostCalculator
from services.estimator import EstimatorService, build_default_estimator

DEVICE_ID = "hainetsukaishu-demo03"

VALID_BODY = {
    "flow": 0.5,
    "costType": "electricity",
    "costUnit": 30,
    "operatingHours": 10,
    "operatingDays": 300,
}


def _reading() -> TelemetryReading:
    return TelemetryReading(
        device=DEVICE_ID,
        time="2024-05-01T10:00:00Z",
        temp_c1=20.0,
        temp_c2=45.0,
        temp_c3=50.0,
        temp_c4=60.0,
    )


class FailingStore:
    def __init__(self) -> None:
        self.closed = False

    async def fetch_latest(self, device_id: str) -> Optional[TelemetryReading]:
        raise ReadingStoreError("Cosmos query failed: 503 ServiceUnavailable")

    async def close(self) -> None:
        self.closed = True


def _make_client(monkeypatch, store) -> Iterator[TestClient]:
    estimators: Dict[str, EstimatorService] = {}

    def build_test_estimator() -> EstimatorService:
        estimator = estimators.get("default")
        if estimator is None:
            estimator = EstimatorService(
                store=store,
                calculator=EnergyCostCalculator(),
                device_id=DEVICE_ID,
            )
            estimators["default"] = estimator
        return estimator

    build_test_estimator.cache_clear = estimators.clear  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_estimator", build_test_estimator)
    monkeypatch.setattr("app.api.build_default_estimator", build_test_estimator)

    app = create_app()
    with TestClient(app) as client:
        yield client


@pytest.fixture
def memory_store() -> InMemoryReadingStore:
    store = InMemoryReadingStore()
    store.put_reading(_reading())
    return store


@pytest.fixture
def api_client(monkeypatch, memory_store: InMemoryReadingStore) -> Iterator[TestClient]:
    yield from _make_client(monkeypatch, memory_store)


@pytest.fixture
def empty_client(monkeypatch) -> Iterator[TestClient]:
    yield from _make_client(monkeypatch, InMemoryReadingStore())


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def failing_client(monkeypatch, failing_store: FailingStore) -> Iterator[TestClient]:
    yield from _make_client(monkeypatch, failing_store)


def test_realtime_returns_latest_temperatures(api_client: TestClient) -> None:
    response = api_client.get("/api/realtime")

    assert response.status_code == 200
    assert response.json() == {
        "temperature": {"tempC1": 20.0, "tempC2": 45.0, "tempC3": 50.0, "tempC4": 60.0}
    }


def test_calculate_returns_two_decimal_strings(api_client: TestClient) -> None:
    response = api_client.post("/api/calculate", json=VALID_BODY)

    assert response.status_code == 200
    assert response.json() == {
        "currentCost": "697.67",
        "yearlyCost": "2093010.00",
        "recoveryBenefit": "436.04",
        "yearlyRecoveryBenefit": "1308120.00",
    }


def test_calculate_accepts_numeric_strings(api_client: TestClient) -> None:
    body = {key: str(value) for key, value in VALID_BODY.items()}

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 200
    assert response.json()["currentCost"] == "697.67"


def test_calculate_accepts_front_end_cost_label(api_client: TestClient) -> None:
    body = dict(VALID_BODY, costType="電気")

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 200
    assert response.json()["recoveryBenefit"] == "436.04"


def test_calculate_unknown_cost_type_returns_zero_costs(api_client: TestClient) -> None:
    body = dict(VALID_BODY, costType="firewood")

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 200
    assert response.json() == {
        "currentCost": "0.00",
        "yearlyCost": "0.00",
        "recoveryBenefit": "0.00",
        "yearlyRecoveryBenefit": "0.00",
    }


@pytest.mark.parametrize("cost_type", [5, 2.5, True, ["electricity"]])
def test_calculate_non_string_cost_type_returns_zero_costs(
    api_client: TestClient, cost_type
) -> None:
    body = dict(VALID_BODY, costType=cost_type)

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 200
    assert response.json() == {
        "currentCost": "0.00",
        "yearlyCost": "0.00",
        "recoveryBenefit": "0.00",
        "yearlyRecoveryBenefit": "0.00",
    }


def test_calculate_null_cost_type_returns_bad_request(api_client: TestClient) -> None:
    body = dict(VALID_BODY, costType=None)

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 400
    assert response.json()["error"].startswith("All parameters are required")
    assert "costType" in response.json()["error"]


@pytest.mark.parametrize(
    "overrides",
    [{"flow": "NaN"}, {"costUnit": "inf"}, {"operatingHours": "-Infinity"}],
)
def test_calculate_rejects_non_finite_numbers(api_client: TestClient, overrides) -> None:
    body = dict(VALID_BODY, **overrides)

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 400
    field = next(iter(overrides))
    assert field in response.json()["error"]
    assert "currentCost" not in response.json()


def test_calculate_missing_flow_returns_bad_request(api_client: TestClient) -> None:
    body = {key: value for key, value in VALID_BODY.items() if key != "flow"}

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert "error" in payload
    assert "flow" in payload["error"]


def test_calculate_null_field_returns_bad_request(api_client: TestClient) -> None:
    body = dict(VALID_BODY, operatingDays=None)

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 400
    assert "operatingDays" in response.json()["error"]


def test_calculate_lists_every_missing_field(api_client: TestClient) -> None:
    response = api_client.post("/api/calculate", json={"flow": 0.5})

    assert response.status_code == 400
    message = response.json()["error"]
    for field in ("costType", "costUnit", "operatingHours", "operatingDays"):
        assert field in message


def test_calculate_non_numeric_flow_returns_bad_request(api_client: TestClient) -> None:
    body = dict(VALID_BODY, flow="fast")

    response = api_client.post("/api/calculate", json=body)

    assert response.status_code == 400
    assert "flow" in response.json()["error"]


def test_empty_store_returns_server_error_for_both_endpoints(empty_client: TestClient) -> None:
    realtime = empty_client.get("/api/realtime")
    calculate = empty_client.post("/api/calculate", json=VALID_BODY)

    assert realtime.status_code == 500
    assert realtime.json() == {"error": NO_DATA_MESSAGE}
    assert calculate.status_code == 500
    assert calculate.json() == {"error": NO_DATA_MESSAGE}


def test_store_failure_hides_internal_detail(failing_client: TestClient) -> None:
    realtime = failing_client.get("/api/realtime")
    calculate = failing_client.post("/api/calculate", json=VALID_BODY)

    for response in (realtime, calculate):
        assert response.status_code == 500
        assert response.json() == {"error": SERVER_ERROR_MESSAGE}
        assert "503" not in response.text


def test_lifespan_closes_store(monkeypatch, failing_store: FailingStore) -> None:
    for _client in _make_client(monkeypatch, failing_store):
        assert failing_store.closed is False

    assert failing_store.closed is True


def test_health_endpoints(api_client: TestClient) -> None:
    assert api_client.get("/health").json() == {"status": "ok"}
    assert api_client.get("/").json()["status"] == "ok"


def test_unknown_route_uses_error_envelope(api_client: TestClient) -> None:
    response = api_client.get("/api/missing")

    assert response.status_code == 404
    assert "error" in response.json()


def test_default_estimator_is_cached_and_uses_configured_device(monkeypatch) -> None:
    from datastore.readings import build_default_store
    from settings import get_settings

    monkeypatch.delenv("COSMOSDB_ENDPOINT", raising=False)
    monkeypatch.delenv("COSMOSDB_KEY", raising=False)
    monkeypatch.delenv("READINGS_FIXTURE_PATH", raising=False)
    monkeypatch.setenv("DEVICE_ID", "boiler-7")
    caches = (get_settings, build_default_store, build_default_estimator)
    for cache in caches:
        cache.cache_clear()

    try:
        estimator = build_default_estimator()
        assert estimator is build_default_estimator()
        assert estimator.device_id == "boiler-7"
        assert isinstance(estimator.store, InMemoryReadingStore)
    finally:
        for cache in caches:
            cache.cache_clear()
