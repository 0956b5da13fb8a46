"""Tests for HTTP-based adapters."""

import asyncio
import json
from datetime import UTC, datetime

import httpx
import openai
import pytest

from insula_client.adapters.backend_http import INVALID_RESPONSE_MESSAGE
from insula_client.adapters.glucose_client import HttpxGlucoseClient
from insula_client.adapters.insulin_client import HttpxPredictionClient
from insula_client.adapters.insulin_therapy_client import HttpxInsulinTherapyClient
from insula_client.adapters.meals_client import HttpxMealsClient
from insula_client.adapters.openai_assistant_client import OpenAIAssistantClient
from insula_client.adapters.profile_client import HttpxProfileClient
from insula_client.domain.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from insula_client.domain.glucose import NewGlucoseReading
from insula_client.domain.insulin import (
    ActiveInsulin,
    GlucoseTarget,
    InsulinSettingsUpdate,
    NewInsulinDose,
    TargetRange,
)
from insula_client.domain.predictions import InsulinPredictionRequest, OutcomeUpdate

BASE_URL = "https://api.test/api"

RESULT_PAYLOAD = {
    "id": "abc",
    "date": "2025-06-10T15:00:00.000Z",
    "cgmPrev": [110, 115, 120],
    "glucoseObjective": 120,
    "carbs": 45,
    "insulinOnBoard": 0.5,
    "sleepLevel": 7,
    "workLevel": 3,
    "activityLevel": 2,
    "recommendedDose": 4.2,
    "cgmPost": [],
}


def _prediction_client(handler) -> HttpxPredictionClient:
    transport = httpx.MockTransport(handler)
    return HttpxPredictionClient(
        base_url=BASE_URL, http_client=httpx.AsyncClient(transport=transport)
    )


def _glucose_client(handler) -> HttpxGlucoseClient:
    transport = httpx.MockTransport(handler)
    return HttpxGlucoseClient(
        base_url=BASE_URL, http_client=httpx.AsyncClient(transport=transport)
    )


def test_calculate_posts_camel_case_payload_with_bearer_token() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(201, json=RESULT_PAYLOAD)

    client = _prediction_client(handler)
    request = InsulinPredictionRequest(
        date=datetime(2025, 6, 10, 15, 0, tzinfo=UTC),
        cgm_prev=[110, 115, 120],
        glucose_objective=120,
        carbs=45,
        insulin_on_board=0.5,
        sleep_level=7,
        work_level=3,
        activity_level=2,
    )

    result = asyncio.run(client.calculate(request, "tok"))

    assert seen["path"] == "/api/insulin/calculate"
    assert seen["auth"] == "Bearer tok"
    body = seen["body"]
    assert body["cgmPrev"] == [110, 115, 120]
    assert body["glucoseObjective"] == 120
    assert body["insulinOnBoard"] == 0.5
    assert body["date"].startswith("2025-06-10T15:00:00")
    assert result.id == "abc"
    assert result.recommended_dose == 4.2
    assert result.apply_dose is None
    assert result.has_post_data is False


def test_calculate_maps_bad_request_to_validation_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "carbs out of range"})

    client = _prediction_client(handler)
    request = InsulinPredictionRequest(
        date=datetime(2025, 6, 10, tzinfo=UTC),
        cgm_prev=[100],
        glucose_objective=100,
        carbs=0,
        insulin_on_board=0,
        sleep_level=1,
        work_level=1,
        activity_level=1,
    )

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(client.calculate(request, "tok"))

    assert excinfo.value.message == "carbs out of range"


def test_fetch_history_parses_array_and_numeric_ids() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        assert request.url.path == "/api/insulin/predictions"
        second = dict(RESULT_PAYLOAD, id=7, applyDose=3.5, cgmPost=[150, 140])
        return httpx.Response(200, json=[RESULT_PAYLOAD, second])

    client = _prediction_client(handler)

    history = asyncio.run(client.fetch_history("tok"))

    assert [p.id for p in history] == ["abc", "7"]
    assert history[1].cgm_post == [150, 140]
    assert history[1].has_post_data is True


def test_calculate_with_unexpected_body_raises_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "ok"})

    client = _prediction_client(handler)
    request = InsulinPredictionRequest(
        date=datetime(2025, 6, 10, tzinfo=UTC),
        cgm_prev=[100],
        glucose_objective=100,
        carbs=0,
        insulin_on_board=0,
        sleep_level=1,
        work_level=1,
        activity_level=1,
    )

    with pytest.raises(ServerError) as excinfo:
        asyncio.run(client.calculate(request, "tok"))

    assert excinfo.value.message == INVALID_RESPONSE_MESSAGE


def test_fetch_history_with_malformed_item_raises_server_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[RESULT_PAYLOAD, {"id": 1}])

    client = _prediction_client(handler)

    with pytest.raises(ServerError):
        asyncio.run(client.fetch_history("tok"))


def test_timestamps_without_offset_are_read_as_utc() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json=[dict(RESULT_PAYLOAD, date="2025-06-11T01:30:00")]
        )

    client = _prediction_client(handler)

    history = asyncio.run(client.fetch_history("tok"))

    assert history[0].date == datetime(2025, 6, 11, 1, 30, tzinfo=UTC)


def test_update_outcome_sends_null_apply_dose() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json=dict(RESULT_PAYLOAD, cgmPost=[130]))

    client = _prediction_client(handler)

    updated = asyncio.run(
        client.update_outcome(
            "tok", "abc", OutcomeUpdate(apply_dose=None, cgm_post=[130])
        )
    )

    assert seen["method"] == "PUT"
    assert seen["path"] == "/api/insulin/abc"
    assert seen["body"] == {"applyDose": None, "cgmPost": [130]}
    assert updated.cgm_post == [130]


def test_update_outcome_missing_record_raises_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "Prediction not found"})

    client = _prediction_client(handler)

    with pytest.raises(NotFoundError) as excinfo:
        asyncio.run(client.update_outcome("tok", "gone", OutcomeUpdate.cleared()))

    assert excinfo.value.message == "Prediction not found"
    assert excinfo.value.status_code == 404


def test_delete_prediction_returns_success_flag() -> None:
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(f"{request.method} {request.url.path}")
        return httpx.Response(200, json={"success": True})

    client = _prediction_client(handler)

    assert asyncio.run(client.delete_prediction("tok", "abc")) is True
    assert calls == ["DELETE /api/insulin/abc"]


def test_unauthorized_maps_to_auth_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Token expired"})

    client = _prediction_client(handler)

    with pytest.raises(AuthError):
        asyncio.run(client.fetch_history("tok"))


def test_server_error_without_body_uses_fallback_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    client = _prediction_client(handler)

    with pytest.raises(ServerError) as excinfo:
        asyncio.run(client.fetch_history("tok"))

    assert excinfo.value.message == "Failed to fetch insulin predictions"
    assert excinfo.value.status_code == 500


def test_transport_failure_maps_to_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _prediction_client(handler)

    with pytest.raises(NetworkError):
        asyncio.run(client.delete_prediction("tok", "abc"))


def test_fetch_readings_sends_only_given_params() -> None:
    seen: list[httpx.QueryParams] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params)
        return httpx.Response(
            200,
            json=[
                {
                    "id": "r1",
                    "value": 120,
                    "timestamp": "2025-06-10T14:00:00-03:00",
                    "notes": None,
                }
            ],
        )

    client = _glucose_client(handler)
    start = datetime(2025, 6, 10, 12, 45, tzinfo=UTC)
    end = datetime(2025, 6, 10, 15, 0, tzinfo=UTC)

    readings = asyncio.run(client.fetch_readings("tok", start_date=start, end_date=end))
    asyncio.run(client.fetch_readings("tok", limit=5))

    assert seen[0]["startDate"] == start.isoformat()
    assert seen[0]["endDate"] == end.isoformat()
    assert "limit" not in seen[0]
    assert dict(seen[1]) == {"limit": "5"}
    assert readings[0].value == 120
    assert readings[0].timestamp.utcoffset() is not None


def test_create_reading_truncates_notes() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode())
        seen["body"] = body
        return httpx.Response(
            201,
            json={"id": 9, "value": body["value"], "timestamp": "2025-06-10T15:00:00Z"},
        )

    client = _glucose_client(handler)
    reading = NewGlucoseReading(
        value=98, notes="después de correr en el parque por la tarde"
    )

    created = asyncio.run(client.create_reading("tok", reading))

    assert len(seen["body"]["notes"]) == 30
    assert created.id == "9"


def test_fetch_meals_unwraps_data_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["limit"] == "3"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [
                    {
                        "id": "m1",
                        "name": "Almuerzo",
                        "type": "lunch",
                        "timestamp": "2025-06-10T16:00:00Z",
                        "carbs": 60,
                    }
                ],
            },
        )

    transport = httpx.MockTransport(handler)
    client = HttpxMealsClient(
        base_url=BASE_URL, http_client=httpx.AsyncClient(transport=transport)
    )

    meals = asyncio.run(client.fetch_meals("tok", limit=3))

    assert meals[0].type == "lunch"
    assert meals[0].total_carbs == 60


def _therapy_client(handler) -> HttpxInsulinTherapyClient:
    transport = httpx.MockTransport(handler)
    return HttpxInsulinTherapyClient(
        base_url=BASE_URL, http_client=httpx.AsyncClient(transport=transport)
    )


def test_fetch_doses_unwraps_doses_key() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/insulin/doses"
        assert request.url.params["limit"] == "10"
        assert "startDate" not in request.url.params
        return httpx.Response(
            200,
            json={
                "doses": [
                    {
                        "id": 3,
                        "units": 4.5,
                        "timestamp": "2025-06-10T12:00:00Z",
                        "type": "rapid",
                    }
                ]
            },
        )

    client = _therapy_client(handler)

    doses = asyncio.run(client.fetch_doses("tok", limit=10))

    assert doses[0].id == "3"
    assert doses[0].units == 4.5
    assert doses[0].type == "rapid"


def test_create_dose_omits_empty_notes() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(201, json=dict(seen["body"], id=11))

    client = _therapy_client(handler)
    dose = NewInsulinDose(
        units=12, timestamp=datetime(2025, 6, 10, 22, 0, tzinfo=UTC), type="long"
    )

    created = asyncio.run(client.create_dose("tok", dose))

    assert seen["method"] == "POST"
    assert seen["body"] == {
        "units": 12.0,
        "timestamp": "2025-06-10T22:00:00Z",
        "type": "long",
    }
    assert created.id == "11"


def test_delete_dose_returns_success_flag() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        assert request.url.path == "/api/insulin/doses/11"
        return httpx.Response(200, json={"success": True})

    client = _therapy_client(handler)

    assert asyncio.run(client.delete_dose("tok", "11")) is True


def test_fetch_settings_parses_nested_camel_case() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/insulin/settings"
        return httpx.Response(
            200,
            json={
                "carbRatio": 10,
                "correctionFactor": 40,
                "targetGlucose": {"min": 90, "max": 140},
                "activeInsulin": {"duration": 4},
            },
        )

    client = _therapy_client(handler)

    settings = asyncio.run(client.fetch_settings("tok"))

    assert settings.carb_ratio == 10
    assert settings.target_glucose == TargetRange(min=90, max=140)
    assert settings.active_insulin == ActiveInsulin(duration=4)


def test_update_settings_sends_only_changed_fields() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(200, json={"success": True})

    client = _therapy_client(handler)
    update = InsulinSettingsUpdate(
        carb_ratio=12, target_glucose=TargetRange(min=80, max=150)
    )

    assert asyncio.run(client.update_settings("tok", update)) is True
    assert seen["method"] == "PUT"
    assert seen["body"] == {
        "carbRatio": 12.0,
        "targetGlucose": {"min": 80, "max": 150},
    }


def test_update_glucose_target_reads_saved_profile_bounds() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content.decode())
        return httpx.Response(
            200,
            json={
                "success": True,
                "message": "ok",
                "data": {
                    "user": {
                        "id": "u1",
                        "minTargetGlucose": 75,
                        "maxTargetGlucose": 160,
                    }
                },
            },
        )

    transport = httpx.MockTransport(handler)
    client = HttpxProfileClient(
        base_url=BASE_URL, http_client=httpx.AsyncClient(transport=transport)
    )

    target = GlucoseTarget(min_target=75, max_target=160)

    saved = asyncio.run(client.update_glucose_target("tok", target))

    assert seen["path"] == "/api/users/glucose-target"
    assert seen["body"] == {"minTarget": 75, "maxTarget": 160}
    assert saved == target


class _FakeResponses:
    def __init__(self, error: Exception | None = None) -> None:
        self.last_payload: dict[str, object] | None = None
        self.error = error

    async def create(self, **kwargs):
        self.last_payload = kwargs
        if self.error:
            raise self.error
        return type("Resp", (), {"output_text": "Todo bien"})()


class _FakeOpenAI:
    def __init__(self, error: Exception | None = None) -> None:
        self.responses = _FakeResponses(error)


def test_openai_assistant_client_returns_output_text() -> None:
    fake = _FakeOpenAI()
    client = OpenAIAssistantClient(client=fake, model="gpt-4o-mini")

    text = asyncio.run(client.complete("hola"))

    assert text == "Todo bien"
    assert fake.responses.last_payload == {"model": "gpt-4o-mini", "input": "hola"}


def test_openai_assistant_client_maps_connection_errors() -> None:
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    fake = _FakeOpenAI(error=openai.APIConnectionError(request=request))
    client = OpenAIAssistantClient(client=fake, model="gpt-4o-mini")

    with pytest.raises(NetworkError):
        asyncio.run(client.complete("hola"))
