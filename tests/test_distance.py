import requests

from app.services.distance import DistanceResolver

ORIGIN = (10.4961, -66.853)


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self.bad_json:
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc:
            raise self.exc
        return self.response


def _matrix(meters, status="OK", element_status="OK"):
    return {
        "status": status,
        "rows": [{"elements": [{"status": element_status, "distance": {"value": meters}}]}],
    }


def _resolver(session, api_key="k"):
    return DistanceResolver(api_key, ORIGIN, url="https://maps.test/matrix", timeout=2.5, session=session)


def test_resolves_kilometres():
    session = FakeSession(FakeResponse(_matrix(13250)))
    assert _resolver(session)("Chacao, Caracas") == 13.25
    call = session.calls[0]
    assert call["url"] == "https://maps.test/matrix"
    assert call["timeout"] == 2.5
    assert call["params"]["origins"] == "10.4961,-66.853"
    assert call["params"]["destinations"] == "Chacao, Caracas"
    assert call["params"]["key"] == "k"


def test_without_api_key_returns_none_without_calling():
    session = FakeSession(FakeResponse(_matrix(1000)))
    assert _resolver(session, api_key=None)("Chacao") is None
    assert session.calls == []


def test_timeout_returns_none():
    session = FakeSession(exc=requests.Timeout("slow"))
    assert _resolver(session)("Chacao") is None


def test_connection_error_returns_none():
    session = FakeSession(exc=requests.ConnectionError("refused"))
    assert _resolver(session)("Chacao") is None


def test_http_error_returns_none():
    session = FakeSession(FakeResponse(status_code=500))
    assert _resolver(session)("Chacao") is None


def test_bad_json_returns_none():
    session = FakeSession(FakeResponse(bad_json=True))
    assert _resolver(session)("Chacao") is None


def test_api_status_not_ok_returns_none():
    session = FakeSession(FakeResponse(_matrix(1000, status="REQUEST_DENIED")))
    assert _resolver(session)("Chacao") is None


def test_route_not_found_returns_none():
    session = FakeSession(FakeResponse(_matrix(1000, element_status="ZERO_RESULTS")))
    assert _resolver(session)("Isla de Aves") is None


def test_malformed_payload_returns_none():
    session = FakeSession(FakeResponse({"status": "OK", "rows": []}))
    assert _resolver(session)("Chacao") is None


def test_non_object_body_returns_none():
    assert _resolver(FakeSession(FakeResponse(["unexpected"])))("Chacao") is None
    assert _resolver(FakeSession(FakeResponse("OK")))("Chacao") is None


def test_non_dict_route_element_returns_none():
    payload = {"status": "OK", "rows": [{"elements": ["OK"]}]}
    assert _resolver(FakeSession(FakeResponse(payload)))("Chacao") is None


def test_non_numeric_distance_returns_none():
    session = FakeSession(FakeResponse(_matrix("n/a")))
    assert _resolver(session)("Chacao") is None


def test_distance_without_value_object_returns_none():
    payload = {"status": "OK", "rows": [{"elements": [{"status": "OK", "distance": 1200}]}]}
    assert _resolver(FakeSession(FakeResponse(payload)))("Chacao") is None


def test_from_config():
    resolver = DistanceResolver.from_config({
        "DISTANCE_MATRIX_API_KEY": "abc",
        "DELIVERY_ORIGIN_LAT": 10.5,
        "DELIVERY_ORIGIN_LNG": -66.9,
        "DISTANCE_MATRIX_URL": "https://maps.test/matrix",
        "DISTANCE_TIMEOUT_SECONDS": 1,
    })
    assert resolver.api_key == "abc"
    assert resolver.origin == (10.5, -66.9)
    assert resolver.timeout == 1.0
