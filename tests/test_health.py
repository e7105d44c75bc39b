import json

from werkzeug.test import EnvironBuilder

from servicetemplate.health import HealthHandler


class FakePinger:
    def __init__(self, error=None):
        self.error = error
        self.pings = 0

    def ping(self):
        self.pings += 1
        if self.error is not None:
            raise self.error


def make_request(path):
    builder = EnvironBuilder(method="GET", path=path)
    try:
        return builder.get_request()
    finally:
        builder.close()


def test_live_success():
    response = HealthHandler(FakePinger()).live(make_request("/health/live"))
    assert response.status_code == 200
    assert json.loads(response.get_data(as_text=True))["status"] == "ok"


def test_live_does_not_ping():
    pinger = FakePinger(RuntimeError("db down"))
    response = HealthHandler(pinger).live(make_request("/health/live"))
    assert (response.status_code, pinger.pings) == (200, 0)


def test_ready_ok():
    pinger = FakePinger()
    response = HealthHandler(pinger).ready(make_request("/health/ready"))
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/json"
    assert pinger.pings == 1


def test_ready_unavailable():
    response = HealthHandler(FakePinger(RuntimeError("db down"))).ready(make_request("/health/ready"))
    assert response.status_code == 503
    assert json.loads(response.get_data(as_text=True)) == {
        "status": "unavailable",
        "detail": "db down",
    }