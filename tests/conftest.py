import pytest
import requests

from data_loader import DISTRICTS_URL, RESOURCES_URL


DISTRICT_PAYLOAD = {
    "Bagmati": {"districtData": {"Kathmandu": {"confirmed": 10}, "Lalitpur": {"confirmed": 4}, "Bhaktapur": {}, "Chitwan": {}}},
    "Gandaki": {"districtData": {"Kaski": {}, "Baglung": {}}},
    "Province 2": {"districtData": {"Rautahat": {}}},
}

RESOURCE_PAYLOAD = {
    "resources": [
        {
            "nameoftheorganisation": "National Public Health Laboratory",
            "category": "Testing Center",
            "city": "Kathmandu",
            "state": "Bagmati",
            "contact": "https://nphl.gov.np",
            "descriptionandorserviceprovided": "PCR testing",
            "phonenumber": "01-4252421",
        },
        {
            "nameoftheorganisation": "Bir Hospital",
            "category": "Health Facility",
            "city": "Kathmandu",
            "state": "Bagmati",
            "contact": "https://birhospital.gov.np",
            "descriptionandorserviceprovided": "Hospital beds",
            "phonenumber": "01-4221119",
        },
    ]
}


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        if self.invalid_json:
            raise ValueError("No JSON object could be decoded")
        return self.payload


@pytest.fixture
def fake_requests(monkeypatch):
    """Route requests.get through a url -> response (or exception) table.

    Returns the table and a list of requested urls.
    """
    routes = {
        DISTRICTS_URL: FakeResponse(DISTRICT_PAYLOAD),
        RESOURCES_URL: FakeResponse(RESOURCE_PAYLOAD),
    }
    calls = []

    def fake_get(url, timeout=None, **kwargs):
        calls.append(url)
        response = routes[url]
        if isinstance(response, list):
            response = response.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(requests, "get", fake_get)
    return routes, calls
