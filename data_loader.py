import asyncio
import time
from typing import Any, Callable, Dict, List, Optional
import requests
import logging

logger = logging.getLogger("data_loader")


DISTRICTS_URL = "https://api.nepalcovid19.org/state-district-wise.json"
RESOURCES_URL = "https://api.nepalcovid19.org/resources/resources.json"

# upstream resource key -> record field
RESOURCE_FIELDS = {
    "nameoftheorganisation": "organisation_name",
    "category": "category",
    "city": "city",
    "state": "state",
    "contact": "contact",
    "descriptionandorserviceprovided": "description",
    "phonenumber": "phone_number",
}


class RemoteFetchError(Exception):
    """Network failure, timeout or non-2xx response from an upstream endpoint."""


class MalformedPayloadError(ValueError):
    """Upstream payload does not have the expected shape."""


def fetch_json(url: str, timeout: float = 10, max_retries: int = 3) -> Any:
    """GET `url` and decode the JSON body.

    Transient errors (connection problems, timeouts, 5xx) are retried with
    exponential backoff; 4xx responses are terminal. Raises RemoteFetchError
    once retries are exhausted and MalformedPayloadError if the body is not
    JSON.
    """
    backoff = 0.2
    last_exc: Optional[Exception] = None
    for attempt in range(1, max_retries + 1):
        try:
            resp = requests.get(url, timeout=timeout)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as http_err:
            status = getattr(http_err.response, "status_code", None)
            if status is not None and 400 <= status < 500:
                raise RemoteFetchError(f"{url} returned {status}") from http_err
            last_exc = http_err
        except requests.exceptions.RequestException as exc:
            last_exc = exc
        else:
            try:
                return resp.json()
            except ValueError as exc:
                raise MalformedPayloadError(f"{url} did not return JSON") from exc

        if attempt < max_retries:
            logger.warning("Transient error fetching %s (attempt %s/%s): %s", url, attempt, max_retries, last_exc)
            time.sleep(backoff)
            backoff *= 2

    raise RemoteFetchError(f"failed to fetch {url} after {max_retries} attempts: {last_exc}") from last_exc


def transform_districts(payload: Any) -> List[Dict[str, str]]:
    """Flatten `{region: {districtData: {district: stats}}}` into district records."""
    if not isinstance(payload, dict):
        raise MalformedPayloadError("district payload must be an object keyed by region name")

    districts: List[Dict[str, str]] = []
    for region_name, region in payload.items():
        district_data = region.get("districtData") if isinstance(region, dict) else None
        if not isinstance(district_data, dict):
            logger.warning("Skipping region %r without districtData", region_name)
            continue
        for district_name in district_data:
            districts.append({"district": district_name, "state": region_name})
    return districts


def transform_resources(payload: Any) -> List[Dict[str, str]]:
    """Extract resource records from `{resources: [...]}`.

    Entries without an organisation name or category are skipped; other
    missing fields become empty strings.
    """
    resources = payload.get("resources") if isinstance(payload, dict) else None
    if not isinstance(resources, list):
        raise MalformedPayloadError("resource payload must contain a 'resources' list")

    records: List[Dict[str, str]] = []
    skipped = 0
    for item in resources:
        if not isinstance(item, dict):
            skipped += 1
            continue
        if not isinstance(item.get("nameoftheorganisation"), str) or not isinstance(item.get("category"), str):
            skipped += 1
            continue
        record = {}
        for key, field in RESOURCE_FIELDS.items():
            value = item.get(key)
            record[field] = value if isinstance(value, str) else ("" if value is None else str(value))
        records.append(record)

    if skipped:
        logger.warning("Skipped %d malformed resource entries", skipped)
    return records


class RemoteLoader:
    """Fetches and transforms one remote dataset, at most once per process.

    A failed fetch is logged and leaves the loader empty; it is not retried
    until reset() is called.
    """

    def __init__(self, url: str, transform: Callable[[Any], List[Dict[str, str]]], timeout: float = 10, max_retries: int = 3):
        self.url = url
        self.transform = transform
        self.timeout = timeout
        self.max_retries = max_retries
        self.records: Optional[List[Dict[str, str]]] = None
        self.attempted = False
        self._inflight: Optional[asyncio.Task] = None

    @property
    def loaded(self) -> bool:
        return self.records is not None

    def _fetch(self) -> List[Dict[str, str]]:
        payload = fetch_json(self.url, timeout=self.timeout, max_retries=self.max_retries)
        return self.transform(payload)

    async def _load(self) -> List[Dict[str, str]]:
        try:
            # run the blocking fetch in a thread to avoid blocking the event loop
            records = await asyncio.to_thread(self._fetch)
        except Exception:
            logger.exception("Failed to load %s", self.url)
            return []
        finally:
            self.attempted = True
        self.records = records
        logger.info("Fetched %d records from %s", len(records), self.url)
        return records

    async def load(self) -> List[Dict[str, str]]:
        if self.records is not None:
            return self.records
        if self.attempted:
            return []
        # concurrent callers share one fetch
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._inflight)

    def reset(self) -> None:
        self.records = None
        self.attempted = False
        self._inflight = None
