import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Type

import requests
from pydantic import ValidationError

from booking_availability import config
from booking_availability.models import Activity, DayReport, Period, Record

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when updating a record id the store does not know."""


class Repository(ABC):
    """Storage-agnostic access to one collection of records."""

    @abstractmethod
    def get_all(self) -> List[Record]:
        pass

    @abstractmethod
    def get_by_id(self, record_id: str) -> Optional[Record]:
        pass

    @abstractmethod
    def create(self, record: Record) -> Record:
        """Stores a new record, generating an id when it has none."""
        pass

    @abstractmethod
    def update(self, record_id: str, record: Record) -> Record:
        """Replaces the record stored under `record_id`. Raises RecordNotFoundError."""
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Removes a record. Unknown ids are ignored."""
        pass


def _parse_records(model: Type[Record], items: Iterable, source: str) -> List[Record]:
    records = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {model.__name__} record from {source}: {e}")
    return records


def ensure_data_dir(path: str):
    """Ensures the directory holding `path` exists."""
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory)


def write_stamped(path: str, payload: Dict):
    """Writes `payload` as JSON to `path` under a `last_updated` UTC timestamp."""
    ensure_data_dir(path)
    data = {"last_updated": datetime.now(timezone.utc).isoformat(), **payload}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


class JsonFileRepository(Repository):
    """Keeps a collection in a local JSON file, wrapped with an update timestamp."""

    def __init__(self, model: Type[Record], key: str, path: str):
        self.model = model
        self.key = key
        self.path = path

    def _load(self) -> List:
        if not os.path.exists(self.path):
            logger.info(f"No {self.key} file found at {self.path}. Starting empty.")
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            # ValueError covers both JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Failed to load {self.path}: {e}. Starting empty.")
            return []

        if isinstance(data, dict) and isinstance(data.get(self.key), list):
            return data[self.key]
        # Bare list, as written by older versions
        if isinstance(data, list):
            return data

        logger.warning(f"{self.path} has unexpected format. Starting empty.")
        return []

    def _save(self, records: List[Record]):
        try:
            write_stamped(self.path, {self.key: [record.to_json_dict() for record in records]})
        except OSError as e:
            logger.error(f"Failed to save {self.key} to {self.path}: {e}")
            raise
        logger.debug(f"Saved {len(records)} {self.key} to {self.path}")

    def get_all(self) -> List[Record]:
        return _parse_records(self.model, self._load(), self.path)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        return next((record for record in self.get_all() if record.id == record_id), None)

    def create(self, record: Record) -> Record:
        records = self.get_all()
        if not record.id:
            record = record.model_copy(update={"id": str(uuid.uuid4())})
        if any(existing.id == record.id for existing in records):
            raise ValueError(f"{self.model.__name__} '{record.id}' already exists")

        records.append(record)
        self._save(records)
        logger.info(f"Created {self.model.__name__} '{record.id}'")
        return record

    def update(self, record_id: str, record: Record) -> Record:
        records = self.get_all()
        index = next((i for i, existing in enumerate(records) if existing.id == record_id), None)
        if index is None:
            raise RecordNotFoundError(f"{self.model.__name__} '{record_id}' not found")

        records[index] = record.model_copy(update={"id": record_id})
        self._save(records)
        logger.info(f"Updated {self.model.__name__} '{record_id}'")
        return records[index]

    def delete(self, record_id: str) -> None:
        records = self.get_all()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            logger.debug(f"{self.model.__name__} '{record_id}' not found, nothing to delete")
            return
        self._save(remaining)
        logger.info(f"Deleted {self.model.__name__} '{record_id}'")


class RemoteRepository(Repository):
    """Same collection interface over a REST API.

    Reads degrade to empty results on network errors; writes let them propagate.
    """

    def __init__(self, model: Type[Record], base_url: str, key: str):
        self.model = model
        self.key = key
        self.base_url = base_url.rstrip("/")

    def _url(self, record_id: str | None = None) -> str:
        url = f"{self.base_url}/{self.key}"
        if record_id is not None:
            url = f"{url}/{record_id}"
        return url

    def get_all(self) -> List[Record]:
        url = self._url()
        try:
            response = requests.get(url, headers=config.HTTP_HEADERS, timeout=config.HTTP_TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch {self.key} from {url}: {e}")
            return []

        items = data.get(self.key) if isinstance(data, dict) else data
        if not isinstance(items, list):
            logger.warning(f"Unexpected {self.key} payload from {url}: {type(items).__name__}")
            return []
        return _parse_records(self.model, items, url)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        url = self._url(record_id)
        try:
            response = requests.get(url, headers=config.HTTP_HEADERS, timeout=config.HTTP_TIMEOUT)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return self.model.model_validate(response.json())
        except (requests.exceptions.RequestException, ValidationError) as e:
            logger.error(f"Failed to fetch {self.model.__name__} '{record_id}': {e}")
            return None

    def create(self, record: Record) -> Record:
        if not record.id:
            record = record.model_copy(update={"id": str(uuid.uuid4())})
        response = requests.post(
            self._url(), json=record.to_json_dict(), headers=config.HTTP_HEADERS, timeout=config.HTTP_TIMEOUT
        )
        response.raise_for_status()
        logger.info(f"Created {self.model.__name__} '{record.id}' remotely")
        return self.model.model_validate(response.json())

    def update(self, record_id: str, record: Record) -> Record:
        payload = record.model_copy(update={"id": record_id}).to_json_dict()
        response = requests.put(
            self._url(record_id), json=payload, headers=config.HTTP_HEADERS, timeout=config.HTTP_TIMEOUT
        )
        if response.status_code == 404:
            raise RecordNotFoundError(f"{self.model.__name__} '{record_id}' not found")
        response.raise_for_status()
        logger.info(f"Updated {self.model.__name__} '{record_id}' remotely")
        return self.model.model_validate(response.json())

    def delete(self, record_id: str) -> None:
        response = requests.delete(self._url(record_id), headers=config.HTTP_HEADERS, timeout=config.HTTP_TIMEOUT)
        if response.status_code == 404:
            logger.debug(f"{self.model.__name__} '{record_id}' not found remotely, nothing to delete")
            return
        response.raise_for_status()
        logger.info(f"Deleted {self.model.__name__} '{record_id}' remotely")


def period_repository() -> Repository:
    if config.API_BASE_URL:
        return RemoteRepository(Period, config.API_BASE_URL, "periods")
    return JsonFileRepository(Period, "periods", config.PERIODS_FILE)


def activity_repository() -> Repository:
    if config.API_BASE_URL:
        return RemoteRepository(Activity, config.API_BASE_URL, "activities")
    return JsonFileRepository(Activity, "activities", config.ACTIVITIES_FILE)


def save_report(activity_id: str, days: List[DayReport]):
    """Writes the per-day report of one activity. Failures are logged, not raised."""
    payload = {
        "activity": activity_id,
        "open_days": sum(1 for day in days if day.is_open),
        "days": [day.model_dump() for day in days],
    }
    try:
        write_stamped(config.REPORT_FILE, payload)
    except OSError as e:
        logger.error(f"Could not write report for '{activity_id}' to {config.REPORT_FILE}: {e}")
        return
    logger.info(f"Report for '{activity_id}' written to {config.REPORT_FILE}")
