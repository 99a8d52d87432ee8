"""HTTP clients for the peer services the task manager talks to."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from task_manager.errors import PeerServiceError
from task_manager.utils.settings import ServiceSettings, get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = (3, 15)


class PeerServiceClient:
    """Base client; a client without ``base_url`` is disabled."""

    name = "peer service"

    def __init__(self, base_url: Optional[str], timeout: Tuple[float, float] = _DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout

    @property
    def is_enabled(self) -> bool:
        return self.base_url is not None

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PeerServiceError(f"Cannot reach the {self.name} at {url}: {e}") from e

    def _exists(self, path: str) -> bool:
        if not self.is_enabled:
            return True
        response = self._request("GET", path)
        if response.status_code == 404:
            return False
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise PeerServiceError(f"The {self.name} answered {response.status_code} for {path}") from e
        return True

    def _notify_deleted(self, path: str) -> None:
        if not self.is_enabled:
            return
        response = self._request("DELETE", path)
        if response.status_code == 404:
            logger.debug(f"The {self.name} did not know {path}")
            return
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise PeerServiceError(f"The {self.name} answered {response.status_code} for {path}") from e


class ProfileManagerClient(PeerServiceClient):
    name = "profile manager"

    def profile_exists(self, profile_id: str) -> bool:
        return self._exists(f"/profiles/{profile_id}")

    def task_deleted(self, task_id: str) -> None:
        """Drop every reference the profiles keep to the task."""
        self._notify_deleted(f"/tasks/{task_id}")


class ServiceApiClient(PeerServiceClient):
    name = "service API"

    def app_exists(self, app_id: str) -> bool:
        return self._exists(f"/app/{app_id}")


class InteractionProtocolEngineClient(PeerServiceClient):
    name = "interaction protocol engine"

    def task_deleted(self, task_id: str) -> None:
        """Drop the protocol state kept for the task."""
        self._notify_deleted(f"/tasks/{task_id}")


@dataclass
class PeerServices:
    profile_manager: ProfileManagerClient
    service_api: ServiceApiClient
    interaction_protocol_engine: InteractionProtocolEngineClient

    @classmethod
    def from_settings(cls, settings: Optional[ServiceSettings] = None) -> "PeerServices":
        settings = settings or get_settings()
        timeout = settings.peer_timeout
        return cls(
            profile_manager=ProfileManagerClient(settings.profile_manager_url, timeout),
            service_api=ServiceApiClient(settings.service_api_url, timeout),
            interaction_protocol_engine=InteractionProtocolEngineClient(settings.interaction_protocol_engine_url, timeout),
        )

    def notify_task_deleted(self, task_id: str) -> None:
        """Tell the peers a task is gone; failures are only logged."""
        for client in (self.profile_manager, self.interaction_protocol_engine):
            try:
                client.task_deleted(task_id)
            except PeerServiceError as e:
                logger.warning(f"Cannot notify the {client.name} that task '{task_id}' was deleted: {e.message}")


_peer_services: Optional[PeerServices] = None


def get_peer_services() -> PeerServices:
    global _peer_services
    if _peer_services is None:
        _peer_services = PeerServices.from_settings()
    return _peer_services


def reset_peer_services_for_tests() -> None:  # pragma: no cover - used in tests
    global _peer_services
    _peer_services = None
