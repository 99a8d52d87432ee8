"""Business logic services package with public service helpers."""

from .peers import (
    PeerServices,
    get_peer_services,
    reset_peer_services_for_tests,
)

__all__ = [
    "PeerServices",
    "get_peer_services",
    "reset_peer_services_for_tests",
]
