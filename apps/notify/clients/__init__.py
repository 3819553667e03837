"""HTTP clients for the services the dispatcher talks to."""

from .base import BaseServiceClient
from .echo import EchoClient, EventDetails, EventRecord
from .front50 import Front50Client

__all__ = [
    "BaseServiceClient",
    "EchoClient",
    "EventDetails",
    "EventRecord",
    "Front50Client",
]
