"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`limsml.protocol` so the protocol remains
transport-agnostic: a transport moves LIMSML XML text and knows nothing
about its content.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import LimsmlError


# Transport agnostic exceptions

class TransportError(LimsmlError):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A request did not receive a timely response."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class TransportStatusError(TransportError):
    """The server answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Transport(ABC):
    """Minimal contract for a wire-level transport."""

    @abstractmethod
    def send(self, xml: str) -> str:
        """Send a serialized LIMSML request, return the LIMSML reply text.

        Any non-success status must raise a TransportError before the
        reply is handed back for decoding.
        """

    def close(self) -> None:
        """Release any underlying connection resources."""
