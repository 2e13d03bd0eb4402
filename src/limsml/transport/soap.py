"""SOAP-over-HTTP binding for the LIMSML web service.

The LIMSML request travels as escaped text inside the ``request`` element
of a ``Process`` call; the reply comes back, likewise escaped, inside
``ProcessResult``.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Optional
from xml.sax.saxutils import escape

import requests

from .base import (
    Transport,
    TransportConnectionError,
    TransportError,
    TransportStatusError,
    TransportTimeout,
)

logger = logging.getLogger(__name__)


SOAP_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
SERVICE_NAMESPACE = "http://www.thermo.com/informatics/xmlns/limswebservice"
SOAP_ACTION = SERVICE_NAMESPACE + "/Process"

HEADERS = {
    "Content-Type": "text/xml; charset=utf-8",
    "SOAPAction": SOAP_ACTION,
}

_RESULT = re.compile(r"<ProcessResult[^>]*>(.*)</ProcessResult>", re.DOTALL | re.IGNORECASE)


def envelope(xml: str) -> str:
    """Wrap a LIMSML request in a SOAP Process call."""

    return (
        f'<s:Envelope xmlns:s="{SOAP_NAMESPACE}">'
        f"<s:Body>"
        f'<Process xmlns="{SERVICE_NAMESPACE}">'
        f"<request>{escape(xml)}</request>"
        f"</Process>"
        f"</s:Body>"
        f"</s:Envelope>"
    )


def unwrap(body: str) -> str:
    """Extract and unescape the LIMSML reply from a SOAP response body."""

    match = _RESULT.search(body)
    if match is None:
        raise TransportError("SOAP response did not include a ProcessResult")

    return html.unescape(match.group(1))


class SoapTransport(Transport):
    """Send LIMSML requests to the web service at *url*.

    A ``requests.Session`` is created on first use unless one is supplied,
    so connections are reused across the requests of one client.
    """

    def __init__(
        self,
        url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._session = session

    def __repr__(self) -> str:
        return f"SoapTransport({self.url!r})"

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def send(self, xml: str) -> str:
        try:
            response = self.session.post(
                self.url,
                data=envelope(xml).encode("utf-8"),
                headers=HEADERS,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise TransportTimeout(f"no response from {self.url} in {self.timeout} sec") from e
        except requests.RequestException as e:
            raise TransportConnectionError(f"SOAP request to {self.url} failed: {e}") from e

        if response.status_code != 200:
            raise TransportStatusError(
                f"SOAP request failed: response code = {response.status_code}",
                response.status_code,
            )

        return unwrap(response.text)

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
