# apiprobe/transport.py
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Dict, Optional

import httpx

from .admission import AdmissionController
from .errors import FailureKind, ProbeFailure

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def cookieless_jar() -> CookieJar:
    """A cookie jar whose policy refuses every Set-Cookie it is offered."""
    # keep it a bare CookieJar: httpx copies a Cookies object without its policy
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class GatedClient:
    """httpx.AsyncClient wrapper whose every request is admitted by the shared gate.

    The wrapped client's cookie store is replaced with one that keeps nothing,
    so a session handed to one authenticated request never rides along on
    another, least of all the deliberately unauthenticated ones.
    """

    def __init__(self, client: httpx.AsyncClient, admission: AdmissionController,
                 timeout: float = DEFAULT_TIMEOUT, log=None):
        self.client = client
        self.client.cookies = cookieless_jar()
        self.admission = admission
        self.timeout = timeout
        self.log = log or logger

    async def send(
        self,
        method: str,
        url: str,
        body: str = "",
        auth: Optional[httpx.Auth] = None,
        headers: Optional[Dict[str, str]] = None,
        step: str = "request",
    ) -> httpx.Response:
        async with self.admission.slot():
            try:
                return await self.client.request(
                    method,
                    url,
                    content=body.encode() if body else None,
                    auth=auth,
                    headers=headers,
                    timeout=self.timeout,
                )
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                self.log.error("%s failed for %s: %s", step, url, e, extra={"url": url})
                raise ProbeFailure(FailureKind.INCONCLUSIVE, f"{step} failed: {e}") from e
