# apiprobe/probes/common.py
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from ..models import Credentials, Endpoint
from ..transport import GatedClient

SUCCESS_STATUSES = {200, 201, 202}
UNAUTHORIZED_STATUSES = {401, 403}

BODY_MARKER = "%s"
FIELD_PLACEHOLDER = '"value"'


@dataclass
class ProbeContext:
    """Everything a probe may touch for one endpoint."""
    endpoint: Endpoint
    credentials: Credentials
    http: GatedClient
    sql_payloads: List[str] = field(default_factory=list)
    xss_payloads: List[str] = field(default_factory=list)
    nosql_payloads: List[str] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    auth_headers: Dict[str, str] = field(default_factory=dict)
    log: logging.Logger = field(default_factory=lambda: logging.getLogger("apiprobe.probes"))

    @property
    def basic_auth(self) -> Optional[httpx.BasicAuth]:
        if not self.credentials.present:
            return None
        if any(k.lower() == "authorization" for k in self.auth_headers):
            return None
        return httpx.BasicAuth(self.credentials.username, self.credentials.password)

    async def authenticated(self, body: Optional[str] = None, url: Optional[str] = None,
                            extra_headers: Optional[Dict[str, str]] = None,
                            step: str = "request") -> httpx.Response:
        """Send the endpoint's request with the configured credentials attached."""
        headers = dict(self.auth_headers)
        if extra_headers:
            headers.update(extra_headers)
        return await self.http.send(
            self.endpoint.method,
            url or self.endpoint.url,
            body=self.endpoint.body if body is None else body,
            auth=self.basic_auth,
            headers=headers or None,
            step=step,
        )

    def fields(self, **kw) -> Dict[str, object]:
        out = {"url": self.endpoint.url, "method": self.endpoint.method}
        out.update(kw)
        return out


def inject(template: str, payload: str, prefer_field: bool = False) -> str:
    """
    Place *payload* into a body template.

    ``%s`` marks a raw substitution point; a ``"value"`` JSON string marks a
    field whose value is replaced. Field probes (XSS) look for the field
    first. A template with neither is replaced by the payload itself.
    """
    if prefer_field and FIELD_PLACEHOLDER in template:
        return template.replace(FIELD_PLACEHOLDER, f'"{payload}"')
    if BODY_MARKER in template:
        return template.replace(BODY_MARKER, payload)
    if FIELD_PLACEHOLDER in template:
        return template.replace(FIELD_PLACEHOLDER, f'"{payload}"')
    return payload
