import asyncio
import base64

import httpx
import pytest

from apiprobe.admission import AdmissionController
from apiprobe.models import Credentials, Endpoint
from apiprobe.probes.common import ProbeContext
from apiprobe.transport import GatedClient

USERNAME = "admin"
PASSWORD = "password"


def _basic_auth(request: httpx.Request):
    header = request.headers.get("authorization", "")
    if not header.lower().startswith("basic "):
        return None
    user, _, pw = base64.b64decode(header[6:]).decode().partition(":")
    return user, pw


@pytest.fixture
def auth_of():
    """Decode the basic-auth pair of a request, or None."""
    return _basic_auth


@pytest.fixture
def creds():
    return Credentials(username=USERNAME, password=PASSWORD)


@pytest.fixture
def run_probe(creds):
    """Run one probe module against a MockTransport handler."""
    def _run(module, handler, url="http://api.test/resource", method="GET", body="", **ctx_kw):
        credentials = ctx_kw.pop("credentials", creds)

        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                ctx = ProbeContext(
                    endpoint=Endpoint(url=url, method=method, body=body),
                    credentials=credentials,
                    http=GatedClient(client, AdmissionController(1000, 10)),
                    **ctx_kw,
                )
                return await module.run(ctx)

        return asyncio.run(go())
    return _run
