# apiprobe/probes/parameter_tampering.py
PROBE_NAME = "Parameter Tampering Test"
WEIGHT = 30

import re
from typing import Optional

import httpx

from ..errors import FailureKind, ProbeFailure
from .common import FIELD_PLACEHOLDER, ProbeContext, SUCCESS_STATUSES

TAMPERED_NUMBER = "12345"
EXTRA_FIELD = '"extra_param": "tampered_value"'

_JSON_NUMBER = re.compile(r'(:\s*)(-?\d+)')
_PATH_ID = re.compile(r'\d+(?=[^\d]*$)')


def tamper_value(body: str) -> Optional[str]:
    """Swap one body value for a different numeric literal, if there is one to swap."""
    if FIELD_PLACEHOLDER in body:
        return body.replace(FIELD_PLACEHOLDER, f'"{TAMPERED_NUMBER}"')
    m = _JSON_NUMBER.search(body)
    if m:
        replacement = TAMPERED_NUMBER if m.group(2) != TAMPERED_NUMBER else "54321"
        return body[:m.start(2)] + replacement + body[m.end(2):]
    return None


def add_extra_field(body: str) -> Optional[str]:
    stripped = body.rstrip()
    if not stripped.endswith("}"):
        return None
    inner = stripped[:-1].rstrip()
    sep = "" if inner.endswith("{") else ", "
    return f"{inner}{sep}{EXTRA_FIELD}}}"


def swap_identifier(url: str) -> Optional[str]:
    """Point the last numeric path identifier at a neighbouring object."""
    parsed = httpx.URL(url)
    path = parsed.path
    m = _PATH_ID.search(path)
    if not m:
        return None
    ident = m.group(0)
    swapped = ident[:-1] + str((int(ident[-1]) + 1) % 10)
    return str(parsed.copy_with(path=path[:m.start()] + swapped + path[m.end():]))


async def run(ctx: ProbeContext) -> str:
    e = ctx.endpoint

    # value and extra-field tampering are informational only
    tampered = tamper_value(e.body) if e.body else None
    if tampered is not None:
        resp = await ctx.authenticated(body=tampered, step="request with modified parameters")
        ctx.log.debug("Parameter modification on %s returned %d", e.url, resp.status_code,
                      extra=ctx.fields(status=resp.status_code))

    extended = add_extra_field(e.body) if e.body else None
    if extended is not None:
        resp = await ctx.authenticated(body=extended, step="request with extra parameters")
        ctx.log.debug("Extra parameter on %s returned %d", e.url, resp.status_code,
                      extra=ctx.fields(status=resp.status_code))

    other = swap_identifier(e.url)
    if other is None:
        return "Parameter Tampering Test Passed (no numeric identifier in path)"

    resp = await ctx.authenticated(url=other, step="request with modified URL")
    if resp.status_code in SUCCESS_STATUSES:
        ctx.log.warning("Potential IDOR: %s reachable from %s", other, e.url,
                        extra=ctx.fields(modified_url=other, status=resp.status_code))
        raise ProbeFailure(
            FailureKind.PARAMETER_TAMPERING_DETECTED,
            f"potential IDOR detected: able to access {other} (status: {resp.status_code})",
        )
    return "Parameter Tampering Test Passed"
