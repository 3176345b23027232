# apiprobe/probes/http_method.py
PROBE_NAME = "HTTP Method Test"
WEIGHT = 20

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, SUCCESS_STATUSES


async def run(ctx: ProbeContext) -> str:
    resp = await ctx.authenticated()

    # 401/403 belong to the auth probe; only method handling is judged here
    if resp.status_code in SUCCESS_STATUSES:
        return "HTTP Method Test Passed"
    if resp.status_code in (404, 405):
        raise ProbeFailure(
            FailureKind.METHOD_NOT_ALLOWED,
            f"disallowed method {ctx.endpoint.method} returned status: {resp.status_code}",
        )
    raise ProbeFailure(FailureKind.ERROR, f"unexpected status code: {resp.status_code}")
