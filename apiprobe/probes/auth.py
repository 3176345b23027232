# apiprobe/probes/auth.py
PROBE_NAME = "Auth Test"
WEIGHT = 30

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, SUCCESS_STATUSES


async def run(ctx: ProbeContext) -> str:
    ctx.log.debug("Testing authentication on %s", ctx.endpoint.url, extra=ctx.fields())
    resp = await ctx.authenticated()

    if resp.status_code in SUCCESS_STATUSES:
        return "Auth Test Passed"
    if resp.status_code == 401:
        raise ProbeFailure(FailureKind.AUTH_FAILURE, "authentication failed: incorrect credentials")
    if resp.status_code == 403:
        raise ProbeFailure(FailureKind.AUTH_FAILURE, "authentication failed: access forbidden")

    ctx.log.warning("Unexpected status code %d from %s", resp.status_code, ctx.endpoint.url,
                    extra=ctx.fields(status=resp.status_code))
    raise ProbeFailure(FailureKind.ERROR, f"unexpected status code: {resp.status_code}")
