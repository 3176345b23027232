# apiprobe/probes/sql_injection.py
PROBE_NAME = "Injection Test"
WEIGHT = 50

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, UNAUTHORIZED_STATUSES, inject
from .indicators import sql_injection_indicated


async def baseline_body(ctx: ProbeContext, test: str) -> str:
    """Fetch the unmodified response the payload responses are diffed against."""
    baseline = await ctx.authenticated(step="baseline request")
    if baseline.status_code in UNAUTHORIZED_STATUSES:
        ctx.log.warning("Cannot perform %s test on %s: baseline status %d", test, ctx.endpoint.url,
                        baseline.status_code, extra=ctx.fields(status=baseline.status_code))
        raise ProbeFailure(
            FailureKind.INCONCLUSIVE,
            f"cannot perform {test} test: baseline request failed with status {baseline.status_code}",
        )
    return baseline.text


async def run(ctx: ProbeContext) -> str:
    ctx.log.debug("Testing injection on %s with %d payloads", ctx.endpoint.url,
                  len(ctx.sql_payloads), extra=ctx.fields())
    baseline = await baseline_body(ctx, "injection")

    for payload in ctx.sql_payloads:
        resp = await ctx.authenticated(body=inject(ctx.endpoint.body, payload))
        if sql_injection_indicated(resp.text, baseline):
            ctx.log.warning("Potential SQL injection on %s", ctx.endpoint.url,
                            extra=ctx.fields(payload=payload))
            raise ProbeFailure(
                FailureKind.INJECTION_DETECTED,
                f"potential SQL injection detected with payload: {payload}",
            )
    return "Injection Test Passed"
