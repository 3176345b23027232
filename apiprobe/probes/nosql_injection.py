# apiprobe/probes/nosql_injection.py
PROBE_NAME = "NoSQL Injection Test"
WEIGHT = 50

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, inject
from .indicators import nosql_injection_indicated
from .sql_injection import baseline_body


async def run(ctx: ProbeContext) -> str:
    baseline = await baseline_body(ctx, "NoSQL injection")

    for payload in ctx.nosql_payloads:
        resp = await ctx.authenticated(body=inject(ctx.endpoint.body, payload))
        if nosql_injection_indicated(resp.text, baseline, payload):
            ctx.log.warning("Potential NoSQL injection on %s", ctx.endpoint.url,
                            extra=ctx.fields(payload=payload))
            raise ProbeFailure(
                FailureKind.INJECTION_DETECTED,
                f"potential NoSQL injection detected with payload: {payload}",
            )
    return "NoSQL Injection Test Passed"
