# apiprobe/probes/xss.py
PROBE_NAME = "XSS Test"
WEIGHT = 40

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, inject
from .sql_injection import baseline_body

SCRIPT_CONTEXTS = [
    "<script>{}</script>",
    'onload="{}"',
    'onerror="{}"',
    'onclick="{}"',
]
TAG_CONTEXTS = [
    "<{}>",
    ">{}<",
]


def reflected_unescaped(body: str, baseline: str, payload: str) -> bool:
    if payload not in body or payload in baseline:
        return False
    return any(ctx.format(payload) in body for ctx in SCRIPT_CONTEXTS + TAG_CONTEXTS)


async def run(ctx: ProbeContext) -> str:
    ctx.log.debug("Testing XSS on %s with %d payloads", ctx.endpoint.url,
                  len(ctx.xss_payloads), extra=ctx.fields())
    baseline = await baseline_body(ctx, "XSS")

    for payload in ctx.xss_payloads:
        resp = await ctx.authenticated(body=inject(ctx.endpoint.body, payload, prefer_field=True))
        if reflected_unescaped(resp.text, baseline, payload):
            ctx.log.warning("Potential XSS on %s", ctx.endpoint.url, extra=ctx.fields(payload=payload))
            raise ProbeFailure(FailureKind.XSS_DETECTED, f"potential XSS detected with payload: {payload}")
    return "XSS Test Passed"
