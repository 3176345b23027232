# apiprobe/probes/auth_bypass.py
PROBE_NAME = "Auth Bypass Test"
WEIGHT = 35

import httpx

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext, SUCCESS_STATUSES

INVALID_USER = "invalid_user"
INVALID_PASSWORD = "invalid_pass"
LOOPBACK = "127.0.0.1"


def spoofed_headers(url: str) -> dict:
    return {
        "X-Forwarded-For": LOOPBACK,
        "X-Original-URL": url,
        "X-Rewrite-URL": url,
        "X-Originating-IP": LOOPBACK,
    }


async def run(ctx: ProbeContext) -> str:
    e = ctx.endpoint
    spoofed = spoofed_headers(e.url)
    variants = [
        ("without authentication", None, None),
        ("with invalid credentials", httpx.BasicAuth(INVALID_USER, INVALID_PASSWORD), None),
        ("with spoofed headers (" + ", ".join(spoofed) + ")", None, spoofed),
    ]

    for label, auth, headers in variants:
        resp = await ctx.http.send(e.method, e.url, body=e.body, auth=auth, headers=headers,
                                   step=f"request {label}")
        if resp.status_code in SUCCESS_STATUSES:
            ctx.log.warning("Authentication bypass on %s %s", e.url, label,
                            extra=ctx.fields(status=resp.status_code))
            raise ProbeFailure(
                FailureKind.AUTH_BYPASS_DETECTED,
                f"authentication bypass detected: endpoint accessible {label} (status: {resp.status_code})",
            )
    return "Auth Bypass Test Passed"
