# apiprobe/probes/security_headers.py
PROBE_NAME = "Header Security Test"
WEIGHT = 25

from typing import List

import httpx

from ..errors import FailureKind, ProbeFailure
from .common import ProbeContext

RECOMMENDED_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY or SAMEORIGIN",
    "X-XSS-Protection": "1; mode=block",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "policy directives",
}
DISCLOSURE_HEADERS = ["Server", "X-Powered-By"]
COOKIE_FLAGS = ["Secure", "HttpOnly", "SameSite"]


def _cookie_attributes(cookie: str) -> set:
    parts = cookie.split(";")[1:]
    return {p.split("=", 1)[0].strip().lower() for p in parts if p.strip()}


def header_issues(headers: httpx.Headers) -> List[str]:
    issues: List[str] = []

    for name, recommended in RECOMMENDED_HEADERS.items():
        if not headers.get(name):
            issues.append(f"Missing recommended security header: {name} (recommended value: {recommended})")

    for name in DISCLOSURE_HEADERS:
        value = headers.get(name)
        if value:
            issues.append(f"Insecure information disclosure header: {name} ({value})")

    if headers.get("Access-Control-Allow-Origin", "").strip() == "*":
        issues.append("Insecure CORS policy: Access-Control-Allow-Origin set to wildcard (*)")

    for cookie in headers.get_list("Set-Cookie"):
        attrs = _cookie_attributes(cookie)
        for flag in COOKIE_FLAGS:
            if flag.lower() not in attrs:
                issues.append(f"Cookie missing {flag} attribute: {cookie}")

    return issues


async def run(ctx: ProbeContext) -> str:
    resp = await ctx.authenticated(extra_headers=ctx.headers)
    issues = header_issues(resp.headers)
    if issues:
        ctx.log.warning("Header security issues on %s: %d", ctx.endpoint.url, len(issues),
                        extra=ctx.fields(issues=issues))
        raise ProbeFailure(
            FailureKind.HEADER_SECURITY_ISSUE,
            "header security issues detected: " + "; ".join(issues),
        )
    return "Header Security Test Passed"
