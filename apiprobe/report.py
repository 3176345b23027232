# apiprobe/report.py
import json
from typing import List

from .models import EndpointResult
from .probes import auth, auth_bypass, http_method, nosql_injection, parameter_tampering, \
    security_headers, sql_injection, xss
from .scoring import risk_level

RISK_TEXT = {
    auth.PROBE_NAME: "- Authentication vulnerabilities may allow unauthorized access.",
    http_method.PROBE_NAME: "- Improper HTTP method handling could lead to security bypasses.",
    sql_injection.PROBE_NAME: "- SQL injection vulnerabilities pose a significant data breach risk.",
    nosql_injection.PROBE_NAME: "- NoSQL injection vulnerabilities pose a significant data breach risk.",
    xss.PROBE_NAME: "- Cross-site scripting vulnerabilities could allow malicious script execution.",
    security_headers.PROBE_NAME: "- Insecure headers may expose sensitive information or lack security protections.",
    auth_bypass.PROBE_NAME: "- Authentication bypass vulnerabilities could allow unauthorized access to protected resources.",
    parameter_tampering.PROBE_NAME: "- Parameter tampering vulnerabilities could allow attackers to manipulate API requests.",
}
CRITICAL_PROBES = {sql_injection.PROBE_NAME, nosql_injection.PROBE_NAME}


def risk_assessment(result: EndpointResult) -> str:
    risks = [RISK_TEXT[o.name] for o in result.results if not o.passed and o.name in RISK_TEXT]
    if not risks:
        return "No significant risks detected."
    return "\n".join(risks)


def overall_assessment(results: List[EndpointResult]) -> str:
    if not results:
        return "No endpoints scanned."
    average = int(sum(r.score for r in results) / len(results))
    critical = sum(1 for r in results for o in r.results if not o.passed and o.name in CRITICAL_PROBES)

    lines = [
        f"Average Security Score: {average}/100",
        f"Critical Vulnerabilities Detected: {critical}",
        "",
    ]
    level = risk_level(average)
    if level == "low":
        lines.append("Overall security posture is strong, but continuous monitoring is recommended.")
    elif level == "medium":
        lines.append("Moderate security risks detected. Address identified vulnerabilities promptly.")
    else:
        lines.append("Significant security risks identified. Immediate action is required to improve API security.")
    return "\n".join(lines)


def render_text(results: List[EndpointResult]) -> str:
    out = ["", "API Security Scan Detailed Report", "=================================="]
    for result in results:
        out.append("")
        out.append(f"Endpoint: {result.url}")
        out.append(f"Overall Score: {result.score}/100 (risk: {risk_level(result.score)})")
        if result.inconclusive:
            out.append("Note: some probes could not complete; see details below.")
        out.append("Test Results:")
        for o in sorted(result.results, key=lambda o: o.name):
            out.append(f"- {o.name}: {'PASSED' if o.passed else 'FAILED'}")
            out.append(f"  Details: {o.message}")
        out.append("Risk Assessment:")
        out.append(risk_assessment(result))
        out.append("------------------------")
    out.append("")
    out.append("Overall Security Assessment:")
    out.append(overall_assessment(results))
    return "\n".join(out)


def render_json(results: List[EndpointResult]) -> str:
    doc = {
        "scan_results": [
            {
                "endpoint": r.url,
                "method": r.method,
                "score": r.score,
                "risk_level": risk_level(r.score),
                "inconclusive": r.inconclusive,
                "tests": [o.model_dump(mode="json") for o in sorted(r.results, key=lambda o: o.name)],
                "risk_assessment": risk_assessment(r),
            }
            for r in results
        ],
        "overall_assessment": overall_assessment(results),
    }
    return json.dumps(doc, indent=2)
