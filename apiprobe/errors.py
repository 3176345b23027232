# apiprobe/errors.py
from enum import Enum


class FailureKind(str, Enum):
    AUTH_FAILURE = "auth_failure"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INJECTION_DETECTED = "injection_detected"
    XSS_DETECTED = "xss_detected"
    HEADER_SECURITY_ISSUE = "header_security_issue"
    AUTH_BYPASS_DETECTED = "auth_bypass_detected"
    PARAMETER_TAMPERING_DETECTED = "parameter_tampering_detected"
    INCONCLUSIVE = "inconclusive"
    ERROR = "error"

    @property
    def is_finding(self) -> bool:
        """True when the kind confirms a weakness rather than a failed evaluation."""
        return self not in (FailureKind.INCONCLUSIVE, FailureKind.ERROR)


class ProbeFailure(Exception):
    """Raised by a probe to report anything other than a pass."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self):
        return f"ProbeFailure({self.kind.value!r}, {self.message!r})"


class ScanConfigurationError(ValueError):
    """The run configuration cannot be scanned at all."""
