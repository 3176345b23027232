# apiprobe/models.py
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import FailureKind

VALID_METHODS = {"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE"}

BASE_SCORE = 100

DEFAULT_XSS_PAYLOADS = [
    "<script>alert('XSS')</script>",
    "'><script>alert('XSS')</script>",
    "<img src=x onerror=alert('XSS')>",
    "javascript:alert('XSS')",
]

DEFAULT_NOSQL_PAYLOADS = [
    "{$ne: null}",
    "{$gt: ''}",
    "{$or: [1,1]}",
    "{$where: 'sleep(100)'}",
    "{$regex: '.*'}",
    "{$exists: true}",
    "{$in: [1,2,3]}",
]


class Endpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    body: str = ""

    @field_validator("url")
    @classmethod
    def _url_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("URL is required")
        return v.strip()

    @field_validator("method")
    @classmethod
    def _known_method(cls, v: str) -> str:
        method = (v or "").strip().upper()
        if method not in VALID_METHODS:
            raise ValueError(f"invalid HTTP method '{v}'")
        return method


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = ""
    password: str = ""

    @model_validator(mode="after")
    def _both_or_neither(self):
        if bool(self.username) != bool(self.password):
            raise ValueError("both username and password are required for authentication, or neither")
        return self

    @property
    def present(self) -> bool:
        return bool(self.username and self.password)


class PayloadSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    sql: List[str] = Field(default_factory=list)
    xss: List[str] = Field(default_factory=lambda: list(DEFAULT_XSS_PAYLOADS))
    nosql: List[str] = Field(default_factory=lambda: list(DEFAULT_NOSQL_PAYLOADS))


class AdmissionConfig(BaseModel):
    requests_per_second: int = 10
    max_concurrent_requests: int = 5


class RunConfig(BaseModel):
    endpoints: List[Endpoint] = Field(default_factory=list)
    credentials: Credentials = Field(default_factory=Credentials)
    payloads: PayloadSet = Field(default_factory=PayloadSet)
    rate_limiting: AdmissionConfig = Field(default_factory=AdmissionConfig)
    headers: Dict[str, str] = Field(default_factory=dict)
    auth_headers: Dict[str, str] = Field(default_factory=dict)
    enable_nosql: bool = False
    request_timeout: float = 10.0


class ProbeOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    message: str
    score_delta: int = 0
    kind: Optional[FailureKind] = None


class EndpointState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    JOINED = "joined"


class EndpointResult(BaseModel):
    url: str
    method: str = "GET"
    score: int = BASE_SCORE
    results: List[ProbeOutcome] = Field(default_factory=list)
    state: EndpointState = EndpointState.PENDING
    inconclusive: bool = False


# API surface

class ScanStatus(BaseModel):
    scan_id: str
    status: str
    endpoints: Optional[int] = None


class ScanResult(BaseModel):
    scan_id: str
    status: Optional[str] = None
    results: List[EndpointResult] = Field(default_factory=list)
    error: Optional[str] = None


class ProbeInfo(BaseModel):
    name: str
    weight: int
    default: bool = True
