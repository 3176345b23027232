# apiprobe/probe_set.py
from typing import Awaitable, Callable, List, NamedTuple

from .models import ProbeInfo, RunConfig
from .probes import (
    auth,
    auth_bypass,
    http_method,
    nosql_injection,
    parameter_tampering,
    security_headers,
    sql_injection,
    xss,
)
from .probes.common import ProbeContext


class ProbeSpec(NamedTuple):
    name: str
    weight: int
    run: Callable[[ProbeContext], Awaitable[str]]


def _spec(module) -> ProbeSpec:
    return ProbeSpec(module.PROBE_NAME, module.WEIGHT, module.run)


DEFAULT_PROBES: List[ProbeSpec] = [
    _spec(auth),
    _spec(http_method),
    _spec(sql_injection),
    _spec(xss),
    _spec(security_headers),
    _spec(auth_bypass),
    _spec(parameter_tampering),
]

OPTIONAL_PROBES: List[ProbeSpec] = [
    _spec(nosql_injection),
]

WEIGHTS = {p.name: p.weight for p in DEFAULT_PROBES + OPTIONAL_PROBES}


def probes_for(config: RunConfig) -> List[ProbeSpec]:
    probes = list(DEFAULT_PROBES)
    if config.enable_nosql:
        probes.extend(OPTIONAL_PROBES)
    return probes


def available_probes() -> List[ProbeInfo]:
    return [ProbeInfo(name=p.name, weight=p.weight, default=True) for p in DEFAULT_PROBES] + \
        [ProbeInfo(name=p.name, weight=p.weight, default=False) for p in OPTIONAL_PROBES]
