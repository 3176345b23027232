# apiprobe/scan_core.py
import asyncio
import logging
from typing import List, Optional, Set, Union

import httpx

from .admission import AdmissionController
from .errors import FailureKind, ProbeFailure, ScanConfigurationError
from .models import EndpointResult, EndpointState, ProbeOutcome, RunConfig
from .probe_set import ProbeSpec, probes_for
from .probes.common import ProbeContext
from .scoring import compute_score, outcome
from .transport import GatedClient, cookieless_jar

logger = logging.getLogger(__name__)

Log = Union[logging.Logger, logging.LoggerAdapter]


def validate_run_config(config: RunConfig) -> None:
    if not config.endpoints:
        raise ScanConfigurationError("at least one API endpoint is required")
    if not config.payloads.sql:
        raise ScanConfigurationError("at least one injection payload is required")
    if not config.payloads.xss:
        raise ScanConfigurationError("at least one XSS payload is required")
    if config.enable_nosql and not config.payloads.nosql:
        raise ScanConfigurationError("NoSQL probe enabled without NoSQL payloads")


async def _execute_probe(spec: ProbeSpec, ctx: ProbeContext, cancel_event: asyncio.Event,
                         log: Log) -> ProbeOutcome:
    if cancel_event.is_set():
        return outcome(spec.name, spec.weight, False, "probe skipped: scan cancelled",
                       FailureKind.INCONCLUSIVE)
    try:
        message = await spec.run(ctx)
    except ProbeFailure as e:
        log.warning("%s failed for %s: %s", spec.name, ctx.endpoint.url, e.message,
                    extra=ctx.fields(probe=spec.name, kind=e.kind.value))
        return outcome(spec.name, spec.weight, False, e.message, e.kind)
    except asyncio.CancelledError:
        if not cancel_event.is_set():
            raise
        return outcome(spec.name, spec.weight, False, "probe abandoned: scan cancelled",
                       FailureKind.INCONCLUSIVE)
    except Exception as e:
        log.exception("%s crashed for %s", spec.name, ctx.endpoint.url,
                      extra=ctx.fields(probe=spec.name))
        return outcome(spec.name, spec.weight, False, f"probe error: {e}", FailureKind.ERROR)

    log.debug("%s passed for %s", spec.name, ctx.endpoint.url, extra=ctx.fields(probe=spec.name))
    return outcome(spec.name, spec.weight, True, message)


async def _run_endpoint(result: EndpointResult, ctx: ProbeContext, probes: List[ProbeSpec],
                        cancel_event: asyncio.Event, live: Set[asyncio.Task], log: Log) -> None:
    result.state = EndpointState.RUNNING
    log.debug("Testing endpoint %s", ctx.endpoint.url, extra=ctx.fields())

    tasks = []
    for spec in probes:
        task = asyncio.ensure_future(_execute_probe(spec, ctx, cancel_event, log))
        live.add(task)
        task.add_done_callback(live.discard)
        tasks.append(task)

    # join barrier: one slot per probe, filled in probe order
    slots = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes: List[ProbeOutcome] = []
    for spec, slot in zip(probes, slots):
        if isinstance(slot, ProbeOutcome):
            outcomes.append(slot)
        elif isinstance(slot, asyncio.CancelledError):
            outcomes.append(outcome(spec.name, spec.weight, False,
                                    "probe abandoned: scan cancelled", FailureKind.INCONCLUSIVE))
        else:
            outcomes.append(outcome(spec.name, spec.weight, False, f"probe error: {slot}",
                                    FailureKind.ERROR))

    result.results = sorted(outcomes, key=lambda o: o.name)
    result.score = compute_score(result.results)
    result.inconclusive = any(o.kind is FailureKind.INCONCLUSIVE for o in result.results)
    result.state = EndpointState.JOINED


async def _cancel_on(cancel_event: asyncio.Event, live: Set[asyncio.Task]) -> None:
    await cancel_event.wait()
    for task in list(live):
        task.cancel()


async def _run(config: RunConfig, client: httpx.AsyncClient, admission: AdmissionController,
               cancel_event: asyncio.Event, log: Log) -> List[EndpointResult]:
    http = GatedClient(client, admission, timeout=config.request_timeout, log=log)
    probes = probes_for(config)
    results = [EndpointResult(url=e.url, method=e.method) for e in config.endpoints]
    live: Set[asyncio.Task] = set()

    contexts = [
        ProbeContext(
            endpoint=e,
            credentials=config.credentials,
            http=http,
            sql_payloads=config.payloads.sql,
            xss_payloads=config.payloads.xss,
            nosql_payloads=config.payloads.nosql,
            headers=config.headers,
            auth_headers=config.auth_headers,
            log=log,
        )
        for e in config.endpoints
    ]

    watcher = asyncio.ensure_future(_cancel_on(cancel_event, live))
    try:
        await asyncio.gather(*(
            _run_endpoint(result, ctx, probes, cancel_event, live, log)
            for result, ctx in zip(results, contexts)
        ))
    finally:
        watcher.cancel()
    return results


async def run_scan(
    config: RunConfig,
    cancel_event: Optional[asyncio.Event] = None,
    log: Optional[Log] = None,
    client: Optional[httpx.AsyncClient] = None,
    admission: Optional[AdmissionController] = None,
) -> List[EndpointResult]:
    """
    Probe every configured endpoint and return one EndpointResult per endpoint,
    in configuration order.

    Raises ScanConfigurationError before any request when the configuration
    cannot be scanned. Probe problems never raise; they become failed outcomes.
    """
    validate_run_config(config)
    log = log or logger
    cancel_event = cancel_event or asyncio.Event()
    admission = admission or AdmissionController(
        config.rate_limiting.requests_per_second,
        config.rate_limiting.max_concurrent_requests,
    )

    log.info("Starting security tests on %d endpoints", len(config.endpoints),
             extra={"endpoints_count": len(config.endpoints)})

    if client is not None:
        results = await _run(config, client, admission, cancel_event, log)
    else:
        timeout = httpx.Timeout(config.request_timeout)
        async with httpx.AsyncClient(timeout=timeout, verify=False, cookies=cookieless_jar()) as client:
            results = await _run(config, client, admission, cancel_event, log)

    log.info("Security tests completed for %d endpoints", len(results),
             extra={"endpoints_count": len(results)})
    return results


async def run_background_scan(scan_id: str, config: RunConfig, store: dict) -> None:
    try:
        results = await run_scan(config)
    except Exception as e:
        logger.exception("Scan %s failed: %s", scan_id, e)
        store[scan_id]["status"] = "failed"
        store[scan_id]["error"] = str(e)
        return
    store[scan_id]["status"] = "done"
    store[scan_id]["results"] = [r.model_dump(mode="json") for r in results]
