import asyncio
import logging

import httpx
import pytest

from apiprobe.admission import AdmissionController
from apiprobe.errors import FailureKind, ScanConfigurationError
from apiprobe.models import EndpointState, RunConfig
from apiprobe.probe_set import DEFAULT_PROBES, WEIGHTS
from apiprobe.scan_core import run_scan
from apiprobe.transport import GatedClient


def make_config(*endpoints, **kw):
    data = {
        "endpoints": [
            e if isinstance(e, dict) else {"url": e, "method": "GET"} for e in endpoints
        ],
        "credentials": {"username": "admin", "password": "password"},
        "payloads": {"sql": ["' OR '1'='1"]},
    }
    data.update(kw)
    return RunConfig.model_validate(data)


def scan(config, handler, **kw):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await run_scan(config, client=client, **kw)
    return asyncio.run(go())


def ok(request):
    return httpx.Response(200, text="ok")


def test_every_endpoint_gets_every_probe_sorted():
    config = make_config("http://api.test/a", "http://api.test/b", "http://api.test/c")
    results = scan(config, ok)

    assert [r.url for r in results] == ["http://api.test/a", "http://api.test/b", "http://api.test/c"]
    names = sorted(p.name for p in DEFAULT_PROBES)
    for r in results:
        assert [o.name for o in r.results] == names
        assert r.state is EndpointState.JOINED


def test_score_is_base_minus_failed_weights():
    config = make_config("http://api.test/a", "http://api.test/items/1")
    for r in scan(config, ok):
        failed = sum(WEIGHTS[o.name] for o in r.results if not o.passed)
        assert r.score == 100 - failed
        for o in r.results:
            assert o.score_delta == (0 if o.passed else -WEIGHTS[o.name])


def test_score_goes_negative():
    # open to anyone without credentials, forbidden to everyone presenting them
    def handler(request):
        if "authorization" in request.headers:
            return httpx.Response(403)
        return httpx.Response(200)

    [result] = scan(make_config("http://api.test/items/1"), handler)
    failed = {o.name for o in result.results if not o.passed}
    assert "Auth Test" in failed
    assert "Auth Bypass Test" in failed
    assert result.score < 0
    assert result.score == 100 - sum(WEIGHTS[n] for n in failed)


def test_in_flight_bound_holds_across_endpoints():
    class CountingGate(AdmissionController):
        peak = 0

        async def acquire(self):
            await super().acquire()
            CountingGate.peak = max(CountingGate.peak, self.in_flight)

    async def handler(request):
        await asyncio.sleep(0.005)
        return httpx.Response(200)

    async def go():
        gate = CountingGate(1000, 2)
        config = make_config(*[f"http://api.test/e{i}" for i in range(4)])
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await run_scan(config, client=client, admission=gate)

    asyncio.run(go())
    assert CountingGate.peak == 2


@pytest.mark.parametrize("config", [
    RunConfig(payloads={"sql": ["x"]}),
    RunConfig(endpoints=[{"url": "http://api.test/a"}]),
    RunConfig(endpoints=[{"url": "http://api.test/a"}], payloads={"sql": ["x"], "nosql": []},
              enable_nosql=True),
])
def test_unscannable_config_rejected_before_any_request(config):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    with pytest.raises(ScanConfigurationError):
        scan(config, handler)
    assert seen == []


def test_unreachable_endpoint_does_not_disturb_others():
    def handler(request):
        if request.url.host == "down.test":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text="ok")

    down, up = scan(make_config("http://down.test/a", "http://api.test/a"), handler)
    assert all(o.kind is FailureKind.INCONCLUSIVE for o in down.results if o.name != "Parameter Tampering Test")
    assert down.inconclusive
    assert not up.inconclusive
    assert up.results == scan(make_config("http://api.test/a"), handler)[0].results


def test_nosql_probe_is_opt_in():
    [plain] = scan(make_config("http://api.test/a"), ok)
    [extended] = scan(make_config("http://api.test/a", enable_nosql=True), ok)
    assert len(plain.results) == 7
    assert len(extended.results) == 8
    assert "NoSQL Injection Test" in {o.name for o in extended.results}


def test_cancel_before_start_skips_everything():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    async def go():
        event = asyncio.Event()
        event.set()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await run_scan(make_config("http://api.test/a"), cancel_event=event, client=client)

    [result] = asyncio.run(go())
    assert seen == []
    assert result.inconclusive
    assert result.state is EndpointState.JOINED
    assert all(o.message == "probe skipped: scan cancelled" for o in result.results)


def test_cancel_mid_scan_abandons_live_probes():
    async def handler(request):
        await asyncio.sleep(30)
        return httpx.Response(200)

    async def go():
        event = asyncio.Event()
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, event.set)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await asyncio.wait_for(
                run_scan(make_config("http://api.test/items/1", "http://api.test/b/2"),
                         cancel_event=event, client=client),
                timeout=5,
            )

    results = asyncio.run(go())
    for r in results:
        assert r.state is EndpointState.JOINED
        assert len(r.results) == 7
        assert all(o.kind is FailureKind.INCONCLUSIVE for o in r.results)


def test_repeat_scans_agree():
    config = make_config("http://api.test/a", "http://api.test/items/3")
    first = scan(config, ok)
    second = scan(config, ok)
    assert [r.model_dump() for r in first] == [r.model_dump() for r in second]


def test_injected_logger_receives_records(caplog):
    log = logging.getLogger("apiprobe.test.injected")
    with caplog.at_level(logging.DEBUG, logger="apiprobe.test.injected"):
        scan(make_config("http://api.test/a"), ok, log=log)
    messages = [r.getMessage() for r in caplog.records if r.name == "apiprobe.test.injected"]
    assert any("Starting security tests on 1 endpoints" in m for m in messages)
    assert any("Security tests completed" in m for m in messages)


def test_session_cookie_never_reaches_unauthenticated_requests():
    carried = []

    def handler(request):
        if "session=abc" in request.headers.get("cookie", ""):
            carried.append(request)
            return httpx.Response(200, text="ok")
        if request.headers.get("authorization") == "Basic YWRtaW46cGFzc3dvcmQ=":
            return httpx.Response(200, text="ok", headers={"Set-Cookie": "session=abc; Path=/"})
        return httpx.Response(401)

    for _ in range(3):
        [result] = scan(make_config("http://api.test/a"), handler)
        bypass = next(o for o in result.results if o.name == "Auth Bypass Test")
        assert bypass.passed, bypass.message
    assert carried == []


def test_injected_client_stops_keeping_cookies():
    def handler(request):
        return httpx.Response(200, headers={"Set-Cookie": "session=abc; Path=/"})

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            http = GatedClient(client, AdmissionController(1000, 5))
            await http.send("GET", "http://api.test/a")
            return await http.send("GET", "http://api.test/a")

    assert "cookie" not in asyncio.run(go()).request.headers
