import json

import httpx
import pytest

from solana_fomo3d.clock import ClockSample, RpcClock
from solana_fomo3d.rpc import RpcClient

URL = "http://rpc.test"


def cluster(slot=250_000_123, block_time=1_700_000_042, epoch=580):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        calls.append(body["method"])
        if body["method"] == "getSlot":
            result = slot
        elif body["method"] == "getBlockTime":
            assert body["params"] == [slot]
            result = block_time
        elif body["method"] == "getEpochInfo":
            result = None if epoch is None else {"epoch": epoch, "slotIndex": 12}
        else:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32601}})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})

    return httpx.MockTransport(handler), calls


def test_client_methods():
    transport, calls = cluster()
    rpc = RpcClient(URL, transport=transport)
    assert rpc.get_slot() == 250_000_123
    assert rpc.get_block_time(250_000_123) == 1_700_000_042
    assert rpc.get_epoch() == 580
    assert calls == ["getSlot", "getBlockTime", "getEpochInfo"]
    rpc.close()


def test_rpc_clock_samples_the_cluster():
    transport, _ = cluster()
    rpc = RpcClient(URL, transport=transport)
    sample = RpcClock(rpc).sample()
    assert sample == ClockSample(unix_timestamp=1_700_000_042, slot=250_000_123, epoch=580)
    assert RpcClock(rpc).now() == 1_700_000_042


def test_missing_block_time():
    transport, _ = cluster(block_time=None)
    rpc = RpcClient(URL, transport=transport)
    with pytest.raises(RuntimeError, match="Timestamp not available"):
        rpc.get_block_time(250_000_123)


def test_missing_epoch():
    transport, _ = cluster(epoch=None)
    rpc = RpcClient(URL, transport=transport)
    with pytest.raises(RuntimeError, match="no epoch"):
        rpc.get_epoch()


def test_rpc_error_and_http_error():
    transport, _ = cluster()
    rpc = RpcClient(URL, transport=transport)
    with pytest.raises(RuntimeError, match="RPC error"):
        rpc._post({"jsonrpc": "2.0", "id": 1, "method": "getNothing"})

    failing = httpx.MockTransport(lambda request: httpx.Response(503))
    with pytest.raises(httpx.HTTPStatusError):
        RpcClient(URL, transport=failing).get_slot()
