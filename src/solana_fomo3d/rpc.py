from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def get_slot(self, commitment: str = "finalized") -> int:
        """Returns the current slot."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getSlot",
            "params": [{"commitment": commitment}],
        }
        data = self._post(payload)
        return int(data["result"])

    def get_block_time(self, slot: int) -> int:
        """Returns the Unix timestamp for a given slot."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getBlockTime",
            "params": [slot],
        }
        data = self._post(payload)
        if data.get("result") is None:
            raise RuntimeError(f"Timestamp not available for slot {slot}")
        return int(data["result"])

    def get_epoch(self, commitment: str = "finalized") -> int:
        """Returns the current epoch number."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getEpochInfo",
            "params": [{"commitment": commitment}],
        }
        data = self._post(payload)
        result = data.get("result")
        if not result or "epoch" not in result:
            raise RuntimeError("getEpochInfo returned no epoch.")
        return int(result["epoch"])

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RuntimeError(f"RPC error: {data['error']}")
        return data
