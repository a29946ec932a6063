"""
Fetch raw transactions from a zebrad / zcashd JSON-RPC endpoint.
"""

import logging
from typing import Any, Optional

import requests

from . import config
from .errors import RpcError
from .serialization import decode_hex

logger = logging.getLogger(__name__)


def rpc_call(
    method: str,
    params: list = None,
    rpc_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Make a JSON-RPC call to the configured node."""
    url = rpc_url or config.RPC_URL
    payload = {
        "jsonrpc": "2.0",
        "id": 1,
        "method": method,
        "params": params or [],
    }
    auth = (config.RPC_USER, config.RPC_PASS) if config.RPC_USER else None
    try:
        resp = requests.post(
            url,
            json=payload,
            auth=auth,
            timeout=timeout or config.RPC_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.exceptions.RequestException as e:
        raise RpcError(f"RPC {method} to {url} failed: {e}") from e
    except ValueError as e:
        raise RpcError(f"RPC {method} returned invalid JSON: {e}") from e

    if data.get("error"):
        raise RpcError(f"RPC error: {data['error']}")
    return data.get("result")


def fetch_raw_transaction(txid: str, rpc_url: Optional[str] = None) -> bytes:
    """Raw bytes of transaction ``txid`` via ``getrawtransaction``."""
    decode_hex(txid, "txid", 32)
    result = rpc_call("getrawtransaction", [txid, 0], rpc_url=rpc_url)
    if not isinstance(result, str) or not result:
        raise RpcError(f"Transaction {txid} not returned by node")
    raw = decode_hex(result, "tx")
    logger.debug("Fetched transaction %s (%d bytes)", txid, len(raw))
    return raw
