"""
Chain data sources.

A source answers ``query_activity(identity, network)`` with the four
activity signals for that network, or raises SourceUnavailable. Sources do
not retry: retry policy belongs to whoever calls the scoring engine.

RpcChainSource reads:
- transaction count via JSON-RPC ``eth_getTransactionCount``
- contract deployments via an Etherscan-compatible explorer ``txlist``
  (optional; without an explorer URL the deployment signal is False)
"""

from typing import Any, Dict, List, Optional, Protocol

import httpx

from chainfolio.engines.scoring.signals import NetworkActivity, NetworkConfig
from chainfolio.kernel.errors import SourceUnavailable
from chainfolio.logging_config import get_logger

logger = get_logger(__name__)

HTTP_TIMEOUT = 10.0
EXPLORER_PAGE_SIZE = 1000


class ChainDataSource(Protocol):
    """Anything that can report activity for an identity on a network."""

    async def query_activity(self, identity: str, network: NetworkConfig) -> NetworkActivity:
        ...


def _parse_quantity(value: Any) -> int:
    """Decode a JSON-RPC hex quantity such as '0x1a'."""
    if not isinstance(value, str) or not value.startswith("0x"):
        raise ValueError(f"Not a hex quantity: {value!r}")
    return int(value, 16)


def _parse_rpc_result(data: Any) -> Any:
    if not isinstance(data, dict):
        raise ValueError("JSON-RPC response is not an object")
    if data.get("error"):
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise ValueError(f"JSON-RPC error: {message}")
    if "result" not in data:
        raise ValueError("JSON-RPC response has no result")
    return data["result"]


def _parse_explorer_txlist(data: Any) -> List[Dict[str, Any]]:
    """Transactions from an Etherscan-style txlist response."""
    if not isinstance(data, dict):
        raise ValueError("Explorer response is not an object")
    result = data.get("result")
    if str(data.get("status")) == "1" and isinstance(result, list):
        return result
    # status 0 is also how "no transactions" is reported
    message = str(data.get("message", ""))
    if isinstance(result, list) and message.lower().startswith("no transactions"):
        return []
    raise ValueError(f"Explorer error: {message or result}")


def _is_deployment_by(tx: Dict[str, Any], identity: str) -> bool:
    sender = str(tx.get("from", "")).lower()
    if sender != identity:
        return False
    return bool(tx.get("contractAddress")) or not tx.get("to")


class RpcChainSource:
    """
    Chain data over HTTP (JSON-RPC node plus optional block explorer).

    ``transport`` lets tests inject httpx.MockTransport.
    """

    def __init__(
        self,
        timeout: float = HTTP_TIMEOUT,
        explorer_api_key: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.explorer_api_key = explorer_api_key
        self.transport = transport

    async def query_activity(self, identity: str, network: NetworkConfig) -> NetworkActivity:
        identity = identity.lower()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                tx_count = await self._transaction_count(client, identity, network)
                deployed = False
                if network.explorer_api_url:
                    deployed = await self._has_deployed_contract(client, identity, network)
        except httpx.TimeoutException as e:
            logger.warning("Chain source timed out", extra={"network": network.name, "error": str(e)})
            raise SourceUnavailable(network.name, "timeout") from e
        except httpx.HTTPError as e:
            logger.warning("Chain source request failed", extra={"network": network.name, "error": str(e)})
            raise SourceUnavailable(network.name, f"network error: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Chain source returned bad payload", extra={"network": network.name, "error": str(e)})
            raise SourceUnavailable(network.name, f"invalid response: {e}") from e

        interacted = tx_count > 0
        return NetworkActivity(
            network=network.name,
            has_deployed_contract=deployed,
            has_rollup_interaction=interacted and not network.is_mainnet,
            transaction_count=tx_count,
            has_mainnet_interaction=interacted and network.is_mainnet,
        )

    async def _transaction_count(
        self,
        client: httpx.AsyncClient,
        identity: str,
        network: NetworkConfig,
    ) -> int:
        response = await client.post(
            network.rpc_url,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "eth_getTransactionCount",
                "params": [identity, "latest"],
            },
        )
        if response.status_code != 200:
            raise httpx.HTTPStatusError(
                f"RPC returned {response.status_code}",
                request=response.request,
                response=response,
            )
        return _parse_quantity(_parse_rpc_result(response.json()))

    async def _has_deployed_contract(
        self,
        client: httpx.AsyncClient,
        identity: str,
        network: NetworkConfig,
    ) -> bool:
        params = {
            "module": "account",
            "action": "txlist",
            "address": identity,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": EXPLORER_PAGE_SIZE,
            "sort": "asc",
        }
        if self.explorer_api_key:
            params["apikey"] = self.explorer_api_key
        response = await client.get(network.explorer_api_url, params=params)
        if response.status_code != 200:
            raise httpx.HTTPStatusError(
                f"Explorer returned {response.status_code}",
                request=response.request,
                response=response,
            )
        transactions = _parse_explorer_txlist(response.json())
        return any(_is_deployment_by(tx, identity) for tx in transactions)


def default_networks(
    rpc_url_sepolia: str,
    rpc_url_base_sepolia: str,
    explorer_api_sepolia: Optional[str] = None,
    explorer_api_base_sepolia: Optional[str] = None,
    mainnet_network: str = "sepolia",
) -> List[NetworkConfig]:
    """Sepolia (L1) and Base Sepolia (rollup)."""
    return [
        NetworkConfig(
            name="sepolia",
            chain_id=11155111,
            rpc_url=rpc_url_sepolia,
            explorer_api_url=explorer_api_sepolia,
            is_mainnet=mainnet_network == "sepolia",
        ),
        NetworkConfig(
            name="base-sepolia",
            chain_id=84532,
            rpc_url=rpc_url_base_sepolia,
            explorer_api_url=explorer_api_base_sepolia,
            is_mainnet=mainnet_network == "base-sepolia",
        ),
    ]
