"""
Activity signals.

Per-network observations come back from chain data sources as
NetworkActivity; aggregate_signals folds them into the single
ActivitySignals set that the scorer consumes. Nothing here is persisted.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class NetworkConfig(BaseModel):
    """One supported network and where to read it from."""

    model_config = ConfigDict(frozen=True)

    name: str
    chain_id: int
    rpc_url: str
    explorer_api_url: Optional[str] = None
    is_mainnet: bool = False


class NetworkActivity(BaseModel):
    """Signals reported for one identity on one network."""

    model_config = ConfigDict(frozen=True)

    network: str
    has_deployed_contract: bool = False
    has_rollup_interaction: bool = False
    transaction_count: int = Field(default=0, ge=0)
    has_mainnet_interaction: bool = False

    @classmethod
    def absent(cls, network: str) -> "NetworkActivity":
        """False/zero signals, used in place of a failed source."""
        return cls(network=network)


class ActivitySignals(BaseModel):
    """Aggregated cross-network signal set."""

    model_config = ConfigDict(frozen=True)

    has_deployed_contract: bool = False
    has_rollup_interaction: bool = False
    transaction_count: int = Field(default=0, ge=0)
    has_mainnet_interaction: bool = False


def aggregate_signals(
    activities: Sequence[NetworkActivity],
    mainnet_network: Optional[str],
) -> ActivitySignals:
    """
    Combine per-network signals.

    - deployed contract: any network
    - rollup interaction: any network other than the mainnet
    - transaction count: sum over all networks
    - mainnet interaction: the mainnet network's own signal only
    """
    deployed = any(a.has_deployed_contract for a in activities)
    rollup = any(
        a.has_rollup_interaction for a in activities if a.network != mainnet_network
    )
    tx_count = sum(a.transaction_count for a in activities)
    mainnet = any(
        a.has_mainnet_interaction for a in activities if a.network == mainnet_network
    )
    return ActivitySignals(
        has_deployed_contract=deployed,
        has_rollup_interaction=rollup,
        transaction_count=tx_count,
        has_mainnet_interaction=mainnet,
    )
