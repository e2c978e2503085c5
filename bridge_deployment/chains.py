from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from bridge_deployment.constants import (
    CHAIN_IDS,
    DEFAULT_L2_BRIDGE_CONTRACT,
    ETHEREUM_GOERLI,
    ETHEREUM_KOVAN,
    ETHEREUM_MAINNET,
)

ChainId = int


class NetworkFamily(Enum):
    ETHEREUM = "ethereum"  # base chain
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"
    XDAI = "xdai"
    POLYGON = "polygon"
    UNCLASSIFIED = "unclassified"


class BaseNetwork(Enum):
    MAINNET = "mainnet"
    GOERLI = "goerli"
    KOVAN = "kovan"


_FAMILIES_BY_CHAIN_ID: Dict[ChainId, NetworkFamily] = {
    chain_id: NetworkFamily(family_name)
    for family_name, networks in CHAIN_IDS.items()
    for chain_id in networks.values()
}

_BASE_NETWORKS_BY_CHAIN_ID: Dict[ChainId, BaseNetwork] = {
    ETHEREUM_MAINNET: BaseNetwork.MAINNET,
    ETHEREUM_GOERLI: BaseNetwork.GOERLI,
    ETHEREUM_KOVAN: BaseNetwork.KOVAN,
}


def classify(chain_id: ChainId) -> NetworkFamily:
    """Returns the network family of a chain id; unknown ids are UNCLASSIFIED."""
    return _FAMILIES_BY_CHAIN_ID.get(int(chain_id), NetworkFamily.UNCLASSIFIED)


def base_network(chain_id: ChainId) -> Optional[BaseNetwork]:
    """Returns the base chain network of a chain id, or None if it is not the base chain."""
    return _BASE_NETWORKS_BY_CHAIN_ID.get(int(chain_id))


def is_chain_id_ethereum(chain_id: ChainId) -> bool:
    return classify(chain_id) is NetworkFamily.ETHEREUM


def is_chain_id_mainnet(chain_id: ChainId) -> bool:
    return base_network(chain_id) is BaseNetwork.MAINNET


def is_chain_id_goerli(chain_id: ChainId) -> bool:
    return base_network(chain_id) is BaseNetwork.GOERLI


def is_chain_id_kovan(chain_id: ChainId) -> bool:
    return base_network(chain_id) is BaseNetwork.KOVAN


def is_chain_id_arbitrum(chain_id: ChainId) -> bool:
    return classify(chain_id) is NetworkFamily.ARBITRUM


def is_chain_id_optimism(chain_id: ChainId) -> bool:
    return classify(chain_id) is NetworkFamily.OPTIMISM


def is_chain_id_xdai(chain_id: ChainId) -> bool:
    return classify(chain_id) is NetworkFamily.XDAI


def is_chain_id_polygon(chain_id: ChainId) -> bool:
    return classify(chain_id) is NetworkFamily.POLYGON


def needs_explicit_gas_override(chain_id: ChainId) -> bool:
    """Returns True if write calls on this chain must carry an explicit gas limit."""
    return classify(chain_id) in (NetworkFamily.ARBITRUM, NetworkFamily.OPTIMISM)


def uses_messenger_proxy(chain_id: ChainId) -> bool:
    """Returns True if the L2 bridge on this chain talks to its messenger through a proxy."""
    return classify(chain_id) is NetworkFamily.POLYGON


def all_chain_ids() -> List[str]:
    """Returns every supported chain id as a decimal string."""
    return [str(chain_id) for networks in CHAIN_IDS.values() for chain_id in networks.values()]


class ContractNames(NamedTuple):
    """Contract artifact names that differ between network families."""

    l2_bridge: str
    messenger_wrapper: Optional[str] = None
    messenger_proxy: Optional[str] = None


_CONTRACT_NAMES = {
    NetworkFamily.ARBITRUM: ContractNames(
        l2_bridge="L2_ArbitrumBridge",
        messenger_wrapper="ArbitrumMessengerWrapper",
    ),
    NetworkFamily.OPTIMISM: ContractNames(
        l2_bridge="L2_OptimismBridge",
        messenger_wrapper="OptimismMessengerWrapper",
    ),
    NetworkFamily.XDAI: ContractNames(
        l2_bridge="L2_XDaiBridge",
        messenger_wrapper="XDaiMessengerWrapper",
    ),
    NetworkFamily.POLYGON: ContractNames(
        l2_bridge="L2_PolygonBridge",
        messenger_wrapper="PolygonMessengerWrapper",
        messenger_proxy="L2_PolygonMessengerProxy",
    ),
}


def contract_names(chain_id: ChainId) -> ContractNames:
    """Returns the family-specific contract names for a target chain."""
    family = classify(chain_id)
    return _CONTRACT_NAMES.get(family, ContractNames(l2_bridge=DEFAULT_L2_BRIDGE_CONTRACT))
