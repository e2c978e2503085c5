from enum import Enum
from typing import Dict, Union

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.chains import ChainId, is_chain_id_goerli, is_chain_id_mainnet
from bridge_deployment.constants import (
    CHECKPOINT_MANAGER_ADDRESSES,
    FX_CHILD_ADDRESSES,
    KOVAN_AMB_ADDRESS,
    SOKOL_AMB_ADDRESS,
    STATE_SENDER_ADDRESSES,
)
from bridge_deployment.exceptions import UnrecognizedChainId


class EndpointRole(Enum):
    STATE_SENDER = "stateSender"
    CHECKPOINT_MANAGER = "checkpointManager"
    FX_CHILD = "fxChild"


_ENDPOINT_TABLES: Dict[EndpointRole, Dict[str, str]] = {
    EndpointRole.STATE_SENDER: STATE_SENDER_ADDRESSES,
    EndpointRole.CHECKPOINT_MANAGER: CHECKPOINT_MANAGER_ADDRESSES,
    EndpointRole.FX_CHILD: FX_CHILD_ADDRESSES,
}


def _base_network_key(l1_chain_id: ChainId) -> str:
    if is_chain_id_mainnet(l1_chain_id):
        return "MAINNET"
    elif is_chain_id_goerli(l1_chain_id):
        return "GOERLI"
    raise UnrecognizedChainId(
        l1_chain_id,
        f"Chain id {l1_chain_id} is neither ethereum mainnet nor goerli; "
        "no bridge endpoint addresses are known for it.",
    )


def lookup_bridge_endpoint(
    l1_chain_id: ChainId, role: Union[EndpointRole, str]
) -> ChecksumAddress:
    """
    Returns the polygon fx-portal infrastructure address for a base chain network.
    Unknown base chain ids are never defaulted.
    """
    try:
        role = EndpointRole(role)
    except ValueError:
        raise ValueError(f"Unknown bridge endpoint role '{role}'.")
    network_key = _base_network_key(l1_chain_id)
    return to_checksum_address(_ENDPOINT_TABLES[role][network_key])


def get_polygon_state_sender_address(l1_chain_id: ChainId) -> ChecksumAddress:
    return lookup_bridge_endpoint(l1_chain_id, EndpointRole.STATE_SENDER)


def get_polygon_checkpoint_manager_address(l1_chain_id: ChainId) -> ChecksumAddress:
    return lookup_bridge_endpoint(l1_chain_id, EndpointRole.CHECKPOINT_MANAGER)


def get_polygon_fx_child_address(l1_chain_id: ChainId) -> ChecksumAddress:
    return lookup_bridge_endpoint(l1_chain_id, EndpointRole.FX_CHILD)


def get_xdai_amb_address(is_amb_l1: bool) -> ChecksumAddress:
    """Returns the xDai arbitrary message bridge address for the L1 side or the sidechain side."""
    if is_amb_l1:
        return to_checksum_address(KOVAN_AMB_ADDRESS)
    return to_checksum_address(SOKOL_AMB_ADDRESS)
