import os
from typing import List

from ape import networks
from ape.contracts import ContractInstance

from bridge_deployment.chains import ChainId
from bridge_deployment.exceptions import DeploymentConfigError

LOCAL_NETWORKS = ["local"]


def is_local_network() -> bool:
    return networks.provider.network.name in LOCAL_NETWORKS


def check_chain_id(chain_id: ChainId) -> None:
    """Checks that the params file targets the network ape is connected to."""
    connected_chain_id = networks.provider.network.chain_id
    if int(chain_id) != connected_chain_id and not is_local_network():
        raise DeploymentConfigError(
            f"Params file targets chain id {chain_id}, "
            f"but ape is connected to chain id {connected_chain_id}."
        )


def check_explorer_plugin() -> None:
    if is_local_network():
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Contract verification requires the ape-etherscan plugin.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    if not explorer_envvar:
        raise DeploymentConfigError(f"No block explorer API key is known for {ecosystem_name}.")
    if not os.environ.get(explorer_envvar):
        raise DeploymentConfigError(f"Set {explorer_envvar} to verify contracts.")


def check_plugins(verify: bool) -> None:
    if verify:
        print("(i) Checking block explorer plugin")
        check_explorer_plugin()


def verify_contracts(contracts: List[ContractInstance]) -> None:
    """Publishes the sources of deployed contracts to the network's block explorer."""
    explorer = networks.provider.network.explorer
    if explorer is None:
        raise DeploymentConfigError(f"No block explorer for {networks.provider.network.name}.")
    for contract in contracts:
        print(f"(i) Publishing {contract.contract_type.name} at {contract.address}")
        explorer.publish_contract(contract.address)
