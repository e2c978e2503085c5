import typing
from typing import Any, Dict, List, Sequence

from ape import accounts, compilers, project
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts import ContractContainer, ContractInstance

from bridge_deployment.client import NO_OVERRIDES, ChainClient, TxOverrides
from bridge_deployment.exceptions import DeploymentConfigError
from bridge_deployment.networks import is_local_network


def get_contract_container(contract_name: str) -> ContractContainer:
    """Finds a contract in the project sources first, then in the project dependencies."""
    if hasattr(project, contract_name):
        return getattr(project, contract_name)
    for dependency, versions in project.dependencies.items():
        if len(versions) > 1:
            raise ValueError(f"{contract_name}: more than one version of {dependency} installed")
        (package,) = versions.values()
        if hasattr(package, contract_name):
            return getattr(package, contract_name)
    raise ValueError(f"Contract {contract_name} not found in project or dependencies.")


class ApeChainClient(ChainClient):
    """Chain client backed by the connected ape provider and ape accounts."""

    def __init__(self, signer_aliases: Sequence[str] = (), autosign: bool = False):
        self._signer_aliases = list(signer_aliases)
        self._autosign = autosign
        self._signers: typing.Optional[List[AccountAPI]] = None
        self.deployments: List[ContractInstance] = list()

    def _load_signers(self) -> List[AccountAPI]:
        if self._signer_aliases:
            signers = [accounts.load(alias) for alias in self._signer_aliases]
            for signer in signers:
                signer.set_autosign(self._autosign)
            return signers
        if is_local_network():
            return list(accounts.test_accounts)
        raise DeploymentConfigError("No signer account aliases set in params file.")

    def get_signers(self) -> List[AccountAPI]:
        if self._signers is None:
            self._signers = self._load_signers()
        return self._signers

    def get_contract_container(
        self, contract_name: str, libraries: typing.Optional[Dict[str, str]] = None
    ) -> ContractContainer:
        for library_name, library_address in (libraries or {}).items():
            library = get_contract_container(library_name).at(library_address)
            # linked into contracts compiled from here on
            compilers.solidity.add_library(library)
        return get_contract_container(contract_name)

    def deploy(
        self,
        container: ContractContainer,
        *args,
        sender: AccountAPI,
        overrides: TxOverrides = NO_OVERRIDES,
    ) -> ContractInstance:
        instance = sender.deploy(container, *args, publish=False, **overrides.as_kwargs())
        self.deployments.append(instance)
        return instance

    def attach(self, container: ContractContainer, address: str) -> ContractInstance:
        return container.at(address)

    def call(self, method: Any, *args, overrides: TxOverrides = NO_OVERRIDES) -> Any:
        return method(*args, **overrides.as_kwargs())

    def transact(
        self, method: Any, *args, sender: AccountAPI, overrides: TxOverrides = NO_OVERRIDES
    ) -> ReceiptAPI:
        receipt = method(*args, sender=sender, **overrides.as_kwargs())
        receipt.await_confirmations()
        return receipt
