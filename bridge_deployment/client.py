import typing
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional

from bridge_deployment.constants import DEFAULT_GAS_OVERRIDE_LIMIT


class TxOverrides(NamedTuple):
    """Per-call transaction overrides, derived once per deployment run."""

    gas_limit: Optional[int] = None

    @classmethod
    def for_chain(cls, needs_explicit_gas_override: bool) -> "TxOverrides":
        if needs_explicit_gas_override:
            return cls(gas_limit=DEFAULT_GAS_OVERRIDE_LIMIT)
        return cls()

    def as_kwargs(self) -> Dict[str, Any]:
        kwargs = dict()
        if self.gas_limit is not None:
            kwargs["gas_limit"] = self.gas_limit
        return kwargs


NO_OVERRIDES = TxOverrides()


class ChainClient(ABC):
    """
    The chain interaction capability used by deployments.

    Implementations own signers, contract containers, transaction submission
    and confirmation. Deployment code never inspects the underlying transport.
    """

    @abstractmethod
    def get_signers(self) -> List[Any]:
        """Returns the ordered list of available signer accounts."""
        raise NotImplementedError

    @abstractmethod
    def get_contract_container(
        self, contract_name: str, libraries: typing.Optional[Dict[str, str]] = None
    ) -> Any:
        """Returns a deployable container for a contract, linked against the given libraries."""
        raise NotImplementedError

    @abstractmethod
    def deploy(
        self, container: Any, *args, sender: Any, overrides: TxOverrides = NO_OVERRIDES
    ) -> Any:
        """Deploys a contract and returns the instance once its deployment is confirmed."""
        raise NotImplementedError

    @abstractmethod
    def attach(self, container: Any, address: str) -> Any:
        """Returns an instance of an already deployed contract."""
        raise NotImplementedError

    @abstractmethod
    def call(self, method: Any, *args, overrides: TxOverrides = NO_OVERRIDES) -> Any:
        """Executes a read-only contract call."""
        raise NotImplementedError

    @abstractmethod
    def transact(
        self, method: Any, *args, sender: Any, overrides: TxOverrides = NO_OVERRIDES
    ) -> Any:
        """Submits a contract transaction and returns its receipt after confirmation."""
        raise NotImplementedError
