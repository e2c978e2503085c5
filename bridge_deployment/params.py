import typing
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple, Type

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address
from web3 import Web3

from bridge_deployment.addresses import get_xdai_amb_address
from bridge_deployment.chains import ChainId, NetworkFamily, classify
from bridge_deployment.constants import (
    DEFAULT_L2_BRIDGE_GAS_LIMIT,
    DEFAULT_MESSENGER_WRAPPER_CALL_VALUE,
    DEFAULT_MESSENGER_WRAPPER_GAS_LIMIT,
    DEFAULT_MESSENGER_WRAPPER_GAS_PRICE,
    XDAI_MESSENGER_WRAPPER_GAS_LIMIT,
)
from bridge_deployment.exceptions import InvalidParameter

# Offline instance; only the ABI codec is used
w3 = Web3()


# Parameters


class Param(ABC):
    """A single positional constructor argument of a known kind."""

    ABI_TYPE = ""

    @property
    def abi_type(self) -> str:
        return self.ABI_TYPE

    @abstractmethod
    def resolve(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class _ScalarParam(Param):
    value: Any

    def __post_init__(self):
        self._validate()

    def _validate(self) -> None:
        if not w3.is_encodable(self.ABI_TYPE, self.value):
            raise InvalidParameter(
                f"{type(self).__name__} value {self.value!r} "
                f"is not encodable as ABI type '{self.ABI_TYPE}'."
            )

    def resolve(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Address(_ScalarParam):
    ABI_TYPE = "address"

    def __post_init__(self):
        try:
            checksum_address = to_checksum_address(self.value)
        except (TypeError, ValueError):
            raise InvalidParameter(f"Address value {self.value!r} is not an ethereum address.")
        object.__setattr__(self, "value", checksum_address)
        super().__post_init__()


@dataclass(frozen=True)
class _IntegerParam(_ScalarParam):
    def _validate(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidParameter(
                f"{type(self).__name__} value {self.value!r} is not an integer."
            )
        super()._validate()


@dataclass(frozen=True)
class Amount(_IntegerParam):
    """Arbitrary precision quantity (wei amounts, chain ids)."""

    ABI_TYPE = "uint256"


@dataclass(frozen=True)
class Count(_IntegerParam):
    """Small quantity (gas limits, decimals)."""

    ABI_TYPE = "uint64"


@dataclass(frozen=True)
class Text(_ScalarParam):
    ABI_TYPE = "string"


@dataclass(frozen=True)
class Array(Param):
    """Homogeneous sequence of one parameter kind."""

    kind: Type[_ScalarParam]
    items: Tuple[_ScalarParam, ...] = ()

    def __post_init__(self):
        items = tuple(self.items)
        for item in items:
            if type(item) is not self.kind:
                raise InvalidParameter(
                    f"Array of {self.kind.__name__} cannot hold {type(item).__name__} {item!r}."
                )
        object.__setattr__(self, "items", items)

    @classmethod
    def of(cls, kind: Type[_ScalarParam], values: Iterable[Any]) -> "Array":
        return cls(kind=kind, items=tuple(kind(value) for value in values))

    @property
    def abi_type(self) -> str:
        return f"{self.kind.ABI_TYPE}[]"

    def resolve(self) -> List[Any]:
        return [item.resolve() for item in self.items]


class DeploymentParameters(Sequence):
    """
    Ordered positional constructor arguments for one contract.
    The order mirrors the constructor ABI and is never rearranged.
    """

    def __init__(self, params: Iterable[Param]):
        params = tuple(params)
        for position, param in enumerate(params):
            if not isinstance(param, Param):
                raise InvalidParameter(
                    f"Deployment parameter at position {position} has no declared kind: {param!r}"
                )
        self._params = params

    def __getitem__(self, index):
        return self._params[index]

    def __len__(self) -> int:
        return len(self._params)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DeploymentParameters):
            return NotImplemented
        return self._params == other._params

    def __hash__(self):
        return hash(self._params)

    def __repr__(self) -> str:
        return f"DeploymentParameters({list(self._params)!r})"

    def resolve(self) -> List[Any]:
        """Returns the plain positional values."""
        return [param.resolve() for param in self._params]


def _to_chain_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"Chain id {value!r} is not an integer.")


# Messenger wrappers (deployed on the base chain, one per target network)


class MessengerWrapperConfig(NamedTuple):
    chain_id: ChainId
    family: NetworkFamily
    l1_bridge_address: ChecksumAddress
    l2_bridge_address: Optional[ChecksumAddress]
    l1_messenger_address: Optional[ChecksumAddress]


def _wrapper_prefix(config: MessengerWrapperConfig) -> List[Param]:
    return [
        Address(config.l1_bridge_address),
        Address(config.l2_bridge_address),
        Address(config.l1_messenger_address),
    ]


def _default_wrapper_parameters(config: MessengerWrapperConfig) -> DeploymentParameters:
    return DeploymentParameters(_wrapper_prefix(config))


def _arbitrum_wrapper_parameters(config: MessengerWrapperConfig) -> DeploymentParameters:
    return DeploymentParameters(
        [
            *_wrapper_prefix(config),
            Count(DEFAULT_MESSENGER_WRAPPER_GAS_LIMIT),
            Amount(DEFAULT_MESSENGER_WRAPPER_GAS_PRICE),
            Amount(DEFAULT_MESSENGER_WRAPPER_CALL_VALUE),
        ]
    )


def _optimism_wrapper_parameters(config: MessengerWrapperConfig) -> DeploymentParameters:
    return DeploymentParameters(
        [*_wrapper_prefix(config), Count(DEFAULT_MESSENGER_WRAPPER_GAS_LIMIT)]
    )


def _xdai_wrapper_parameters(config: MessengerWrapperConfig) -> DeploymentParameters:
    return DeploymentParameters(
        [
            *_wrapper_prefix(config),
            Count(XDAI_MESSENGER_WRAPPER_GAS_LIMIT),
            Text(str(config.chain_id)),
            Address(get_xdai_amb_address(is_amb_l1=True)),
        ]
    )


def _polygon_wrapper_parameters(config: MessengerWrapperConfig) -> DeploymentParameters:
    # fx-portal tunnels are wired after deployment, only the L1 bridge is a constructor argument
    return DeploymentParameters([Address(config.l1_bridge_address)])


MESSENGER_WRAPPER_STRATEGIES: Dict[
    NetworkFamily, Callable[[MessengerWrapperConfig], DeploymentParameters]
] = {
    NetworkFamily.ARBITRUM: _arbitrum_wrapper_parameters,
    NetworkFamily.OPTIMISM: _optimism_wrapper_parameters,
    NetworkFamily.XDAI: _xdai_wrapper_parameters,
    NetworkFamily.POLYGON: _polygon_wrapper_parameters,
}


def resolve_messenger_wrapper_parameters(
    chain_id: ChainId,
    l1_bridge_address: ChecksumAddress,
    l2_bridge_address: Optional[ChecksumAddress],
    l1_messenger_address: Optional[ChecksumAddress],
) -> DeploymentParameters:
    """Resolves the constructor arguments of the base chain messenger wrapper for a target chain."""
    chain_id = _to_chain_id(chain_id)
    config = MessengerWrapperConfig(
        chain_id=chain_id,
        family=classify(chain_id),
        l1_bridge_address=l1_bridge_address,
        l2_bridge_address=l2_bridge_address,
        l1_messenger_address=l1_messenger_address,
    )
    strategy = MESSENGER_WRAPPER_STRATEGIES.get(config.family, _default_wrapper_parameters)
    return strategy(config)


# L2 bridges (deployed on the target network)


class L2BridgeConfig(NamedTuple):
    chain_id: ChainId
    family: NetworkFamily
    messenger_address: Optional[ChecksumAddress]
    messenger_proxy_address: Optional[ChecksumAddress]
    governance_address: ChecksumAddress
    bridge_token_address: ChecksumAddress
    l1_bridge_address: ChecksumAddress
    active_chain_ids: typing.Sequence[Any]
    bonder_addresses: typing.Sequence[ChecksumAddress]
    l1_chain_id: ChainId


def _no_suffix(config: L2BridgeConfig) -> List[Param]:
    return []


def _gas_limit_suffix(config: L2BridgeConfig) -> List[Param]:
    return [Count(DEFAULT_L2_BRIDGE_GAS_LIMIT)]


def _l1_chain_id_and_gas_limit_suffix(config: L2BridgeConfig) -> List[Param]:
    # the L1 chain id comes before the gas limit
    return [Amount(_to_chain_id(config.l1_chain_id)), Count(DEFAULT_L2_BRIDGE_GAS_LIMIT)]


class L2BridgeStrategy(NamedTuple):
    uses_messenger_proxy: bool = False
    suffix: Callable[[L2BridgeConfig], List[Param]] = _no_suffix


DEFAULT_L2_BRIDGE_STRATEGY = L2BridgeStrategy()

L2_BRIDGE_STRATEGIES: Dict[NetworkFamily, L2BridgeStrategy] = {
    NetworkFamily.ARBITRUM: L2BridgeStrategy(),
    NetworkFamily.OPTIMISM: L2BridgeStrategy(suffix=_gas_limit_suffix),
    NetworkFamily.XDAI: L2BridgeStrategy(suffix=_l1_chain_id_and_gas_limit_suffix),
    NetworkFamily.POLYGON: L2BridgeStrategy(uses_messenger_proxy=True),
}


def resolve_l2_bridge_parameters(
    chain_id: ChainId,
    messenger_address: Optional[ChecksumAddress],
    messenger_proxy_address: Optional[ChecksumAddress],
    governance_address: ChecksumAddress,
    bridge_token_address: ChecksumAddress,
    l1_bridge_address: ChecksumAddress,
    active_chain_ids: typing.Sequence[Any],
    bonder_addresses: typing.Sequence[ChecksumAddress],
    l1_chain_id: ChainId,
) -> DeploymentParameters:
    """Resolves the constructor arguments of the L2 bridge for a target chain."""
    chain_id = _to_chain_id(chain_id)
    config = L2BridgeConfig(
        chain_id=chain_id,
        family=classify(chain_id),
        messenger_address=messenger_address,
        messenger_proxy_address=messenger_proxy_address,
        governance_address=governance_address,
        bridge_token_address=bridge_token_address,
        l1_bridge_address=l1_bridge_address,
        active_chain_ids=active_chain_ids,
        bonder_addresses=bonder_addresses,
        l1_chain_id=l1_chain_id,
    )
    strategy = L2_BRIDGE_STRATEGIES.get(config.family, DEFAULT_L2_BRIDGE_STRATEGY)

    if strategy.uses_messenger_proxy:
        effective_messenger_address = config.messenger_proxy_address
    else:
        effective_messenger_address = config.messenger_address

    params = [
        Address(effective_messenger_address),
        Address(config.governance_address),
        Address(config.bridge_token_address),
        Address(config.l1_bridge_address),
        Array.of(Amount, [_to_chain_id(chain) for chain in config.active_chain_ids]),
        Array.of(Address, config.bonder_addresses),
    ]
    params.extend(strategy.suffix(config))
    return DeploymentParameters(params)
