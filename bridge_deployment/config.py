import typing
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.addresses import get_polygon_fx_child_address
from bridge_deployment.chains import ChainId, uses_messenger_proxy
from bridge_deployment.constants import ARTIFACTS_DIR, DEFAULT_ACTIVE_CHAIN_IDS, L2_BRIDGE_NAME
from bridge_deployment.exceptions import DeploymentConfigError
from bridge_deployment.registry import get_registry_address
from bridge_deployment.utils import _load_yaml, get_artifact_filepath

L2_REQUIRED_FIELDS = (
    "l1_chain_id",
    "l2_chain_id",
    "l1_bridge_address",
    "l2_canonical_token_address",
    "l2_bridge_token_name",
    "l2_bridge_token_symbol",
    "l2_bridge_token_decimals",
    "l2_swap_lp_token_name",
    "l2_swap_lp_token_symbol",
)

MESSENGER_WRAPPER_REQUIRED_FIELDS = (
    "l1_chain_id",
    "l2_chain_id",
    "l1_bridge_address",
)


def _check_required(config: Dict, fields: typing.Sequence[str]) -> None:
    if not isinstance(config, dict):
        raise DeploymentConfigError("Malformed deployment parameters YAML.")
    missing = [field for field in fields if config.get(field) in (None, "")]
    if missing:
        raise DeploymentConfigError(f"{', '.join(missing)} not set in params file.")


def _chain_id(config: Dict, field: str) -> ChainId:
    try:
        return int(config[field])
    except (TypeError, ValueError):
        raise DeploymentConfigError(f"{field} '{config[field]}' is not a valid chain id.")


def _address(config: Dict, field: str, required: bool = True) -> Optional[ChecksumAddress]:
    value = config.get(field)
    if not value:
        if required:
            raise DeploymentConfigError(f"{field} not set in params file.")
        return None
    try:
        return to_checksum_address(value)
    except (TypeError, ValueError):
        raise DeploymentConfigError(f"{field} '{value}' is not a valid ethereum address.")


def _artifact_filepath(config: Dict) -> Path:
    try:
        return get_artifact_filepath(config=config)
    except ValueError as e:
        raise DeploymentConfigError(str(e))


class L2DeploymentConfig(NamedTuple):
    """Inputs of an L2 bridge stack deployment, read once at the start of a run."""

    l1_chain_id: ChainId
    l2_chain_id: ChainId
    l1_bridge_address: ChecksumAddress
    l1_messenger_wrapper_address: Optional[ChecksumAddress]
    l2_canonical_token_address: ChecksumAddress
    l2_messenger_address: Optional[ChecksumAddress]
    l2_bridge_token_name: str
    l2_bridge_token_symbol: str
    l2_bridge_token_decimals: int
    l2_swap_lp_token_name: str
    l2_swap_lp_token_symbol: str
    l2_active_chain_ids: Tuple[str, ...] = tuple(DEFAULT_ACTIVE_CHAIN_IDS)
    artifact_filepath: Path = ARTIFACTS_DIR / "l2.json"
    signers: Tuple[str, ...] = ()
    l2_fx_child_address: Optional[ChecksumAddress] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "L2DeploymentConfig":
        print("Validating L2 deployment parameters...")
        _check_required(config, L2_REQUIRED_FIELDS)

        l2_chain_id = _chain_id(config, "l2_chain_id")
        proxied = uses_messenger_proxy(l2_chain_id)

        try:
            decimals = int(config["l2_bridge_token_decimals"])
        except (TypeError, ValueError):
            raise DeploymentConfigError("l2_bridge_token_decimals must be an integer.")

        active_chain_ids = config.get("l2_active_chain_ids") or DEFAULT_ACTIVE_CHAIN_IDS

        l1_chain_id = _chain_id(config, "l1_chain_id")
        # unknown base chains have no fx-portal, rejected before anything is deployed
        fx_child_address = get_polygon_fx_child_address(l1_chain_id) if proxied else None

        return cls(
            l1_chain_id=l1_chain_id,
            l2_chain_id=l2_chain_id,
            l1_bridge_address=_address(config, "l1_bridge_address"),
            # the messenger proxy is wired to the L1 messenger wrapper
            l1_messenger_wrapper_address=_address(
                config, "l1_messenger_wrapper_address", required=proxied
            ),
            l2_canonical_token_address=_address(config, "l2_canonical_token_address"),
            # proxied families replace the messenger with a freshly deployed proxy
            l2_messenger_address=_address(config, "l2_messenger_address", required=not proxied),
            l2_bridge_token_name=str(config["l2_bridge_token_name"]),
            l2_bridge_token_symbol=str(config["l2_bridge_token_symbol"]),
            l2_bridge_token_decimals=decimals,
            l2_swap_lp_token_name=str(config["l2_swap_lp_token_name"]),
            l2_swap_lp_token_symbol=str(config["l2_swap_lp_token_symbol"]),
            l2_active_chain_ids=tuple(str(chain_id) for chain_id in active_chain_ids),
            artifact_filepath=_artifact_filepath(config),
            signers=tuple(config.get("signers") or ()),
            l2_fx_child_address=fx_child_address,
        )

    @classmethod
    def from_yaml(cls, filepath: Path) -> "L2DeploymentConfig":
        return cls.from_config(_load_yaml(filepath))


class MessengerWrapperDeploymentConfig(NamedTuple):
    """Inputs of a base chain messenger wrapper deployment for one target chain."""

    l1_chain_id: ChainId
    l2_chain_id: ChainId
    l1_bridge_address: ChecksumAddress
    l1_messenger_address: Optional[ChecksumAddress]
    l2_bridge_address: Optional[ChecksumAddress]
    artifact_filepath: Path = ARTIFACTS_DIR / "l1.json"
    signers: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MessengerWrapperDeploymentConfig":
        print("Validating messenger wrapper deployment parameters...")
        _check_required(config, MESSENGER_WRAPPER_REQUIRED_FIELDS)

        l2_chain_id = _chain_id(config, "l2_chain_id")
        # the proxied family's wrapper only takes the L1 bridge address
        needs_l2_addresses = not uses_messenger_proxy(l2_chain_id)

        l2_bridge_address = _address(config, "l2_bridge_address", required=False)
        l2_registry = config.get("l2_registry")
        if l2_bridge_address is None and l2_registry:
            l2_registry_filepath = Path(l2_registry)
            if not l2_registry_filepath.is_absolute():
                l2_registry_filepath = ARTIFACTS_DIR / l2_registry_filepath
            l2_bridge_address = get_registry_address(
                filepath=l2_registry_filepath, chain_id=l2_chain_id, name=L2_BRIDGE_NAME
            )
        if l2_bridge_address is None and needs_l2_addresses:
            raise DeploymentConfigError("l2_bridge_address or l2_registry not set in params file.")

        return cls(
            l1_chain_id=_chain_id(config, "l1_chain_id"),
            l2_chain_id=l2_chain_id,
            l1_bridge_address=_address(config, "l1_bridge_address"),
            l1_messenger_address=_address(
                config, "l1_messenger_address", required=needs_l2_addresses
            ),
            l2_bridge_address=l2_bridge_address,
            artifact_filepath=_artifact_filepath(config),
            signers=tuple(config.get("signers") or ()),
        )

    @classmethod
    def from_yaml(cls, filepath: Path) -> "MessengerWrapperDeploymentConfig":
        return cls.from_config(_load_yaml(filepath))
