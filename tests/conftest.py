import itertools
from typing import Any, Dict, List, Optional

import pytest
from eth_utils import to_checksum_address

from bridge_deployment.client import NO_OVERRIDES, ChainClient
from bridge_deployment.config import L2DeploymentConfig, MessengerWrapperDeploymentConfig
from bridge_deployment.registry import DeploymentRecorder

# Common constants
L1_BRIDGE = to_checksum_address("0xe74EFb19BBC46DbE28b7BaB1F14af6eB7158B4BE")
L1_MESSENGER = to_checksum_address("0x4361d0F75A0186C05f971c566dC6bEa5957483fD")
L1_MESSENGER_WRAPPER = to_checksum_address("0x2a6303e6b99d451Df3566068EBb110708335658f")
L2_BRIDGE = to_checksum_address("0x0fBeA6B2bA8C1C1E0B0A9cE4e2F9DC1a4F4C3e59")
L2_MESSENGER = to_checksum_address("0x4200000000000000000000000000000000000007")
L2_CANONICAL_TOKEN = to_checksum_address("0x7321d7dF4E9A9e3c2B9D42e3E0e6A1CE8D2B3c6a")

_address_counter = itertools.count(0x1000)


def next_address() -> str:
    return to_checksum_address(f"0x{next(_address_counter):040x}")


class FakeAccount:
    def __init__(self, index: int):
        self.index = index
        self.address = to_checksum_address(f"0x{0xACC0 + index:040x}")


class FakeContainer:
    def __init__(self, contract_name: str, libraries: Optional[Dict[str, str]] = None):
        self.contract_name = contract_name
        self.libraries = dict(libraries or {})


class FakeMethod:
    def __init__(self, contract: "FakeContract", name: str):
        self.contract = contract
        self.name = name


class FakeContract:
    def __init__(self, name: str, address: str, reads: Optional[Dict[str, Any]] = None):
        self.name = name
        self.address = address
        self.reads = dict(reads or {})

    def __getattr__(self, item):
        if item.startswith("_"):
            raise AttributeError(item)
        return FakeMethod(self, item)


class FakeChainClient(ChainClient):
    """
    In-memory chain client; every deploy, read and write is appended to `events`
    so tests can assert on the order of chain interactions.
    """

    def __init__(self, num_signers: int = 5, canonical_symbol: str = "DAI"):
        self.signers = [FakeAccount(index) for index in range(num_signers)]
        self.canonical_symbol = canonical_symbol
        self.events: List[tuple] = list()
        self.fail_on: set = set()
        self.fail_attach = False

    def _check(self, kind: str, name: str) -> None:
        if (kind, name) in self.fail_on:
            raise RuntimeError(f"{kind} {name} reverted")

    def get_signers(self):
        return self.signers

    def get_contract_container(self, contract_name, libraries=None):
        return FakeContainer(contract_name, libraries)

    def deploy(self, container, *args, sender, overrides=NO_OVERRIDES):
        self._check("deploy", container.contract_name)
        reads = dict()
        if container.contract_name == "HopBridgeToken":
            reads["decimals"] = args[2]
        contract = FakeContract(container.contract_name, next_address(), reads)
        self.events.append(
            ("deploy", container.contract_name, args, sender, overrides, container.libraries)
        )
        return contract

    def attach(self, container, address):
        if self.fail_attach:
            raise ValueError(f"No code at {address}")
        reads = {"decimals": 18, "symbol": self.canonical_symbol}
        self.events.append(("attach", container.contract_name, address))
        return FakeContract(container.contract_name, address, reads)

    def call(self, method, *args, overrides=NO_OVERRIDES):
        self._check("call", method.name)
        self.events.append(("call", method.contract.name, method.name, args, overrides))
        return method.contract.reads[method.name]

    def transact(self, method, *args, sender, overrides=NO_OVERRIDES):
        self._check("transact", method.name)
        self.events.append(("transact", method.contract.name, method.name, args, overrides))
        self.events.append(("confirmed", method.contract.name, method.name))
        return {"status": 1}

    def deployed(self) -> List[str]:
        return [event[1] for event in self.events if event[0] == "deploy"]

    def transactions(self) -> List[str]:
        return [event[2] for event in self.events if event[0] == "transact"]


class MemoryRecorder(DeploymentRecorder):
    def __init__(self):
        self.results = list()

    def record(self, result) -> None:
        self.results.append(result)


# Fixtures
@pytest.fixture()
def client():
    return FakeChainClient()


@pytest.fixture()
def recorder():
    return MemoryRecorder()


@pytest.fixture()
def base_params(tmp_path):
    return {
        "l1_chain_id": 42,
        "l1_bridge_address": L1_BRIDGE,
        "l2_canonical_token_address": L2_CANONICAL_TOKEN,
        "l2_bridge_token_name": "DAI Hop Token",
        "l2_bridge_token_symbol": "hDAI",
        "l2_bridge_token_decimals": 18,
        "l2_swap_lp_token_name": "DAI Hop LP Token",
        "l2_swap_lp_token_symbol": "HOP-LP-DAI",
        "artifacts": {"dir": str(tmp_path), "filename": "l2.json"},
    }


@pytest.fixture()
def optimism_params(base_params):
    return dict(base_params, l2_chain_id=69, l2_messenger_address=L2_MESSENGER)


@pytest.fixture()
def polygon_params(base_params):
    return dict(
        base_params,
        l1_chain_id=5,
        l2_chain_id=80001,
        l1_messenger_wrapper_address=L1_MESSENGER_WRAPPER,
    )


@pytest.fixture()
def arbitrum_config(base_params):
    return L2DeploymentConfig.from_config(
        dict(base_params, l2_chain_id=212984383488152, l2_messenger_address=L2_MESSENGER)
    )


@pytest.fixture()
def xdai_config(base_params):
    return L2DeploymentConfig.from_config(
        dict(base_params, l2_chain_id=77, l2_messenger_address=L2_MESSENGER)
    )


@pytest.fixture()
def optimism_config(optimism_params):
    return L2DeploymentConfig.from_config(optimism_params)


@pytest.fixture()
def polygon_config(polygon_params):
    return L2DeploymentConfig.from_config(polygon_params)


@pytest.fixture()
def wrapper_config(tmp_path):
    return MessengerWrapperDeploymentConfig.from_config(
        {
            "l1_chain_id": 42,
            "l2_chain_id": 69,
            "l1_bridge_address": L1_BRIDGE,
            "l1_messenger_address": L1_MESSENGER,
            "l2_bridge_address": L2_BRIDGE,
            "artifacts": {"dir": str(tmp_path), "filename": "l1.json"},
        }
    )
