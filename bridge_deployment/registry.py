import json
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, NamedTuple

from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address

from bridge_deployment.chains import ChainId
from bridge_deployment.utils import _load_json

ContractName = str

RegistryData = Dict[str, Dict[ContractName, Dict[str, str]]]

REGISTRY_JSON_KWARGS = {"indent": 4, "separators": (",", ": ")}

UNMERGED_SUFFIX = ".unmerged.json"


class RegistryEntry(NamedTuple):
    """One deployed contract address on one chain."""

    chain_id: ChainId
    name: ContractName
    address: ChecksumAddress


def read_registry(filepath: Path) -> List[RegistryEntry]:
    return [
        RegistryEntry(chain_id=int(chain_id), name=name, address=record["address"])
        for chain_id, contracts in _load_json(filepath).items()
        for name, record in contracts.items()
    ]


def _to_registry_data(entries: List[RegistryEntry]) -> RegistryData:
    data: RegistryData = OrderedDict()
    for entry in sorted(entries, key=lambda e: (str(e.chain_id), e.name)):
        contracts = data.setdefault(str(entry.chain_id), OrderedDict())
        contracts[entry.name] = {"address": to_checksum_address(entry.address)}
    return data


def write_registry(entries: List[RegistryEntry], filepath: Path, silent: bool = False) -> Path:
    """
    Writes registry entries and returns the path written to.

    Entries for chains not yet in an existing registry are merged into it.
    A chain id that is already recorded is never overwritten: the whole batch
    goes to a sibling `*.unmerged.json` file instead.
    """
    if not entries:
        print("(i) Nothing to record.")
        return filepath

    data = _to_registry_data(entries)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if filepath.exists():
        recorded = _load_json(filepath)
        overlapping = sorted(chain_id for chain_id in data if chain_id in recorded)
        if overlapping:
            filepath = filepath.with_suffix(UNMERGED_SUFFIX)
            if not silent:
                print(
                    f"WARNING: chain id(s) {', '.join(overlapping)} already recorded; "
                    f"writing to {filepath} instead."
                )
        else:
            recorded.update(data)
            data = recorded
            if not silent:
                print(f"(i) Merging into registry at {filepath}")
    elif not silent:
        print(f"(i) New registry at {filepath}")

    with open(filepath, "w") as file:
        json.dump(data, file, **REGISTRY_JSON_KWARGS)
    return filepath


def get_registry_address(filepath: Path, chain_id: ChainId, name: ContractName) -> ChecksumAddress:
    """Returns the recorded address of a contract on a chain."""
    for entry in read_registry(filepath=filepath):
        if entry.chain_id == int(chain_id) and entry.name == name:
            return to_checksum_address(entry.address)
    raise ValueError(f"No {name} recorded for chain id {chain_id} in {filepath}.")


class DeploymentRecorder(ABC):
    """Receives the addresses produced by a deployment run."""

    @abstractmethod
    def record(self, result) -> None:
        raise NotImplementedError


class RegistryRecorder(DeploymentRecorder):
    """Records deployment results into a JSON registry file."""

    def __init__(self, filepath: Path):
        self.filepath = Path(filepath)
        self.written_filepaths: List[Path] = list()

    def record(self, result) -> Path:
        entries = [
            RegistryEntry(chain_id=result.chain_id, name=name, address=address)
            for name, address in result.addresses().items()
        ]
        output_filepath = write_registry(entries=entries, filepath=self.filepath)
        self.written_filepaths.append(output_filepath)
        print(f"(i) Recorded {len(entries)} address(es) in {output_filepath}")
        return output_filepath
