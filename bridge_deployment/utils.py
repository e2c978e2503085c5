import json
from pathlib import Path
from typing import Dict

import yaml

from bridge_deployment.constants import ARTIFACTS_DIR


def _load_yaml(filepath: Path) -> dict:
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    with open(filepath, "r") as file:
        return json.load(file)


def get_artifact_filepath(config: Dict) -> Path:
    """
    Returns where the deployment registry is written, from the `artifacts`
    section of a params file. The directory defaults to the packaged artifacts dir.
    """
    artifacts = config.get("artifacts") or {}
    if not artifacts.get("filename"):
        raise ValueError("artifacts.filename not set in params file.")
    return Path(artifacts.get("dir") or ARTIFACTS_DIR) / artifacts["filename"]
