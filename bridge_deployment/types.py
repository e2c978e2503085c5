from pathlib import Path

import click
from eth_utils import to_checksum_address

from bridge_deployment.constants import DEPLOY_PARAMS_DIR


class ChecksumAddress(click.ParamType):
    name = "checksum_address"

    def convert(self, value, param, ctx):
        try:
            return to_checksum_address(value)
        except (TypeError, ValueError):
            self.fail(f"{value} is not a valid ethereum address", param, ctx)


class ParamsFile(click.ParamType):
    """A deployment params file, either a path or a file name under deploy_params/."""

    name = "params_file"

    def convert(self, value, param, ctx):
        if isinstance(value, Path):
            filepath = value
        else:
            filepath = Path(value)
        if not filepath.exists():
            filepath = DEPLOY_PARAMS_DIR / value
        if not filepath.is_file():
            self.fail(f"No params file found at {value} or {filepath}", param, ctx)
        return filepath
