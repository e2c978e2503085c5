import click

from bridge_deployment.types import ChecksumAddress, ParamsFile

params_file_option = click.option(
    "--params-file",
    "-p",
    help="Deployment params YAML (a path, or a file name under bridge_deployment/deploy_params).",
    type=ParamsFile(),
    required=True,
)

autosign_option = click.option(
    "--auto",
    help="Automatically sign transactions.",
    is_flag=True,
)

verify_option = click.option(
    "--verify",
    help="Publish deployed contracts to the block explorer.",
    is_flag=True,
)

l2_bridge_address_option = click.option(
    "--l2-bridge-address",
    help="Address of the L2 bridge; overrides the params file.",
    type=ChecksumAddress(),
    required=False,
)
