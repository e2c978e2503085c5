#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from bridge_deployment.ape_client import ApeChainClient
from bridge_deployment.config import MessengerWrapperDeploymentConfig
from bridge_deployment.networks import check_chain_id, check_plugins, verify_contracts
from bridge_deployment.options import (
    autosign_option,
    l2_bridge_address_option,
    params_file_option,
    verify_option,
)
from bridge_deployment.orchestrator import MessengerWrapperDeployer
from bridge_deployment.registry import RegistryRecorder
from bridge_deployment.utils import _load_yaml


@click.command(cls=ConnectedProviderCommand, name="deploy-messenger-wrapper")
@network_option(required=True)
@params_file_option
@l2_bridge_address_option
@autosign_option
@verify_option
def cli(network, params_file, l2_bridge_address, auto, verify):
    """Deploy the base chain messenger wrapper of one target network."""

    check_plugins(verify=verify)
    click.echo(f"Connected to {networks.provider.network.name} network.")

    params = _load_yaml(params_file) or {}
    if l2_bridge_address:
        params["l2_bridge_address"] = l2_bridge_address
    config = MessengerWrapperDeploymentConfig.from_config(params)
    check_chain_id(config.l1_chain_id)

    client = ApeChainClient(signer_aliases=config.signers, autosign=auto)
    deployer = MessengerWrapperDeployer(
        config=config,
        client=client,
        recorder=RegistryRecorder(config.artifact_filepath),
        autosign=auto,
    )
    result = deployer.run()

    if verify:
        verify_contracts(contracts=client.deployments)

    click.secho(f"{result.contract_name}: {result.address}", fg="green")
