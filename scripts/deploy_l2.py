#!/usr/bin/python3

import click
from ape import networks
from ape.cli import ConnectedProviderCommand, network_option

from bridge_deployment.ape_client import ApeChainClient
from bridge_deployment.config import L2DeploymentConfig
from bridge_deployment.networks import check_chain_id, check_plugins, verify_contracts
from bridge_deployment.options import autosign_option, params_file_option, verify_option
from bridge_deployment.orchestrator import L2Deployer
from bridge_deployment.registry import RegistryRecorder


@click.command(cls=ConnectedProviderCommand, name="deploy-l2")
@network_option(required=True)
@params_file_option
@autosign_option
@verify_option
def cli(network, params_file, auto, verify):
    """Deploy and wire the bridge stack of one target network."""

    check_plugins(verify=verify)
    click.echo(f"Connected to {networks.provider.network.name} network.")

    config = L2DeploymentConfig.from_yaml(params_file)
    check_chain_id(config.l2_chain_id)

    client = ApeChainClient(signer_aliases=config.signers, autosign=auto)
    deployer = L2Deployer(
        config=config,
        client=client,
        recorder=RegistryRecorder(config.artifact_filepath),
        autosign=auto,
    )
    result = deployer.run()

    if verify:
        verify_contracts(contracts=client.deployments)

    for name, address in result.addresses().items():
        click.secho(f"{name}: {address}", fg="green")
