#!/usr/bin/python3

import click

from bridge_deployment.chains import (
    all_chain_ids,
    classify,
    contract_names,
    needs_explicit_gas_override,
    uses_messenger_proxy,
)


@click.command(name="list-chains")
def cli():
    """List the supported chain ids with their network family and contracts."""
    for chain_id in all_chain_ids():
        family = classify(chain_id)
        names = contract_names(chain_id)
        click.secho(f"{chain_id} ({family.value})", fg="green")
        click.secho(f"    L2 bridge: {names.l2_bridge}", fg="cyan")
        if names.messenger_wrapper:
            click.secho(f"    Messenger wrapper: {names.messenger_wrapper}", fg="cyan")
        if uses_messenger_proxy(chain_id):
            click.secho(f"    Messenger proxy: {names.messenger_proxy}", fg="cyan")
        if needs_explicit_gas_override(chain_id):
            click.secho("    Explicit gas limit required", fg="yellow")
