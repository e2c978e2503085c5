import typing
from typing import Any, Sequence, Tuple

from bridge_deployment.constants import ZERO_ADDRESS

LabelledArgument = Tuple[str, Any]


def _abort_unless_confirmed(question: str) -> None:
    answer = input(f"{question} Y/N? ")
    if answer.lower().strip() == "n":
        print("Aborting deployment!")
        exit(-1)


def _continue() -> None:
    """Asks the operator to continue."""
    _abort_unless_confirmed("Continue")


def _print_arguments(arguments: Sequence[LabelledArgument]) -> bool:
    """Prints labelled arguments; returns True if any of them is the zero address."""
    contains_zero_address = False
    for position, (label, value) in enumerate(arguments):
        print(f"\t[{position}] {label}={value}")
        if isinstance(value, list):
            contains_zero_address |= ZERO_ADDRESS in value
        else:
            contains_zero_address |= value == ZERO_ADDRESS
    return contains_zero_address


def _confirm_resolution(contract_name: str, arguments: Sequence[LabelledArgument]) -> None:
    """Asks the operator to confirm the positional constructor arguments of one contract."""
    if not arguments:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _abort_unless_confirmed(f"Deploy {contract_name}")
        return

    print(f"\nConstructor parameters for {contract_name}")
    contains_zero_address = _print_arguments(arguments)
    _abort_unless_confirmed(f"Deploy {contract_name}")
    if contains_zero_address:
        _abort_unless_confirmed("Zero Address detected for deployment parameter; Continue?")


def _confirm_transaction(
    description: str, arguments: typing.Optional[Sequence[LabelledArgument]] = None
) -> None:
    """Asks the operator to confirm a contract transaction."""
    print(f"\nTransacting {description}")
    if arguments:
        _print_arguments(arguments)
    _continue()
