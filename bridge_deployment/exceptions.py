"""Exceptions raised while resolving parameters and running bridge deployments."""

import typing


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    # set when raised from within a deployment step
    step: typing.Optional[str] = None
    context: typing.Optional[typing.Dict[str, typing.Any]] = None

    def at_step(self, step: str, context: typing.Dict[str, typing.Any]) -> None:
        """Attaches the failed step and the addresses known at that point."""
        if self.step is None:
            self.step = step
            self.context = context


class UnrecognizedChainId(DeploymentError, ValueError):
    """Raised when a chain id is not present in a fixed lookup table."""

    def __init__(self, chain_id: int, message: typing.Optional[str] = None):
        self.chain_id = chain_id
        super().__init__(message or f"Unrecognized chain id {chain_id}")


class InvalidParameter(DeploymentError, ValueError):
    """Raised when a constructor parameter value does not match its kind."""


class DeploymentConfigError(DeploymentError, ValueError):
    """Raised when a deployment parameters file is malformed or inconsistent."""


class DeploymentStepError(DeploymentError):
    """Raised when a deployment step fails; the run is aborted at that step."""

    def __init__(
        self,
        step: str,
        cause: BaseException,
        context: typing.Optional[typing.Dict[str, typing.Any]] = None,
    ):
        self.step = step
        self.cause = cause
        self.context = context or dict()
        message = f"Deployment step '{step}' failed: {cause!r}"
        if self.context:
            pretty_context = ", ".join(f"{k}={v}" for k, v in self.context.items())
            message = f"{message} ({pretty_context})"
        super().__init__(message)


class AttachmentFailure(DeploymentStepError):
    """Raised when attaching to a pre-existing contract address fails."""


class ChainCallFailure(DeploymentStepError):
    """Raised when a deploy, read or write call to the chain client fails."""
