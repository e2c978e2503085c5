import typing
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple, Type

from eth_typing import ChecksumAddress

from bridge_deployment.addresses import get_polygon_fx_child_address
from bridge_deployment.chains import (
    ChainId,
    contract_names,
    is_chain_id_mainnet,
    needs_explicit_gas_override,
    uses_messenger_proxy,
)
from bridge_deployment.client import NO_OVERRIDES, ChainClient, TxOverrides
from bridge_deployment.config import L2DeploymentConfig, MessengerWrapperDeploymentConfig
from bridge_deployment.confirm import _confirm_resolution, _confirm_transaction, _continue
from bridge_deployment.constants import (
    AMM_WRAPPER_CONTRACT,
    BONDER_SIGNER_INDEX,
    BRIDGE_TOKEN_CONTRACT,
    CANONICAL_TOKEN_CONTRACT,
    DEFAULT_SWAP_A,
    DEFAULT_SWAP_ADMIN_FEE,
    DEFAULT_SWAP_FEE,
    DEFAULT_SWAP_WITHDRAWAL_FEE,
    GOVERNANCE_SIGNER_INDEX,
    L1_BRIDGE_CONTRACT,
    L2_AMM_WRAPPER_NAME,
    L2_BRIDGE_NAME,
    L2_BRIDGE_TOKEN_NAME,
    L2_MESSENGER_NAME,
    L2_MESSENGER_PROXY_NAME,
    L2_SWAP_NAME,
    MATH_UTILS_CONTRACT,
    NATIVE_WRAPPED_ASSET_SYMBOL,
    OWNER_SIGNER_INDEX,
    SWAP_CONTRACT,
    SWAP_UTILS_CONTRACT,
)
from bridge_deployment.exceptions import (
    AttachmentFailure,
    ChainCallFailure,
    DeploymentConfigError,
    DeploymentError,
    DeploymentStepError,
    UnrecognizedChainId,
)
from bridge_deployment.params import (
    Address,
    Amount,
    Array,
    Count,
    DeploymentParameters,
    Text,
    resolve_l2_bridge_parameters,
    resolve_messenger_wrapper_parameters,
)
from bridge_deployment.registry import DeploymentRecorder

LabelledArgument = Tuple[str, Any]


class DeploymentState(Enum):
    INIT = "init"
    WALLETS_RESOLVED = "wallets_resolved"
    CONTRACTS_ATTACHED = "contracts_attached"
    MESSENGER_PROXY_DEPLOYED = "messenger_proxy_deployed"
    TOKEN_DEPLOYED = "token_deployed"
    AMM_DEPLOYED = "amm_deployed"
    BRIDGE_DEPLOYED = "bridge_deployed"
    WRAPPER_DEPLOYED = "wrapper_deployed"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    PROXY_WIRED = "proxy_wired"
    COMPLETE = "complete"
    FAILED = "failed"


class Signers(NamedTuple):
    owner: Any
    bonder: Any
    governance: Any


def resolve_signers(accounts: Sequence[Any], l1_chain_id: ChainId) -> Signers:
    """
    On ethereum mainnet a single account owns, bonds and governs the deployment;
    everywhere else three distinct accounts are used.
    """
    if is_chain_id_mainnet(l1_chain_id):
        if not accounts:
            raise DeploymentConfigError("At least one signer is required.")
        owner = accounts[OWNER_SIGNER_INDEX]
        return Signers(owner=owner, bonder=owner, governance=owner)

    required = max(OWNER_SIGNER_INDEX, BONDER_SIGNER_INDEX, GOVERNANCE_SIGNER_INDEX) + 1
    if len(accounts) < required:
        raise DeploymentConfigError(
            f"At least {required} signers are required outside of ethereum mainnet, "
            f"got {len(accounts)}."
        )
    return Signers(
        owner=accounts[OWNER_SIGNER_INDEX],
        bonder=accounts[BONDER_SIGNER_INDEX],
        governance=accounts[GOVERNANCE_SIGNER_INDEX],
    )


class DeploymentResult(NamedTuple):
    """Addresses produced by one complete L2 deployment run."""

    chain_id: ChainId
    bridge_token_address: ChecksumAddress
    bridge_address: ChecksumAddress
    swap_address: ChecksumAddress
    amm_wrapper_address: ChecksumAddress
    messenger_address: ChecksumAddress
    messenger_proxy_address: Optional[ChecksumAddress] = None

    def addresses(self) -> "OrderedDict[str, ChecksumAddress]":
        addresses = OrderedDict(
            [
                (L2_BRIDGE_TOKEN_NAME, self.bridge_token_address),
                (L2_BRIDGE_NAME, self.bridge_address),
                (L2_SWAP_NAME, self.swap_address),
                (L2_AMM_WRAPPER_NAME, self.amm_wrapper_address),
                (L2_MESSENGER_NAME, self.messenger_address),
            ]
        )
        if self.messenger_proxy_address:
            addresses[L2_MESSENGER_PROXY_NAME] = self.messenger_proxy_address
        return addresses


class MessengerWrapperResult(NamedTuple):
    """Address of a messenger wrapper deployed on the base chain for one target chain."""

    chain_id: ChainId
    l2_chain_id: ChainId
    contract_name: str
    address: ChecksumAddress

    def addresses(self) -> "OrderedDict[str, ChecksumAddress]":
        return OrderedDict([(self.contract_name, self.address)])


class Step(NamedTuple):
    name: str
    method: str
    target_state: DeploymentState
    failure: Type[DeploymentStepError] = ChainCallFailure
    messenger_proxy_only: bool = False


def _labelled(params: DeploymentParameters) -> List[LabelledArgument]:
    return [(param.abi_type, param.resolve()) for param in params]


class DeploymentRun:
    """
    A single pass through an ordered list of deployment steps.

    Steps run strictly in order; the first failure moves the run to FAILED
    and aborts it. Nothing that already happened on chain is rolled back.
    """

    STEPS: Tuple[Step, ...] = ()

    def __init__(
        self,
        client: ChainClient,
        recorder: DeploymentRecorder,
        overrides: TxOverrides = NO_OVERRIDES,
        autosign: bool = False,
    ):
        self.client = client
        self.recorder = recorder
        self.overrides = overrides
        self.autosign = autosign

        self.state = DeploymentState.INIT
        self.history: List[DeploymentState] = [DeploymentState.INIT]
        self.failure: Optional[Tuple[str, BaseException]] = None
        self.result = None

        self.signers: Optional[Signers] = None

    def _skips(self, step: Step) -> bool:
        return False

    def _context(self) -> typing.Dict[str, Any]:
        """Address arguments known so far, reported alongside failures."""
        return dict()

    def execute(self):
        if self.state is not DeploymentState.INIT:
            raise RuntimeError("A deployment run executes only once; start a new run to redeploy.")
        for step in self.STEPS:
            if self._skips(step):
                continue
            self._run_step(step)
        return self.result

    def _run_step(self, step: Step) -> None:
        try:
            getattr(self, step.method)()
        except DeploymentError as e:
            self._fail(step, e)
            e.at_step(step.name, self._context())
            raise
        except (KeyboardInterrupt, SystemExit) as e:
            # operator abort
            self._fail(step, e)
            raise
        except Exception as e:
            self._fail(step, e)
            raise step.failure(step=step.name, cause=e, context=self._context()) from e
        self.state = step.target_state
        self.history.append(step.target_state)

    def _fail(self, step: Step, cause: BaseException) -> None:
        print(f"Deployment failed at step '{step.name}' (last state: {self.state.value}).")
        self.failure = (step.name, cause)
        self.state = DeploymentState.FAILED
        self.history.append(DeploymentState.FAILED)

    def _deploy(
        self,
        contract_name: str,
        arguments: Sequence[LabelledArgument] = (),
        libraries: Optional[typing.Dict[str, str]] = None,
    ) -> Any:
        container = self.client.get_contract_container(contract_name, libraries=libraries)
        if not self.autosign:
            _confirm_resolution(contract_name, arguments)
        values = [value for _, value in arguments]
        instance = self.client.deploy(
            container, *values, sender=self.signers.owner, overrides=self.overrides
        )
        print(f"(i) Deployed {contract_name} at {instance.address}")
        return instance

    def _transact(
        self, description: str, method: Any, *args, overrides: Optional[TxOverrides] = None
    ) -> Any:
        if not self.autosign:
            _confirm_transaction(description, [("arg", arg) for arg in args])
        else:
            print(f"(i) Transacting {description}")
        if overrides is None:
            overrides = self.overrides
        return self.client.transact(method, *args, sender=self.signers.owner, overrides=overrides)

    def _record(self) -> None:
        self.recorder.record(self.result)


class L2DeploymentRun(DeploymentRun):
    """Deploys and wires the bridge stack of one target network."""

    STEPS = (
        Step("resolve_signers", "_resolve_signers", DeploymentState.WALLETS_RESOLVED),
        Step(
            "attach_contracts",
            "_attach_contracts",
            DeploymentState.CONTRACTS_ATTACHED,
            failure=AttachmentFailure,
        ),
        Step(
            "deploy_messenger_proxy",
            "_deploy_messenger_proxy",
            DeploymentState.MESSENGER_PROXY_DEPLOYED,
            messenger_proxy_only=True,
        ),
        Step("deploy_bridge_token", "_deploy_bridge_token", DeploymentState.TOKEN_DEPLOYED),
        Step("deploy_amm", "_deploy_amm", DeploymentState.AMM_DEPLOYED),
        Step("deploy_bridge", "_deploy_bridge", DeploymentState.BRIDGE_DEPLOYED),
        Step("deploy_amm_wrapper", "_deploy_amm_wrapper", DeploymentState.WRAPPER_DEPLOYED),
        Step(
            "transfer_bridge_token_ownership",
            "_transfer_bridge_token_ownership",
            DeploymentState.OWNERSHIP_TRANSFERRED,
        ),
        Step(
            "wire_messenger_proxy",
            "_wire_messenger_proxy",
            DeploymentState.PROXY_WIRED,
            messenger_proxy_only=True,
        ),
        Step("record_deployment", "_record_deployment", DeploymentState.COMPLETE),
    )

    def __init__(self, config: L2DeploymentConfig, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config
        self.contract_names = contract_names(config.l2_chain_id)
        self.uses_messenger_proxy = uses_messenger_proxy(config.l2_chain_id)
        self.fx_child_address: Optional[ChecksumAddress] = None
        if self.uses_messenger_proxy:
            # resolved before any chain call; an unknown base chain never reaches the wiring step
            self.fx_child_address = config.l2_fx_child_address or get_polygon_fx_child_address(
                config.l1_chain_id
            )

        self.messenger_address: Optional[ChecksumAddress] = config.l2_messenger_address
        self.l1_bridge = None
        self.canonical_token = None
        self.messenger_proxy = None
        self.bridge_token = None
        self.swap = None
        self.bridge = None
        self.amm_wrapper = None

    def _skips(self, step: Step) -> bool:
        return step.messenger_proxy_only and not self.uses_messenger_proxy

    def _messenger_proxy_address(self) -> Optional[ChecksumAddress]:
        if self.messenger_proxy is None:
            return None
        return self.messenger_proxy.address

    def _context(self) -> typing.Dict[str, Any]:
        context = OrderedDict(
            [
                ("l1_bridge", self.config.l1_bridge_address),
                ("canonical_token", self.config.l2_canonical_token_address),
                ("messenger", self.messenger_address),
            ]
        )
        deployed = (
            ("messenger_proxy", self.messenger_proxy),
            ("bridge_token", self.bridge_token),
            ("swap", self.swap),
            ("bridge", self.bridge),
            ("amm_wrapper", self.amm_wrapper),
        )
        for name, instance in deployed:
            if instance is not None:
                context[name] = instance.address
        return context

    def _resolve_signers(self) -> None:
        self.signers = resolve_signers(self.client.get_signers(), self.config.l1_chain_id)
        print(
            f"owner: {self.signers.owner.address}",
            f"bonder: {self.signers.bonder.address}",
            f"governance: {self.signers.governance.address}",
            sep="\n",
        )

    def _attach_contracts(self) -> None:
        print("(i) Attaching deployed contracts")
        l1_bridge_container = self.client.get_contract_container(L1_BRIDGE_CONTRACT)
        self.l1_bridge = self.client.attach(l1_bridge_container, self.config.l1_bridge_address)

        canonical_token_container = self.client.get_contract_container(CANONICAL_TOKEN_CONTRACT)
        self.canonical_token = self.client.attach(
            canonical_token_container, self.config.l2_canonical_token_address
        )

    def _deploy_messenger_proxy(self) -> None:
        self.messenger_proxy = self._deploy(self.contract_names.messenger_proxy)
        self.messenger_address = self.messenger_proxy.address

    def _deploy_bridge_token(self) -> None:
        self.bridge_token = self._deploy(
            BRIDGE_TOKEN_CONTRACT,
            _labelled(
                DeploymentParameters(
                    [
                        Text(self.config.l2_bridge_token_name),
                        Text(self.config.l2_bridge_token_symbol),
                        Count(self.config.l2_bridge_token_decimals),
                    ]
                )
            ),
        )

    def _deploy_amm(self) -> None:
        canonical_token_decimals = self.client.call(
            self.canonical_token.decimals, overrides=self.overrides
        )
        bridge_token_decimals = self.client.call(
            self.bridge_token.decimals, overrides=self.overrides
        )

        math_utils = self._deploy(MATH_UTILS_CONTRACT)
        swap_utils = self._deploy(
            SWAP_UTILS_CONTRACT, libraries={MATH_UTILS_CONTRACT: math_utils.address}
        )
        self.swap = self._deploy(SWAP_CONTRACT, libraries={SWAP_UTILS_CONTRACT: swap_utils.address})

        initialize_params = DeploymentParameters(
            [
                Array.of(Address, [self.canonical_token.address, self.bridge_token.address]),
                Array.of(Count, [canonical_token_decimals, bridge_token_decimals]),
                Text(self.config.l2_swap_lp_token_name),
                Text(self.config.l2_swap_lp_token_symbol),
                Amount(DEFAULT_SWAP_A),
                Amount(DEFAULT_SWAP_FEE),
                Amount(DEFAULT_SWAP_ADMIN_FEE),
                Amount(DEFAULT_SWAP_WITHDRAWAL_FEE),
            ]
        )
        self._transact(
            f"{SWAP_CONTRACT}[{self.swap.address[:10]}].initialize",
            self.swap.initialize,
            *initialize_params.resolve(),
        )

    def _deploy_bridge(self) -> None:
        bridge_params = resolve_l2_bridge_parameters(
            chain_id=self.config.l2_chain_id,
            messenger_address=self.config.l2_messenger_address,
            messenger_proxy_address=self._messenger_proxy_address(),
            governance_address=self.signers.governance.address,
            bridge_token_address=self.bridge_token.address,
            l1_bridge_address=self.l1_bridge.address,
            active_chain_ids=self.config.l2_active_chain_ids,
            bonder_addresses=[self.signers.bonder.address],
            l1_chain_id=self.config.l1_chain_id,
        )
        self.bridge = self._deploy(self.contract_names.l2_bridge, _labelled(bridge_params))

    def _deploy_amm_wrapper(self) -> None:
        canonical_token_symbol = self.client.call(
            self.canonical_token.symbol, overrides=self.overrides
        )
        canonical_token_is_native = canonical_token_symbol == NATIVE_WRAPPED_ASSET_SYMBOL
        self.amm_wrapper = self._deploy(
            AMM_WRAPPER_CONTRACT,
            [
                ("bridge", self.bridge.address),
                ("l2CanonicalToken", self.canonical_token.address),
                ("l2CanonicalTokenIsEth", canonical_token_is_native),
                ("hToken", self.bridge_token.address),
                ("exchangeAddress", self.swap.address),
            ],
        )

    def _transfer_bridge_token_ownership(self) -> None:
        self._transact(
            f"{BRIDGE_TOKEN_CONTRACT}[{self.bridge_token.address[:10]}].transferOwnership",
            self.bridge_token.transferOwnership,
            self.bridge.address,
        )

    def _wire_messenger_proxy(self) -> None:
        # each call targets state left by the previous one; transact returns after confirmation
        proxy_name = f"{self.contract_names.messenger_proxy}[{self.messenger_proxy.address[:10]}]"
        self._transact(
            f"{proxy_name}.setL2Bridge", self.messenger_proxy.setL2Bridge, self.bridge.address
        )
        self._transact(
            f"{proxy_name}.setFxRootTunnel",
            self.messenger_proxy.setFxRootTunnel,
            self.config.l1_messenger_wrapper_address,
        )
        self._transact(
            f"{proxy_name}.setFxChild", self.messenger_proxy.setFxChild, self.fx_child_address
        )

    def _record_deployment(self) -> None:
        self.result = DeploymentResult(
            chain_id=self.config.l2_chain_id,
            bridge_token_address=self.bridge_token.address,
            bridge_address=self.bridge.address,
            swap_address=self.swap.address,
            amm_wrapper_address=self.amm_wrapper.address,
            messenger_address=self.messenger_address,
            messenger_proxy_address=self._messenger_proxy_address(),
        )
        print(
            "(i) L2 Deployments Complete",
            f"L2 Hop Bridge Token : {self.result.bridge_token_address}",
            f"L2 Bridge           : {self.result.bridge_address}",
            f"L2 Swap             : {self.result.swap_address}",
            f"L2 Amm Wrapper      : {self.result.amm_wrapper_address}",
            f"L2 Messenger        : {self.result.messenger_address}",
            f"L2 Messenger Proxy  : {self.result.messenger_proxy_address or ''}",
            sep="\n",
        )
        self._record()


class MessengerWrapperDeploymentRun(DeploymentRun):
    """Deploys the base chain messenger wrapper for one target network."""

    STEPS = (
        Step("resolve_signers", "_resolve_signers", DeploymentState.WALLETS_RESOLVED),
        Step("deploy_messenger_wrapper", "_deploy_wrapper", DeploymentState.WRAPPER_DEPLOYED),
        Step("record_deployment", "_record_deployment", DeploymentState.COMPLETE),
    )

    def __init__(self, config: MessengerWrapperDeploymentConfig, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.config = config
        self.wrapper = None
        self.wrapper_contract_name = contract_names(config.l2_chain_id).messenger_wrapper
        if self.wrapper_contract_name is None:
            raise UnrecognizedChainId(
                config.l2_chain_id,
                f"No messenger wrapper contract is known for chain id {config.l2_chain_id}.",
            )

    def _context(self) -> typing.Dict[str, Any]:
        return OrderedDict(
            [
                ("l1_bridge", self.config.l1_bridge_address),
                ("l2_bridge", self.config.l2_bridge_address),
                ("l1_messenger", self.config.l1_messenger_address),
            ]
        )

    def _resolve_signers(self) -> None:
        accounts = self.client.get_signers()
        if not accounts:
            raise DeploymentConfigError("At least one signer is required.")
        owner = accounts[OWNER_SIGNER_INDEX]
        self.signers = Signers(owner=owner, bonder=owner, governance=owner)
        print(f"owner: {owner.address}")

    def _deploy_wrapper(self) -> None:
        wrapper_params = resolve_messenger_wrapper_parameters(
            chain_id=self.config.l2_chain_id,
            l1_bridge_address=self.config.l1_bridge_address,
            l2_bridge_address=self.config.l2_bridge_address,
            l1_messenger_address=self.config.l1_messenger_address,
        )
        self.wrapper = self._deploy(self.wrapper_contract_name, _labelled(wrapper_params))

    def _record_deployment(self) -> None:
        self.result = MessengerWrapperResult(
            chain_id=self.config.l1_chain_id,
            l2_chain_id=self.config.l2_chain_id,
            contract_name=self.wrapper_contract_name,
            address=self.wrapper.address,
        )
        self._record()


class _Deployer:
    """Holds what stays fixed across runs; every run gets its own private state."""

    RUN_CLASS: Type[DeploymentRun] = DeploymentRun

    def __init__(
        self,
        config,
        client: ChainClient,
        recorder: DeploymentRecorder,
        autosign: bool = False,
        needs_explicit_gas_override: Callable[[ChainId], bool] = needs_explicit_gas_override,
    ):
        self.config = config
        self.client = client
        self.recorder = recorder
        self.autosign = autosign
        self.needs_explicit_gas_override = needs_explicit_gas_override
        self.last_run: Optional[DeploymentRun] = None
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")

    def _target_chain_id(self) -> ChainId:
        return self.config.l2_chain_id

    def _print_deployment_info(self, overrides: TxOverrides) -> None:
        print(
            f"L1 Chain ID: {self.config.l1_chain_id}",
            f"L2 Chain ID: {self.config.l2_chain_id}",
            f"Registry: {self.config.artifact_filepath}",
            f"Gas Overrides: {overrides.as_kwargs() or 'none'}",
            sep="\n",
        )

    def new_run(self) -> DeploymentRun:
        overrides = TxOverrides.for_chain(self.needs_explicit_gas_override(self._target_chain_id()))
        return self.RUN_CLASS(
            self.config,
            client=self.client,
            recorder=self.recorder,
            overrides=overrides,
            autosign=self.autosign,
        )

    def run(self):
        """
        Executes a fresh deployment. Running again with the same configuration
        deploys a second, independent set of contracts.
        """
        run = self.new_run()
        self.last_run = run
        self._print_deployment_info(run.overrides)
        if not self.autosign:
            # Confirms the start of the deployment.
            _continue()
        return run.execute()


class L2Deployer(_Deployer):
    """Deploys the bridge stack of a target network."""

    RUN_CLASS = L2DeploymentRun


class MessengerWrapperDeployer(_Deployer):
    """Deploys the base chain messenger wrapper of a target network."""

    RUN_CLASS = MessengerWrapperDeploymentRun

    def _target_chain_id(self) -> ChainId:
        # the wrapper lives on the base chain
        return self.config.l1_chain_id
