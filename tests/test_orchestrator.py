import builtins

import pytest

from bridge_deployment.addresses import get_polygon_fx_child_address
from bridge_deployment.client import NO_OVERRIDES, TxOverrides
from bridge_deployment.config import L2DeploymentConfig
from bridge_deployment.exceptions import (
    AttachmentFailure,
    ChainCallFailure,
    DeploymentConfigError,
    DeploymentStepError,
    UnrecognizedChainId,
)
from bridge_deployment.orchestrator import (
    DeploymentResult,
    DeploymentState,
    L2Deployer,
    MessengerWrapperDeployer,
    MessengerWrapperResult,
    resolve_signers,
)
from bridge_deployment.registry import RegistryRecorder, read_registry
from tests.conftest import (
    L1_BRIDGE,
    L1_MESSENGER,
    L1_MESSENGER_WRAPPER,
    L2_BRIDGE,
    L2_CANONICAL_TOKEN,
    L2_MESSENGER,
    FakeAccount,
    FakeChainClient,
)


def test_resolve_signers_mainnet_uses_single_signer():
    accounts = [FakeAccount(0)]
    signers = resolve_signers(accounts, l1_chain_id=1)
    assert signers.owner is signers.bonder is signers.governance is accounts[0]


def test_resolve_signers_testnet_uses_distinct_signers():
    accounts = [FakeAccount(index) for index in range(5)]
    signers = resolve_signers(accounts, l1_chain_id=42)
    assert signers.owner is accounts[0]
    assert signers.bonder is accounts[1]
    assert signers.governance is accounts[4]


def test_resolve_signers_requires_enough_accounts():
    with pytest.raises(DeploymentConfigError):
        resolve_signers([FakeAccount(0), FakeAccount(1)], l1_chain_id=42)
    with pytest.raises(DeploymentConfigError):
        resolve_signers([], l1_chain_id=1)


def test_deploy_unclassified_target_on_mainnet(optimism_params, recorder):
    # an unclassified target: no proxy, no explicit gas and the default bridge contract
    config = L2DeploymentConfig.from_config(dict(optimism_params, l1_chain_id=1, l2_chain_id=10))
    client = FakeChainClient(num_signers=1)
    deployer = L2Deployer(config=config, client=client, recorder=recorder, autosign=True)
    result = deployer.run()

    run = deployer.last_run
    assert run.state is DeploymentState.COMPLETE
    assert run.history == [
        DeploymentState.INIT,
        DeploymentState.WALLETS_RESOLVED,
        DeploymentState.CONTRACTS_ATTACHED,
        DeploymentState.TOKEN_DEPLOYED,
        DeploymentState.AMM_DEPLOYED,
        DeploymentState.BRIDGE_DEPLOYED,
        DeploymentState.WRAPPER_DEPLOYED,
        DeploymentState.OWNERSHIP_TRANSFERRED,
        DeploymentState.COMPLETE,
    ]
    assert client.deployed() == [
        "HopBridgeToken",
        "MathUtils",
        "SwapUtils",
        "Swap",
        "L2_Bridge",
        "L2_AmmWrapper",
    ]
    assert client.transactions() == ["initialize", "transferOwnership"]

    # every deployment is signed by the single mainnet signer
    signer = client.signers[0]
    for event in client.events:
        if event[0] == "deploy":
            assert event[3] is signer
            assert event[4] == NO_OVERRIDES

    bridge_args = next(e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_Bridge")
    assert bridge_args == (
        L2_MESSENGER,
        signer.address,
        result.bridge_token_address,
        L1_BRIDGE,
        [1],
        [signer.address],
    )

    assert isinstance(result, DeploymentResult)
    assert result.messenger_address == L2_MESSENGER
    assert result.messenger_proxy_address is None
    assert recorder.results == [result]
    assert list(result.addresses()) == [
        "L2_HopBridgeToken",
        "L2_Bridge",
        "L2_Swap",
        "L2_AmmWrapper",
        "L2_Messenger",
    ]


def test_deploy_base_family_target_on_mainnet(optimism_params, recorder):
    config = L2DeploymentConfig.from_config(dict(optimism_params, l1_chain_id=1, l2_chain_id=42))
    client = FakeChainClient(num_signers=1)
    deployer = L2Deployer(config=config, client=client, recorder=recorder, autosign=True)
    result = deployer.run()

    assert deployer.last_run.state is DeploymentState.COMPLETE
    assert deployer.last_run.overrides == NO_OVERRIDES
    assert DeploymentState.MESSENGER_PROXY_DEPLOYED not in deployer.last_run.history
    assert DeploymentState.PROXY_WIRED not in deployer.last_run.history

    signer = client.signers[0]
    bridge_args = next(e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_Bridge")
    assert bridge_args == (
        L2_MESSENGER,
        signer.address,
        result.bridge_token_address,
        L1_BRIDGE,
        [1],
        [signer.address],
    )
    assert result.messenger_proxy_address is None
    assert recorder.results == [result]


def test_deploy_arbitrum_uses_explicit_gas_override(arbitrum_config, client, recorder):
    deployer = L2Deployer(config=arbitrum_config, client=client, recorder=recorder, autosign=True)
    result = deployer.run()

    overrides = TxOverrides(gas_limit=5000000)
    assert deployer.last_run.overrides == overrides
    reads = [(e[1], e[2], e[4]) for e in client.events if e[0] == "call"]
    assert ("MockERC20", "decimals", overrides) in reads
    assert ("HopBridgeToken", "decimals", overrides) in reads
    writes = {e[2]: e[4] for e in client.events if e[0] == "transact"}
    assert writes == {"initialize": overrides, "transferOwnership": overrides}

    # no constructor suffix for this family
    bridge_args = next(
        e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_ArbitrumBridge"
    )
    assert bridge_args == (
        L2_MESSENGER,
        client.signers[4].address,
        result.bridge_token_address,
        L1_BRIDGE,
        [1],
        [client.signers[1].address],
    )


def test_deploy_xdai_appends_base_chain_id_and_gas_limit(xdai_config, client, recorder):
    deployer = L2Deployer(config=xdai_config, client=client, recorder=recorder, autosign=True)
    deployer.run()

    assert deployer.last_run.overrides == NO_OVERRIDES
    bridge_args = next(
        e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_XDaiBridge"
    )
    assert len(bridge_args) == 8
    assert list(bridge_args[-2:]) == [xdai_config.l1_chain_id, 6000000]


def test_deployment_error_carries_step(optimism_config, recorder):
    client = FakeChainClient(num_signers=2)
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(DeploymentConfigError) as exc_info:
        deployer.run()
    assert exc_info.value.step == "resolve_signers"
    assert exc_info.value.context["l1_bridge"] == L1_BRIDGE


def test_deploy_optimism_uses_explicit_gas_override(optimism_config, client, recorder):
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    deployer.run()

    overrides = TxOverrides(gas_limit=5000000)
    assert deployer.last_run.overrides == overrides
    for event in client.events:
        if event[0] == "deploy":
            assert event[4] == overrides
        elif event[0] in ("call", "transact"):
            assert event[4] == overrides

    bridge_args = next(
        e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_OptimismBridge"
    )
    assert bridge_args[-1] == 6000000
    # testnet roles come from distinct signers
    assert bridge_args[1] == client.signers[4].address
    assert bridge_args[5] == [client.signers[1].address]


def test_amm_is_linked_and_initialized(optimism_config, client, recorder):
    result = L2Deployer(
        config=optimism_config, client=client, recorder=recorder, autosign=True
    ).run()

    deploys = {event[1]: event for event in client.events if event[0] == "deploy"}
    # libraries are linked by name to the previously deployed library
    assert deploys["MathUtils"][5] == {}
    assert list(deploys["SwapUtils"][5]) == ["MathUtils"]
    assert list(deploys["Swap"][5]) == ["SwapUtils"]
    assert deploys["SwapUtils"][5]["MathUtils"] != deploys["Swap"][5]["SwapUtils"]

    initialize = next(e for e in client.events if e[0] == "transact" and e[2] == "initialize")
    assert initialize[3] == (
        [L2_CANONICAL_TOKEN, result.bridge_token_address],
        [18, 18],
        "DAI Hop LP Token",
        "HOP-LP-DAI",
        200,
        4000000,
        0,
        0,
    )


def test_bridge_token_ownership_moves_to_bridge(optimism_config, client, recorder):
    result = L2Deployer(
        config=optimism_config, client=client, recorder=recorder, autosign=True
    ).run()
    transfer = next(
        e for e in client.events if e[0] == "transact" and e[2] == "transferOwnership"
    )
    assert transfer[1] == "HopBridgeToken"
    assert transfer[3] == (result.bridge_address,)


def test_deploy_polygon_wires_messenger_proxy(polygon_config, client, recorder):
    deployer = L2Deployer(config=polygon_config, client=client, recorder=recorder, autosign=True)
    result = deployer.run()

    run = deployer.last_run
    assert run.state is DeploymentState.COMPLETE
    assert DeploymentState.MESSENGER_PROXY_DEPLOYED in run.history
    assert run.history[-2:] == [DeploymentState.PROXY_WIRED, DeploymentState.COMPLETE]
    assert client.deployed()[0] == "L2_PolygonMessengerProxy"

    assert result.messenger_proxy_address
    assert result.messenger_address == result.messenger_proxy_address
    assert result.addresses()["L2_MessengerProxy"] == result.messenger_proxy_address

    bridge_args = next(
        e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_PolygonBridge"
    )
    assert bridge_args[0] == result.messenger_proxy_address
    assert len(bridge_args) == 6

    proxy_events = [
        event[:4] for event in client.events if event[1] == "L2_PolygonMessengerProxy"
    ]
    assert [event[:3] for event in proxy_events if event[0] != "deploy"] == [
        ("transact", "L2_PolygonMessengerProxy", "setL2Bridge"),
        ("confirmed", "L2_PolygonMessengerProxy", "setL2Bridge"),
        ("transact", "L2_PolygonMessengerProxy", "setFxRootTunnel"),
        ("confirmed", "L2_PolygonMessengerProxy", "setFxRootTunnel"),
        ("transact", "L2_PolygonMessengerProxy", "setFxChild"),
        ("confirmed", "L2_PolygonMessengerProxy", "setFxChild"),
    ]
    wiring_args = [event[3] for event in proxy_events if event[0] == "transact"]
    assert wiring_args == [
        (result.bridge_address,),
        (L1_MESSENGER_WRAPPER,),
        (get_polygon_fx_child_address(5),),
    ]


def test_polygon_params_require_known_base_chain(polygon_params):
    # fx-portal addresses are only known for mainnet and goerli
    with pytest.raises(UnrecognizedChainId) as exc_info:
        L2DeploymentConfig.from_config(dict(polygon_params, l1_chain_id=42))
    assert exc_info.value.chain_id == 42


def test_polygon_unknown_base_chain_touches_no_chain(polygon_config, client, recorder):
    config = polygon_config._replace(l1_chain_id=42, l2_fx_child_address=None)
    deployer = L2Deployer(config=config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(UnrecognizedChainId):
        deployer.run()

    assert client.events == []
    assert client.deployed() == []
    assert client.transactions() == []
    assert recorder.results == []


def test_polygon_wiring_uses_resolved_fx_child(polygon_config, client, recorder):
    assert polygon_config.l2_fx_child_address == get_polygon_fx_child_address(5)
    L2Deployer(config=polygon_config, client=client, recorder=recorder, autosign=True).run()
    set_fx_child = next(e for e in client.events if e[0] == "transact" and e[2] == "setFxChild")
    assert set_fx_child[3] == (polygon_config.l2_fx_child_address,)


@pytest.mark.parametrize("config_fixture", ["arbitrum_config", "optimism_config"])
@pytest.mark.parametrize(
    "symbol,is_native",
    [("WETH", True), ("weth", False), ("WETH ", False), ("DAI", False)],
)
def test_amm_wrapper_native_asset_flag(request, config_fixture, recorder, symbol, is_native):
    config = request.getfixturevalue(config_fixture)
    client = FakeChainClient(canonical_symbol=symbol)
    result = L2Deployer(config=config, client=client, recorder=recorder, autosign=True).run()
    wrapper_args = next(
        e[2] for e in client.events if e[0] == "deploy" and e[1] == "L2_AmmWrapper"
    )
    assert wrapper_args == (
        result.bridge_address,
        L2_CANONICAL_TOKEN,
        is_native,
        result.bridge_token_address,
        result.swap_address,
    )


def test_failed_step_aborts_run(optimism_config, client, recorder):
    client.fail_on.add(("deploy", "Swap"))
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(ChainCallFailure) as exc_info:
        deployer.run()

    error = exc_info.value
    assert error.step == "deploy_amm"
    assert isinstance(error.cause, RuntimeError)
    assert error.__cause__ is error.cause
    assert error.context["l1_bridge"] == L1_BRIDGE
    assert "bridge_token" in error.context

    run = deployer.last_run
    assert run.state is DeploymentState.FAILED
    assert run.failure == ("deploy_amm", error.cause)
    assert run.history[-2:] == [DeploymentState.TOKEN_DEPLOYED, DeploymentState.FAILED]
    # later steps are never issued
    assert client.deployed() == ["HopBridgeToken", "MathUtils", "SwapUtils"]
    assert client.transactions() == []
    assert recorder.results == []


def test_failed_write_aborts_run(optimism_config, client, recorder):
    client.fail_on.add(("transact", "transferOwnership"))
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(ChainCallFailure):
        deployer.run()
    assert deployer.last_run.failure[0] == "transfer_bridge_token_ownership"
    assert recorder.results == []


def test_attachment_failure(optimism_config, client, recorder):
    client.fail_attach = True
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(AttachmentFailure) as exc_info:
        deployer.run()
    assert exc_info.value.step == "attach_contracts"
    assert isinstance(exc_info.value, DeploymentStepError)
    assert deployer.last_run.state is DeploymentState.FAILED
    assert client.deployed() == []


def test_too_few_signers_fails_first_step(optimism_config, recorder):
    client = FakeChainClient(num_signers=2)
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    with pytest.raises(DeploymentConfigError):
        deployer.run()
    assert deployer.last_run.failure[0] == "resolve_signers"
    assert client.events == []


def test_run_executes_once(optimism_config, client, recorder):
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder, autosign=True)
    deployer.run()
    with pytest.raises(RuntimeError):
        deployer.last_run.execute()


def test_rerun_deploys_new_contracts(optimism_params, client, tmp_path):
    config = L2DeploymentConfig.from_config(optimism_params)
    recorder = RegistryRecorder(config.artifact_filepath)
    deployer = L2Deployer(config=config, client=client, recorder=recorder, autosign=True)

    first = deployer.run()
    first_run = deployer.last_run
    second = deployer.run()

    assert deployer.last_run is not first_run
    assert first_run.state is DeploymentState.COMPLETE
    assert first.bridge_address != second.bridge_address
    assert first.bridge_token_address != second.bridge_token_address

    # the registry keeps the first deployment; the second is written next to it
    assert recorder.written_filepaths == [
        tmp_path / "l2.json",
        tmp_path / "l2.unmerged.json",
    ]
    recorded = {entry.name: entry.address for entry in read_registry(tmp_path / "l2.json")}
    assert recorded["L2_Bridge"] == first.bridge_address
    unmerged = read_registry(tmp_path / "l2.unmerged.json")
    assert {entry.name: entry.address for entry in unmerged}["L2_Bridge"] == second.bridge_address


def test_confirmation_prompts(optimism_config, client, recorder, monkeypatch):
    questions = list()

    def answer(question):
        questions.append(question)
        return "y"

    monkeypatch.setattr(builtins, "input", answer)
    L2Deployer(config=optimism_config, client=client, recorder=recorder).run()

    # one to start, one per contract, one per transaction
    assert questions[0] == "Continue Y/N? "
    assert "Deploy HopBridgeToken Y/N? " in questions
    assert len(questions) == 1 + len(client.deployed()) + len(client.transactions())


def test_declined_confirmation_aborts(optimism_config, client, recorder, monkeypatch):
    answers = iter(["y", "n"])
    monkeypatch.setattr(builtins, "input", lambda question: next(answers))
    deployer = L2Deployer(config=optimism_config, client=client, recorder=recorder)
    with pytest.raises(SystemExit):
        deployer.run()
    assert client.deployed() == []

    run = deployer.last_run
    assert run.state is DeploymentState.FAILED
    assert run.failure[0] == "deploy_bridge_token"
    assert isinstance(run.failure[1], SystemExit)


def test_deploy_messenger_wrapper(wrapper_config, client, recorder):
    deployer = MessengerWrapperDeployer(
        config=wrapper_config, client=client, recorder=recorder, autosign=True
    )
    result = deployer.run()

    assert isinstance(result, MessengerWrapperResult)
    assert result.chain_id == 42
    assert result.l2_chain_id == 69
    assert result.contract_name == "OptimismMessengerWrapper"
    assert deployer.last_run.history[-1] is DeploymentState.COMPLETE
    # the wrapper is deployed on the base chain, which needs no gas override
    assert deployer.last_run.overrides == NO_OVERRIDES

    deploy = next(e for e in client.events if e[0] == "deploy")
    assert deploy[1] == "OptimismMessengerWrapper"
    assert deploy[2] == (L1_BRIDGE, L2_BRIDGE, L1_MESSENGER, 1500000)
    assert deploy[3] is client.signers[0]
    assert recorder.results == [result]


def test_messenger_wrapper_requires_known_family(wrapper_config, client, recorder):
    deployer = MessengerWrapperDeployer(
        config=wrapper_config._replace(l2_chain_id=10),
        client=client,
        recorder=recorder,
        autosign=True,
    )
    with pytest.raises(UnrecognizedChainId):
        deployer.run()
    assert client.events == []
