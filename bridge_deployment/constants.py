from pathlib import Path

import bridge_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(bridge_deployment.__file__).parent
DEPLOY_PARAMS_DIR = DEPLOYMENT_DIR / "deploy_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Chain IDs
#


ETHEREUM_MAINNET = 1
ETHEREUM_GOERLI = 5
ETHEREUM_KOVAN = 42

ARBITRUM_TESTNET_2 = 152709604825713
ARBITRUM_TESTNET_3 = 79377087078960
ARBITRUM_TESTNET_4 = 212984383488152

OPTIMISM_TESTNET_1 = 69
OPTIMISM_SYNTHETIX_DEMO = 420
OPTIMISM_HOP_TESTNET = 607

XDAI_XDAI = 100
XDAI_SOKOL = 77

POLYGON_MAINNET = 137
POLYGON_MUMBAI = 80001

CHAIN_IDS = {
    "ethereum": {
        "mainnet": ETHEREUM_MAINNET,
        "goerli": ETHEREUM_GOERLI,
        "kovan": ETHEREUM_KOVAN,
    },
    "arbitrum": {
        "testnet_2": ARBITRUM_TESTNET_2,
        "testnet_3": ARBITRUM_TESTNET_3,
        "testnet_4": ARBITRUM_TESTNET_4,
    },
    "optimism": {
        "testnet_1": OPTIMISM_TESTNET_1,
        "synthetix_demo": OPTIMISM_SYNTHETIX_DEMO,
        "hop_testnet": OPTIMISM_HOP_TESTNET,
    },
    "xdai": {
        "xdai": XDAI_XDAI,
        "sokol": XDAI_SOKOL,
    },
    "polygon": {
        "mainnet": POLYGON_MAINNET,
        "mumbai": POLYGON_MUMBAI,
    },
}

# Chain ids the L2 bridge is initially aware of
DEFAULT_ACTIVE_CHAIN_IDS = [str(ETHEREUM_MAINNET)]


#
# Messenger wrappers (L1)
#

DEFAULT_MESSENGER_WRAPPER_GAS_LIMIT = 1_500_000
DEFAULT_MESSENGER_WRAPPER_GAS_PRICE = 0
DEFAULT_MESSENGER_WRAPPER_CALL_VALUE = 0
XDAI_MESSENGER_WRAPPER_GAS_LIMIT = 1_000_000

#
# L2 bridges
#

DEFAULT_L2_BRIDGE_GAS_LIMIT = 6_000_000

# Explicit gas limit for chains that cannot estimate gas reliably
DEFAULT_GAS_OVERRIDE_LIMIT = 5_000_000

# Signer indices used outside of ethereum mainnet
OWNER_SIGNER_INDEX = 0
BONDER_SIGNER_INDEX = 1
GOVERNANCE_SIGNER_INDEX = 4

NATIVE_WRAPPED_ASSET_SYMBOL = "WETH"

#
# AMM
#

DEFAULT_SWAP_A = 200
DEFAULT_SWAP_FEE = 4_000_000
DEFAULT_SWAP_ADMIN_FEE = 0
DEFAULT_SWAP_WITHDRAWAL_FEE = 0

#
# Polygon fx-portal infrastructure
#

STATE_SENDER_ADDRESSES = {
    "MAINNET": "0x28e4F3a7f651294B9564800b2D01f35189A5bFbE",
    "GOERLI": "0xEAa852323826C71cd7920C3b4c007184234c3945",
}

CHECKPOINT_MANAGER_ADDRESSES = {
    "MAINNET": "0x86E4Dc95c7FBdBf52e33D563BbDB00823894C287",
    "GOERLI": "0x2890bA17EfE978480615e330ecB65333b880928e",
}

FX_CHILD_ADDRESSES = {
    "MAINNET": "0x8397259c983751DAf40400790063935a11afa28a",
    "GOERLI": "0xCf73231F28B7331BBe3124B907840A94851f9f11",
}

#
# xDai arbitrary message bridge
#

KOVAN_AMB_ADDRESS = "0xFe446bEF1DbF7AFE24E81e05BC8B271C1BA9a560"
SOKOL_AMB_ADDRESS = "0xFe446bEF1DbF7AFE24E81e05BC8B271C1BA9a560"

#
# Contracts
#

L1_BRIDGE_CONTRACT = "L1_Bridge"
CANONICAL_TOKEN_CONTRACT = "MockERC20"
BRIDGE_TOKEN_CONTRACT = "HopBridgeToken"
AMM_WRAPPER_CONTRACT = "L2_AmmWrapper"
MATH_UTILS_CONTRACT = "MathUtils"
SWAP_UTILS_CONTRACT = "SwapUtils"
SWAP_CONTRACT = "Swap"
DEFAULT_L2_BRIDGE_CONTRACT = "L2_Bridge"

# Registry names for the addresses produced by an L2 deployment
L2_BRIDGE_TOKEN_NAME = "L2_HopBridgeToken"
L2_BRIDGE_NAME = "L2_Bridge"
L2_SWAP_NAME = "L2_Swap"
L2_AMM_WRAPPER_NAME = "L2_AmmWrapper"
L2_MESSENGER_NAME = "L2_Messenger"
L2_MESSENGER_PROXY_NAME = "L2_MessengerProxy"

ZERO_ADDRESS = "0x" + "0" * 40
