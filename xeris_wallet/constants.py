"""XerisCoin wallet constants."""

CURRENCY = "XRS"

# 1 XRS = 1e9 base units (lamports).
LAMPORTS_PER_XRS = 1_000_000_000
MAX_DECIMALS = 9
U64_MAX = 2**64 - 1

# Transfer fee in parts per thousand of the transferred base units (0.1%).
FEE_PER_MILLE = 1

AIRDROP_LAMPORTS = 1_000_000_000_000

STAKE_SEED = b"stake"
STAKE_METHOD = "initialize_stake"

# Local alpha node (HTTP + JSON-RPC on the same port).
DEFAULT_RPC_URL = "http://127.0.0.1:4001"
DEFAULT_COMMITMENT = "confirmed"
ALLOWED_COMMITMENTS = ("processed", "confirmed", "finalized")

DEFAULT_CONFIRM_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 0.5
DEFAULT_HTTP_TIMEOUT = 10.0

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
