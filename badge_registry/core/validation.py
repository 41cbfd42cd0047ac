import re

MAX_URI_BYTES = 256
MAX_BATCH_SIZE = 100

# Largest values the badges.expiry_block and registry_state.block_height columns hold
MAX_BLOCK_HEIGHT = 2**63 - 1

PRINCIPAL_PATTERN = re.compile(r"^[A-Za-z0-9._:@-]{1,128}$")


def is_valid_uri(uri: str) -> bool:
    """True iff the URI is between 1 and 256 bytes once UTF-8 encoded."""
    if not isinstance(uri, str):
        return False
    return 1 <= len(uri.encode("utf-8")) <= MAX_URI_BYTES


def is_valid_principal(principal: str) -> bool:
    return isinstance(principal, str) and PRINCIPAL_PATTERN.match(principal) is not None
