"""Configuration constants for genesis generation."""

import os

# Upper bound of a single coin value and of the total genesis stake.  Any
# allocation that would exceed it is rejected instead of wrapping.
MAX_COIN = 45_000_000_000_000_000

# Literal token replaced by the decimal stakeholder index in keyfile patterns.
PATTERN_PLACEHOLDER = "{}"

# Suffix appended to richmen keyfiles holding a primary signing key.
PRIMARY_SUFFIX = ".primary"

# Round-trip failures dump the in-memory genesis only below this size.
DUMP_THRESHOLD = 10 * 1024

# VSS certificates issued at genesis stay valid up to this epoch.
VSS_MAX_TTL = 6
VSS_CERT_EXPIRY_EPOCH = VSS_MAX_TTL - 1

# Number of addresses reported in operator previews.
ADDRESS_PREVIEW = 10

DEFAULT_GENESIS_FILE = "genesis.bin"
DEFAULT_WORKERS = min(32, (os.cpu_count() or 1) + 4)

# Binary artifact header.
GENESIS_MAGIC = b"SGEN"
GENESIS_FORMAT_VERSION = 1
