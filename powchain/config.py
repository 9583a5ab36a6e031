"""
config.py - Consensus constants for powchain.
Every node must agree on these values or genesis blocks will not match.
"""

# Genesis block fields (fixed for reproducibility)
GENESIS_TIMESTAMP = 1704067200000  # ms
GENESIS_PREV_HASH = "0" * 64
GENESIS_NONCE = 0
GENESIS_DATA = []

# Proof-of-Work difficulty (number of leading zero bits required)
INITIAL_DIFFICULTY = 3

# Target time between blocks, in milliseconds
MINE_RATE = 1000
