# Core modules
from .block import Block
from .chain import Blockchain

# Consensus
from .consensus import ConsensusController
from .pow import (
    MiningExceededError,
    adjust_difficulty,
    calculate_hash,
    hex_to_binary,
    proof_of_work,
)

__all__ = [
    # Core
    "Block",
    "Blockchain",
    # Consensus
    "ConsensusController",
    "proof_of_work",
    "adjust_difficulty",
    "calculate_hash",
    "hex_to_binary",
    "MiningExceededError",
]
