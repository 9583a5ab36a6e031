import copy
import json
from dataclasses import asdict, dataclass
from typing import Any

from .config import (
    GENESIS_DATA,
    GENESIS_NONCE,
    GENESIS_PREV_HASH,
    GENESIS_TIMESTAMP,
    INITIAL_DIFFICULTY,
    MINE_RATE,
)
from .pow import calculate_hash, proof_of_work

_INT_FIELDS = ("timestamp", "nonce", "difficulty")
_STR_FIELDS = ("prev_hash", "hash")


@dataclass(frozen=True, repr=False)
class Block:
    """
    A sealed block. Fields are fixed once constructed; build a new Block
    (``dataclasses.replace``) instead of editing one. Counter and hash
    field types are checked on construction; ``data`` is left opaque.
    """

    timestamp: int
    prev_hash: str
    hash: str
    nonce: int
    difficulty: int
    data: Any

    def __post_init__(self):
        for name in _INT_FIELDS:
            value = getattr(self, name)
            # bool is an int subclass but never a valid counter
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"Block field {name!r} must be an integer")
        for name in _STR_FIELDS:
            if not isinstance(getattr(self, name), str):
                raise ValueError(f"Block field {name!r} must be a string")

    # -------------------------
    # CONSTRUCTORS
    # -------------------------
    @classmethod
    def genesis(cls) -> "Block":
        """Return the fixed genesis block shared by every valid chain."""
        data = copy.deepcopy(GENESIS_DATA)
        return cls(
            timestamp=GENESIS_TIMESTAMP,
            prev_hash=GENESIS_PREV_HASH,
            hash=calculate_hash(
                GENESIS_TIMESTAMP, GENESIS_PREV_HASH, GENESIS_NONCE, INITIAL_DIFFICULTY, data
            ),
            nonce=GENESIS_NONCE,
            difficulty=INITIAL_DIFFICULTY,
            data=data,
        )

    @classmethod
    def mine_block(cls, prev_block: "Block", data, mine_rate: int = MINE_RATE, **kwargs) -> "Block":
        """
        Mine a block on top of ``prev_block`` carrying ``data``.

        Blocks until the proof-of-work target is met. Extra keyword
        arguments (max_nonce, timeout_seconds, progress_callback) are
        passed through to the search.
        """
        return cls(**proof_of_work(prev_block, data, mine_rate=mine_rate, **kwargs))

    # -------------------------
    # HASH CALCULATION
    # -------------------------
    def compute_hash(self) -> str:
        return calculate_hash(self.timestamp, self.prev_hash, self.nonce, self.difficulty, self.data)

    # -------------------------
    # SERIALIZATION
    # -------------------------
    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Canonical encoding; raises TypeError or ValueError for unencodable data."""
        return json.dumps(self.to_dict(), sort_keys=True)

    @staticmethod
    def from_dict(data: dict) -> "Block":
        """Create block from dictionary. Raises ValueError on malformed input."""
        if not isinstance(data, dict):
            raise ValueError(f"Block must be a dict, got {type(data).__name__}")

        missing = [name for name in _INT_FIELDS + _STR_FIELDS + ("data",) if name not in data]
        if missing:
            raise ValueError(f"Block is missing fields: {', '.join(missing)}")

        return Block(
            timestamp=data["timestamp"],
            prev_hash=data["prev_hash"],
            hash=data["hash"],
            nonce=data["nonce"],
            difficulty=data["difficulty"],
            data=copy.deepcopy(data["data"]),
        )

    def __repr__(self):
        return f"Block(ts={self.timestamp}, difficulty={self.difficulty}, hash={str(self.hash)[:8]})"
