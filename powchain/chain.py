from .block import Block
from .pow import is_canonical_data
import logging
import threading

logger = logging.getLogger(__name__)


class Blockchain:
    """
    Owns one ledger: a non-empty list of blocks rooted at genesis.

    The list is only ever changed by ``add_block`` (one mined block on the
    tip) or by ``ConsensusController`` swapping in a whole validated list.
    Both run under ``lock`` and both publish a new list object in a single
    assignment, so reads take no lock and always see a complete chain.

    ``add_block`` keeps ``lock`` for the whole mining search. A
    ``replace_chain`` from another thread waits until that search ends.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._chain = [Block.genesis()]

    @classmethod
    def from_blocks(cls, blocks) -> "Blockchain":
        """Build a Blockchain holding ``blocks``. Raises ValueError if they are not a valid chain."""
        try:
            blocks = list(blocks)
        except TypeError:
            raise ValueError("Blocks must be a sequence")
        if not cls.is_valid_chain(blocks):
            raise ValueError("Blocks do not form a valid chain")
        chain = cls()
        chain._adopt(blocks)
        return chain

    @property
    def chain(self):
        """Returns a snapshot of the blocks currently held."""
        return list(self._chain)

    @property
    def last_block(self):
        """
        Returns the most recent block in the chain.
        """
        return self._chain[-1]

    @property
    def height(self):
        """Returns the current chain height (number of blocks)."""
        return len(self._chain)

    def __len__(self):
        return self.height

    def add_block(self, data, **mining_kwargs):
        """
        Mines a block carrying ``data`` on top of the tip and appends it.

        Locally mined blocks are trusted by construction and are not
        re-validated. Raises ValueError if ``data`` is not canonical JSON
        (see ``pow.is_canonical_data``); the chain is left unchanged.
        """
        with self.lock:
            block = Block.mine_block(self._chain[-1], data, **mining_kwargs)
            self._chain = self._chain + [block]
            logger.info("Block added at height %d: %s", len(self._chain) - 1, block.hash)
            return block

    def _adopt(self, blocks):
        # Only reached with blocks that passed is_valid_chain
        with self.lock:
            self._chain = list(blocks)

    def replace_chain(self, candidate) -> bool:
        """Apply the longest-valid-chain rule against ``candidate``."""
        from .consensus import ConsensusController

        return ConsensusController().replace_chain(self, candidate)

    @staticmethod
    def is_valid_chain(candidate) -> bool:
        """
        Validate a chain received from an untrusted source.

        Checks:
        1. Chain is a non-empty sequence of Block
        2. First block encodes identically to the genesis block
        3. Each block's prev_hash links to its predecessor's hash
        4. Each block's data is canonical JSON and its hash matches its fields
        5. Difficulty moves by at most one between neighbours

        Never mutates ``candidate`` and never raises for malformed input.
        """
        if candidate is None:
            logger.debug("Chain validation failed: no chain")
            return False

        try:
            blocks = list(candidate)
        except TypeError:
            logger.debug("Chain validation failed: not a sequence")
            return False

        if not blocks:
            logger.debug("Chain validation failed: empty chain")
            return False

        for i, block in enumerate(blocks):
            if not isinstance(block, Block):
                logger.debug("Chain validation failed: item %d is not a Block", i)
                return False
            if not isinstance(block.difficulty, int) or isinstance(block.difficulty, bool) or block.difficulty < 1:
                logger.debug("Chain validation failed: bad difficulty at block %d", i)
                return False

        # Compare encodings, not ==, so 0/False and int/float do not pass as equal
        try:
            genesis_matches = blocks[0].to_json() == Block.genesis().to_json()
        except (TypeError, ValueError, RecursionError):
            genesis_matches = False
        if not genesis_matches:
            logger.debug("Chain validation failed: genesis mismatch")
            return False

        for i in range(1, len(blocks)):
            block = blocks[i]
            prev_block = blocks[i - 1]

            # Check previous hash linkage
            if block.prev_hash != prev_block.hash:
                logger.debug("Chain validation failed: invalid prev_hash at block %d", i)
                return False

            if not is_canonical_data(block.data):
                logger.debug("Chain validation failed: non-canonical data at block %d", i)
                return False

            # Recompute the hash over the stored fields
            try:
                computed_hash = block.compute_hash()
            except (TypeError, ValueError) as e:
                logger.debug("Chain validation failed: unhashable fields at block %d: %s", i, e)
                return False

            if block.hash != computed_hash:
                logger.debug("Chain validation failed: invalid hash at block %d", i)
                return False

            # Direction is not checked, only the step size
            if abs(block.difficulty - prev_block.difficulty) > 1:
                logger.debug("Chain validation failed: difficulty jump at block %d", i)
                return False

        return True

    def to_dict_list(self) -> list:
        """Export chain as list of block dictionaries."""
        return [block.to_dict() for block in self._chain]

    @staticmethod
    def blocks_from_dicts(chain_data: list) -> list:
        """Decode a list of block dictionaries. Raises ValueError on malformed input."""
        if not isinstance(chain_data, list):
            raise ValueError("Chain must be a list of blocks")
        return [Block.from_dict(item) for item in chain_data]
