"""
consensus.py - Fork choice for powchain.
Longest valid chain wins; anything else leaves local state untouched.
"""

import logging

from .block import Block
from .chain import Blockchain

logger = logging.getLogger(__name__)


class ConsensusController:
    """
    Applies the fork-choice rule to a local Blockchain.

    There is no cumulative-work weighting and no partial merge: a candidate
    either replaces the whole local history or is ignored.
    """

    def replace_chain(self, local_chain: Blockchain, candidate) -> bool:
        """
        Replace ``local_chain`` with ``candidate`` if it is strictly longer
        and valid.

        Args:
            local_chain: the Blockchain holding accepted state
            candidate: list of Block, or list of block dictionaries from a peer

        Returns:
            True if the chain was replaced, False otherwise
        """
        try:
            incoming_length = len(candidate)
        except TypeError:
            logger.warning("The incoming chain is not valid")
            return False

        with local_chain.lock:
            local_length = local_chain.height

            if incoming_length <= local_length:
                logger.warning(
                    "The incoming chain is not longer (%d <= %d)", incoming_length, local_length
                )
                return False

            blocks = self._decode(candidate)
            if blocks is None or not Blockchain.is_valid_chain(blocks):
                logger.warning("The incoming chain is not valid")
                return False

            local_chain._adopt(blocks)
            logger.info("Replacing chain: %d -> %d blocks", local_length, len(blocks))
            return True

    @staticmethod
    def _decode(candidate):
        if all(isinstance(item, Block) for item in candidate):
            return list(candidate)

        try:
            return Blockchain.blocks_from_dicts(list(candidate))
        except ValueError as e:
            logger.debug("Could not decode incoming chain: %s", e)
            return None
