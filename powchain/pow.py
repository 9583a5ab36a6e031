import json
import time
import hashlib
import logging

from .config import MINE_RATE

logger = logging.getLogger(__name__)


class MiningExceededError(Exception):
    """Raised when max_nonce, timeout, or cancellation is exceeded during mining."""


def calculate_hash(*fields):
    """Calculates SHA256 hash over an ordered tuple of block fields."""
    payload = json.dumps(list(fields), sort_keys=True).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def is_canonical_data(data) -> bool:
    """
    True if ``data`` comes back unchanged from a JSON round trip.

    Payloads JSON would coerce (int dict keys, tuples, NaN) or cannot
    encode at all are refused, so two distinct payloads never share a digest.
    """
    try:
        return json.loads(json.dumps(data, sort_keys=True)) == data
    except (TypeError, ValueError, RecursionError):
        return False


def hex_to_binary(hex_digest: str) -> str:
    """Expands a hex digest to its bit string, keeping leading zeros."""
    return bin(int(hex_digest, 16))[2:].zfill(len(hex_digest) * 4)


def meets_difficulty(block_hash: str, difficulty: int) -> bool:
    return hex_to_binary(block_hash).startswith("0" * difficulty)


def adjust_difficulty(prev_block, timestamp: int, mine_rate: int = MINE_RATE) -> int:
    """
    Moves difficulty one step from the previous block's.

    Faster than ``mine_rate`` raises it, slower lowers it, exactly on
    target leaves it alone. Never drops below 1.
    """
    difficulty = prev_block.difficulty
    elapsed = timestamp - prev_block.timestamp

    if elapsed < mine_rate:
        difficulty += 1
    elif elapsed > mine_rate:
        difficulty -= 1

    return max(difficulty, 1)


def proof_of_work(
    prev_block,
    data,
    mine_rate=MINE_RATE,
    max_nonce=None,
    timeout_seconds=None,
    progress_callback=None,
):
    """
    Searches for a nonce whose hash meets the difficulty target.

    Timestamp and difficulty are re-derived on every attempt, so a search
    that runs long lowers its own target. Returns the header fields of the
    solved block as a dict; nothing is mutated.

    Raises ValueError if ``data`` is not canonical JSON.
    """
    if not is_canonical_data(data):
        raise ValueError("Block data must survive a JSON round trip unchanged")

    prev_hash = prev_block.hash
    nonce = 0
    start_time = time.monotonic()

    logger.debug("Mining on top of %s (prev difficulty: %s)", prev_hash[:8], prev_block.difficulty)

    while True:

        if max_nonce is not None and nonce >= max_nonce:
            logger.warning("Max nonce exceeded during mining.")
            raise MiningExceededError("Mining failed: max_nonce exceeded")

        if timeout_seconds is not None and (time.monotonic() - start_time) > timeout_seconds:
            logger.warning("Mining timeout exceeded.")
            raise MiningExceededError("Mining failed: timeout exceeded")

        timestamp = round(time.time() * 1000)
        difficulty = adjust_difficulty(prev_block, timestamp, mine_rate)
        block_hash = calculate_hash(timestamp, prev_hash, nonce, difficulty, data)

        if meets_difficulty(block_hash, difficulty):
            logger.debug("Success! Hash: %s (nonce %d, difficulty %d)", block_hash, nonce, difficulty)
            return {
                "timestamp": timestamp,
                "prev_hash": prev_hash,
                "hash": block_hash,
                "nonce": nonce,
                "difficulty": difficulty,
                "data": data,
            }

        # Allow cancellation via progress callback
        if progress_callback:
            should_continue = progress_callback(nonce, block_hash)
            if should_continue is False:
                logger.info("Mining cancelled via progress_callback.")
                raise MiningExceededError("Mining cancelled")

        nonce += 1
