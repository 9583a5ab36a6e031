import dataclasses
import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from powchain import Block, Blockchain, ConsensusController


def build_chain(*payloads):
    chain = Blockchain()
    for payload in payloads:
        chain.add_block(payload)
    return chain


class TestReplaceChain(unittest.TestCase):

    def setUp(self):
        self.controller = ConsensusController()
        self.local = build_chain("A", "B")
        self.original = self.local.chain

    def test_longer_valid_chain_replaces_local(self):
        """A 4-block candidate with the same genesis wins over a 3-block local chain."""
        candidate = build_chain("X", "Y", "Z").chain

        with self.assertLogs("powchain.consensus", level="INFO"):
            replaced = self.controller.replace_chain(self.local, candidate)

        self.assertTrue(replaced)
        self.assertEqual(self.local.chain, candidate)
        self.assertEqual(self.local.height, 4)
        # Local blocks not in the candidate are gone
        for block in self.original[1:]:
            self.assertNotIn(block, self.local.chain)

    def test_shorter_chain_is_rejected(self):
        candidate = build_chain("X").chain
        with self.assertLogs("powchain.consensus", level="WARNING") as logs:
            replaced = self.controller.replace_chain(self.local, candidate)
        self.assertFalse(replaced)
        self.assertEqual(self.local.chain, self.original)
        self.assertIn("not longer", logs.output[0])

    def test_equal_length_valid_chain_is_rejected(self):
        candidate = build_chain("X", "Y").chain
        self.assertTrue(Blockchain.is_valid_chain(candidate))
        with self.assertLogs("powchain.consensus", level="WARNING") as logs:
            replaced = self.controller.replace_chain(self.local, candidate)
        self.assertFalse(replaced)
        self.assertEqual(self.local.chain, self.original)
        self.assertIn("not longer", logs.output[0])

    def test_longer_tampered_chain_is_rejected(self):
        candidate = build_chain("X", "Y", "Z").chain
        candidate[2] = dataclasses.replace(candidate[2], data="tampered")
        with self.assertLogs("powchain.consensus", level="WARNING") as logs:
            replaced = self.controller.replace_chain(self.local, candidate)
        self.assertFalse(replaced)
        self.assertEqual(self.local.chain, self.original)
        self.assertIn("not valid", logs.output[0])

    def test_longer_chain_with_foreign_genesis_is_rejected(self):
        candidate = build_chain("X", "Y", "Z").chain
        candidate[0] = dataclasses.replace(candidate[0], data=["other network"])
        self.assertFalse(self.controller.replace_chain(self.local, candidate))
        self.assertEqual(self.local.chain, self.original)

    def test_dict_candidate_is_decoded(self):
        candidate = build_chain("X", "Y", "Z")
        self.assertTrue(self.controller.replace_chain(self.local, candidate.to_dict_list()))
        self.assertEqual(self.local.chain, candidate.chain)

    def test_malformed_dict_candidate_is_rejected(self):
        candidate = build_chain("X", "Y", "Z").to_dict_list()
        del candidate[1]["hash"]
        with self.assertLogs("powchain.consensus", level="WARNING") as logs:
            self.assertFalse(self.controller.replace_chain(self.local, candidate))
        self.assertIn("not valid", logs.output[0])
        self.assertEqual(self.local.chain, self.original)

    def test_unsized_candidate_is_rejected(self):
        self.assertFalse(self.controller.replace_chain(self.local, None))
        self.assertFalse(self.controller.replace_chain(self.local, iter(self.original)))
        self.assertEqual(self.local.chain, self.original)

    def test_candidate_list_is_not_aliased(self):
        candidate = build_chain("X", "Y", "Z").chain
        self.controller.replace_chain(self.local, candidate)
        candidate.append(Block.genesis())
        self.assertEqual(self.local.height, 4)
        self.assertTrue(Blockchain.is_valid_chain(self.local.chain))

    def test_blockchain_replace_chain_delegates(self):
        candidate = build_chain("X", "Y", "Z").chain
        self.assertTrue(self.local.replace_chain(candidate))
        self.assertEqual(self.local.chain, candidate)

    def test_local_chain_keeps_growing_after_replacement(self):
        candidate = build_chain("X", "Y", "Z").chain
        self.local.replace_chain(candidate)
        self.local.add_block("after")
        self.assertEqual(self.local.height, 5)
        self.assertEqual(self.local.chain[4].prev_hash, candidate[3].hash)
        self.assertTrue(Blockchain.is_valid_chain(self.local.chain))

    def test_from_blocks_requires_valid_chain(self):
        for blocks in ([], [Block.genesis().to_dict()], self.original[:1] + self.original[2:]):
            with self.subTest(blocks=blocks):
                with self.assertRaises(ValueError):
                    Blockchain.from_blocks(blocks)

    def test_from_blocks_holds_given_chain(self):
        self.assertEqual(Blockchain.from_blocks(iter(self.original)).chain, self.original)
        chain = Blockchain.from_blocks(self.original)
        self.assertEqual(chain.chain, self.original)
        chain.add_block("C")
        self.assertEqual(chain.height, 4)

    def test_chain_cannot_be_emptied(self):
        """Only fork choice can swap the whole chain, and never to an empty one."""
        self.assertFalse(hasattr(self.local, "adopt"))
        self.assertFalse(self.controller.replace_chain(self.local, []))
        self.assertEqual(self.local.height, 3)
        self.assertEqual(self.local.chain[0], Block.genesis())


if __name__ == '__main__':
    unittest.main()
