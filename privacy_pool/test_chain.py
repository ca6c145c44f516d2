from unittest import TestCase

from .chain import ChainConfig
from .common import ZERO_HASH, compute_commitment
from .bank import TransferFailed
from .test_common import (
    mk_address,
    mk_chain,
    mk_deposit,
    mk_pool,
    mk_secret,
    mk_withdrawal,
)


class TestChain(TestCase):
    def test_genesis(self):
        chain = mk_chain()

        assert chain.tip().number == 0
        assert chain.tip().parent == ZERO_HASH
        assert chain.pending_block_number == 1

    def test_blocks_are_linked(self):
        chain = mk_chain()
        b1 = chain.seal_block()
        b2 = chain.seal_block()

        assert b1.parent == chain.header(0).id()
        assert b2.parent == b1.id()
        assert chain.tip() == b2

    def test_block_hash_window(self):
        chain = mk_chain(history_window=4)
        for _ in range(9):
            chain.seal_block()
        # sealed blocks 0..9, executing in block 10

        assert chain.block_hash(9) == chain.header(9).id()
        assert chain.block_hash(6) == chain.header(6).id()
        # evicted
        assert chain.block_hash(5) is None
        assert chain.block_hash(0) is None
        # pending and future blocks are unknown
        assert chain.block_hash(10) is None
        assert chain.block_hash(11) is None
        # the archive still has them
        assert chain.header(0) is not None

    def test_state_root_commits_to_deposits(self):
        chain = mk_chain()
        pool = mk_pool(chain)

        empty = chain.seal_block()
        same = chain.seal_block()
        mk_deposit(pool, mk_secret(0))
        after = chain.seal_block()

        assert empty.state_root == same.state_root
        assert after.state_root != empty.state_root

    def test_commitments_at(self):
        chain = mk_chain()
        pool = mk_pool(chain)

        mk_deposit(pool, mk_secret(0))
        b1 = chain.seal_block()
        mk_deposit(pool, mk_secret(1))
        b2 = chain.seal_block()

        c0, _ = compute_commitment(mk_secret(0))
        c1, _ = compute_commitment(mk_secret(1))
        assert chain.commitments_at(b1.number, pool.address) == [c0]
        assert chain.commitments_at(b2.number, pool.address) == [c0, c1]
        # deployed after genesis
        assert chain.commitments_at(0, pool.address) is None
        assert chain.commitments_at(b2.number + 1, pool.address) is None
        assert chain.commitments_at(b2.number, mk_address(0xFFFF)) is None

    def test_transaction_rolls_back_everything(self):
        chain = mk_chain()
        pool = mk_pool(chain)
        mk_deposit(pool, mk_secret(0))
        events = list(chain.events)

        with self.assertRaises(RuntimeError):
            with chain.transaction():
                chain.bank.mint(mk_address(1), 5)
                pool.state.commitments.append(mk_secret(1))
                pool.state.nullifiers.add(mk_secret(2))
                chain.emit("event")
                raise RuntimeError()

        assert chain.bank.balance_of(mk_address(1)) == 0
        assert len(pool.state.commitments) == 1
        assert len(pool.state.nullifiers) == 0
        assert chain.events == events

    def test_double_deploy(self):
        chain = mk_chain()
        mk_pool(chain)
        with self.assertRaises(AssertionError):
            mk_pool(chain)

    def test_config(self):
        assert ChainConfig.ethereum().history_window == 256
        with self.assertRaises(AssertionError):
            ChainConfig.ethereum().replace(history_window=0)

    def test_block_sealed_in_aborted_withdrawal_is_discarded(self):
        chain = mk_chain()
        pool = mk_pool(chain)
        recipient = mk_address(0xAA)
        secret = mk_secret(1)
        index = mk_deposit(pool, secret)
        tip = chain.seal_block()
        public_inputs, proof = mk_withdrawal(pool, secret, index, recipient=recipient)

        def deposit_seal_refuse(sender, amount):
            mk_deposit(pool, mk_secret(7))
            chain.seal_block()
            return False

        chain.bank.register(recipient, deposit_seal_refuse)
        with self.assertRaises(TransferFailed):
            pool.withdraw(public_inputs, proof)

        assert len(pool.state.commitments) == 1
        assert chain.tip() == tip
        assert len(chain.archive) == len(chain.blocks)
        assert chain.archive[-1] == {pool.address: 1}
        assert chain.commitments_at(tip.number, pool.address) == [pool.state.commitments[0]]

        # the next block commits to the rolled back ledger
        after = chain.seal_block()
        assert after.number == tip.number + 1
        assert after.state_root == tip.state_root

    def test_state_root_uses_pool_roots(self):
        chain = mk_chain()
        pool = mk_pool(chain)
        mk_deposit(pool, mk_secret(0))
        mk_deposit(pool, mk_secret(1))
        block = chain.seal_block()

        assert pool.root_at(2) == pool.state.commitments.root()
        assert pool.root_at(1) != pool.root_at(2)
        assert chain.archive[block.number] == {pool.address: 2}
