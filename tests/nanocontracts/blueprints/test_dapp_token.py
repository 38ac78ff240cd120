import json

from dappsale.nanocontracts.blueprints.dapp_token import (
    DappToken,
    InsufficientBalance,
    InvalidTokenState,
    MintingRefused,
    TokenPaused,
)
from dappsale.nanocontracts.exception import NCFail, Unauthorized
from tests.nanocontracts.blueprints.unittest import BlueprintTestCase


class DappTokenTestCase(BlueprintTestCase):
    def setUp(self):
        super().setUp()
        self.blueprint_id = self._register_blueprint_class(DappToken)
        self.token_id = self.gen_random_contract_id()
        self.owner = self.gen_random_address()
        self.alice = self.gen_random_address()
        self.bob = self.gen_random_address()

        self.runner.create_contract(
            self.token_id,
            self.blueprint_id,
            self.create_context(caller_id=self.owner),
            'Dapp Token',
            'DAPP',
            18,
        )

    def _call(self, method_name, caller, *args):
        ctx = self.create_context(caller_id=caller)
        return self.runner.call_public_method(self.token_id, method_name, ctx, *args)

    def _balance(self, holder):
        return self.runner.call_view_method(self.token_id, 'balance_of', holder)

    def test_initialize(self):
        info = self.runner.call_view_method(self.token_id, 'get_token_info')
        self.assertEqual(info.name, 'Dapp Token')
        self.assertEqual(info.symbol, 'DAPP')
        self.assertEqual(info.decimals, 18)
        self.assertEqual(info.total_supply, 0)
        self.assertEqual(info.owner, self.owner.hex())
        self.assertFalse(info.paused)
        self.assertFalse(info.minting_finished)

    def test_initialize_invalid(self):
        with self.assertRaises(NCFail):
            self.runner.create_contract(
                self.gen_random_contract_id(), self.blueprint_id, self.create_context(), '', 'X', 18
            )
        with self.assertRaises(NCFail):
            self.runner.create_contract(
                self.gen_random_contract_id(), self.blueprint_id, self.create_context(), 'X', 'X', 100
            )

    def test_mint(self):
        self.assertTrue(self._call('mint', self.owner, self.alice, 1000))
        self.assertEqual(self._balance(self.alice), 1000)
        self.assertEqual(self.runner.call_view_method(self.token_id, 'total_supply'), 1000)

        event = json.loads(self.runner.get_events(self.token_id)[-1])
        self.assertEqual(event, {'event': 'Mint', 'to': self.alice.hex(), 'amount': 1000})

    def test_mint_only_owner(self):
        with self.assertRaises(Unauthorized):
            self._call('mint', self.alice, self.alice, 1000)
        self.assertEqual(self._balance(self.alice), 0)

    def test_finish_minting(self):
        self.assertTrue(self._call('finish_minting', self.owner))
        # A second call reports that nothing changed
        self.assertFalse(self._call('finish_minting', self.owner))

        with self.assertRaises(MintingRefused):
            self._call('mint', self.owner, self.alice, 1)

    def test_transfer(self):
        self._call('mint', self.owner, self.alice, 1000)
        self._call('transfer', self.alice, self.bob, 400)
        self.assertEqual(self._balance(self.alice), 600)
        self.assertEqual(self._balance(self.bob), 400)

        with self.assertRaises(InsufficientBalance):
            self._call('transfer', self.alice, self.bob, 601)
        self.assertEqual(self._balance(self.alice), 600)

    def test_pause(self):
        self._call('mint', self.owner, self.alice, 1000)
        self._call('pause', self.owner)

        with self.assertRaises(TokenPaused):
            self._call('transfer', self.alice, self.bob, 1)
        with self.assertRaises(InvalidTokenState):
            self._call('pause', self.owner)
        with self.assertRaises(Unauthorized):
            self._call('unpause', self.alice)

        # Minting is not affected by the pause
        self._call('mint', self.owner, self.bob, 5)
        self.assertEqual(self._balance(self.bob), 5)

        self._call('unpause', self.owner)
        self._call('transfer', self.alice, self.bob, 1)
        self.assertEqual(self._balance(self.bob), 6)

        with self.assertRaises(InvalidTokenState):
            self._call('unpause', self.owner)

    def test_transfer_ownership(self):
        self._call('transfer_ownership', self.owner, self.alice)
        self.assertEqual(self.runner.call_view_method(self.token_id, 'get_owner'), self.alice)

        with self.assertRaises(Unauthorized):
            self._call('mint', self.owner, self.owner, 1)
        self._call('mint', self.alice, self.owner, 1)
        self.assertEqual(self._balance(self.owner), 1)
