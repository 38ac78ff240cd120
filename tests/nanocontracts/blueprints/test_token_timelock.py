import json

from dappsale.nanocontracts.blueprints.dapp_token import DappToken, TokenPaused
from dappsale.nanocontracts.blueprints.token_timelock import (
    InvalidReleaseTime,
    NothingToRelease,
    ReleaseTooEarly,
    TokenTimelock,
)
from tests.nanocontracts.blueprints.unittest import BlueprintTestCase


class TokenTimelockTestCase(BlueprintTestCase):
    def setUp(self):
        super().setUp()
        self.token_blueprint_id = self._register_blueprint_class(DappToken)
        self.timelock_blueprint_id = self._register_blueprint_class(TokenTimelock)

        self.owner = self.gen_random_address()
        self.beneficiary = self.gen_random_address()
        self.release_time = self.now + 86400

        self.token_id = self.gen_random_contract_id()
        self.runner.create_contract(
            self.token_id,
            self.token_blueprint_id,
            self.create_context(caller_id=self.owner),
            'Dapp Token',
            'DAPP',
            18,
        )

        self.timelock_id = self.gen_random_contract_id()
        self.runner.create_contract(
            self.timelock_id,
            self.timelock_blueprint_id,
            self.create_context(caller_id=self.owner),
            self.token_id,
            self.beneficiary,
            self.release_time,
        )

    def _lock(self, amount):
        ctx = self.create_context(caller_id=self.owner)
        self.runner.call_public_method(self.token_id, 'mint', ctx, self.timelock_id, amount)

    def _release(self, timestamp):
        ctx = self.create_context(timestamp=timestamp)
        return self.runner.call_public_method(self.timelock_id, 'release', ctx)

    def _balance(self, holder):
        return self.runner.call_view_method(self.token_id, 'balance_of', holder)

    def test_initialize(self):
        info = self.runner.call_view_method(self.timelock_id, 'get_lock_info')
        self.assertEqual(info.token, self.token_id.hex())
        self.assertEqual(info.beneficiary, self.beneficiary.hex())
        self.assertEqual(info.release_time, self.release_time)
        self.assertEqual(info.locked, 0)

    def test_initialize_release_time_in_past(self):
        with self.assertRaises(InvalidReleaseTime):
            self.runner.create_contract(
                self.gen_random_contract_id(),
                self.timelock_blueprint_id,
                self.create_context(),
                self.token_id,
                self.beneficiary,
                self.now,
            )

    def test_release_too_early(self):
        self._lock(1000)
        with self.assertRaises(ReleaseTooEarly):
            self._release(self.release_time - 1)
        self.assertEqual(self._balance(self.timelock_id), 1000)
        self.assertEqual(self._balance(self.beneficiary), 0)

    def test_release(self):
        self._lock(1000)

        # Anyone can release, at or after the release time
        self.assertEqual(self._release(self.release_time), 1000)
        self.assertEqual(self._balance(self.beneficiary), 1000)
        self.assertEqual(self._balance(self.timelock_id), 0)

        event = json.loads(self.runner.get_events(self.timelock_id)[-1])
        self.assertEqual(event['event'], 'Released')
        self.assertEqual(event['amount'], 1000)

        # The whole balance went out on the first release
        with self.assertRaises(NothingToRelease):
            self._release(self.release_time + 1)

    def test_release_while_token_paused(self):
        self._lock(1000)
        self.runner.call_public_method(self.token_id, 'pause', self.create_context(caller_id=self.owner))

        with self.assertRaises(TokenPaused):
            self._release(self.release_time)
        self.assertEqual(self._balance(self.timelock_id), 1000)
        self.assertEqual(self.runner.get_events(self.timelock_id), [])
