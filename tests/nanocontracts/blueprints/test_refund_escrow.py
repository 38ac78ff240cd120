from dappsale.nanocontracts.blueprints.refund_escrow import (
    EscrowState,
    InvalidEscrowState,
    NothingToRefund,
    RefundEscrow,
    RefundNotEnabled,
)
from dappsale.nanocontracts.exception import NCForbiddenAction, NCInsufficientFunds, Unauthorized
from dappsale.nanocontracts.types import NCDepositAction
from tests.nanocontracts.blueprints.unittest import ETHER, NATIVE_UID, BlueprintTestCase


class RefundEscrowTestCase(BlueprintTestCase):
    """The escrow called directly, with a wallet as its owner."""

    def setUp(self):
        super().setUp()
        self.blueprint_id = self._register_blueprint_class(RefundEscrow)
        self.escrow_id = self.gen_random_contract_id()
        self.owner = self.gen_random_address()
        self.beneficiary = self.gen_random_address()
        self.investor = self.gen_random_address()

        self.runner.create_contract(
            self.escrow_id,
            self.blueprint_id,
            self.create_context(caller_id=self.owner),
            self.beneficiary,
        )
        self.fund(self.owner, 100 * ETHER)

    def _call(self, method_name, caller, *args, actions=()):
        ctx = self.create_context(actions=actions, caller_id=caller)
        return self.runner.call_public_method(self.escrow_id, method_name, ctx, *args)

    def _deposit(self, investor, amount):
        self._call('deposit', self.owner, investor, actions=[NCDepositAction(token_uid=NATIVE_UID, amount=amount)])

    def _state(self):
        return self.runner.call_view_method(self.escrow_id, 'get_escrow_info').state

    def test_deposit(self):
        self._deposit(self.investor, 3 * ETHER)
        self._deposit(self.investor, 2 * ETHER)

        self.assertEqual(self.runner.call_view_method(self.escrow_id, 'deposits_of', self.investor), 5 * ETHER)
        info = self.runner.call_view_method(self.escrow_id, 'get_escrow_info')
        self.assertEqual(info.state, EscrowState.ACTIVE)
        self.assertEqual(info.balance, 5 * ETHER)
        self.assertEqual(info.total_deposited, 5 * ETHER)
        self.assertEqual(self.get_native_balance(self.owner), 95 * ETHER)

    def test_deposit_only_owner(self):
        stranger = self.gen_random_address()
        self.fund(stranger, ETHER)
        with self.assertRaises(Unauthorized):
            self._call('deposit', stranger, stranger, actions=[NCDepositAction(token_uid=NATIVE_UID, amount=ETHER)])
        # The rolled back deposit left the funds with the caller
        self.assertEqual(self.get_native_balance(stranger), ETHER)
        self.assertEqual(self.get_native_balance(self.escrow_id), 0)

    def test_deposit_without_funds(self):
        with self.assertRaises(NCInsufficientFunds):
            self._deposit(self.investor, 101 * ETHER)
        self.assertEqual(self.runner.call_view_method(self.escrow_id, 'deposits_of', self.investor), 0)

    def test_deposit_not_accepted_elsewhere(self):
        with self.assertRaises(NCForbiddenAction):
            self._call('close', self.owner, actions=[NCDepositAction(token_uid=NATIVE_UID, amount=1)])

    def test_close(self):
        self._deposit(self.investor, 4 * ETHER)
        self._call('close', self.owner)

        self.assertEqual(self._state(), EscrowState.CLOSED)
        self.assertEqual(self.get_native_balance(self.beneficiary), 4 * ETHER)
        self.assertEqual(self.get_native_balance(self.escrow_id), 0)

        with self.assertRaises(InvalidEscrowState):
            self._deposit(self.investor, ETHER)
        with self.assertRaises(InvalidEscrowState):
            self._call('enable_refunds', self.owner)
        with self.assertRaises(RefundNotEnabled):
            self._call('refund', self.investor, self.investor)

    def test_refund(self):
        self._deposit(self.investor, 4 * ETHER)

        with self.assertRaises(RefundNotEnabled):
            self._call('refund', self.investor, self.investor)

        self._call('enable_refunds', self.owner)
        self.assertEqual(self._state(), EscrowState.REFUNDING)

        # Anyone can trigger the refund; the investor gets the funds
        amount = self._call('refund', self.gen_random_address(), self.investor)
        self.assertEqual(amount, 4 * ETHER)
        self.assertEqual(self.get_native_balance(self.investor), 4 * ETHER)
        self.assertEqual(self.runner.call_view_method(self.escrow_id, 'deposits_of', self.investor), 0)

        with self.assertRaises(NothingToRefund):
            self._call('refund', self.investor, self.investor)

    def test_close_after_refunds_enabled(self):
        self._call('enable_refunds', self.owner)
        with self.assertRaises(InvalidEscrowState):
            self._call('close', self.owner)

    def test_admin_only_owner(self):
        with self.assertRaises(Unauthorized):
            self._call('close', self.investor)
        with self.assertRaises(Unauthorized):
            self._call('enable_refunds', self.investor)
        self.assertEqual(self._state(), EscrowState.ACTIVE)
