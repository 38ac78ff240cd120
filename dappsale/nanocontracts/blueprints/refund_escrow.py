import json
from typing import NamedTuple

from dappsale import (
    NATIVE_TOKEN_UID,
    Address,
    Amount,
    Blueprint,
    CallerId,
    Context,
    NCDepositAction,
    NCFail,
    Unauthorized,
    export,
    public,
    view,
)


class EscrowState:
    """States of a RefundEscrow"""

    ACTIVE = 0  # Accepting deposits
    REFUNDING = 1  # Goal missed, depositors can be paid back
    CLOSED = 2  # Goal met, balance forwarded to the beneficiary


class EscrowInfo(NamedTuple):
    beneficiary: str
    state: int
    balance: int
    total_deposited: int


class RefundNotEnabled(NCFail):
    pass


class InvalidEscrowState(NCFail):
    pass


class NothingToRefund(NCFail):
    pass


@export
class RefundEscrow(Blueprint):
    """Holds deposits on behalf of investors until the sale outcome is known.

    Only the owner (the contract that created it) can deposit, close or enable
    refunds. Once refunds are enabled anyone may trigger the refund of an
    investor; the funds always go to that investor.
    """

    owner: CallerId
    beneficiary: Address
    state: int
    deposited: dict[Address, Amount]
    total_deposited: Amount

    @public
    def initialize(self, ctx: Context, beneficiary: Address) -> None:
        if not beneficiary:
            raise NCFail('Invalid beneficiary')
        self.owner = ctx.caller_id
        self.beneficiary = beneficiary
        self.state = EscrowState.ACTIVE
        self.deposited = {}
        self.total_deposited = Amount(0)

    def _only_owner(self, ctx: Context) -> None:
        if ctx.caller_id != self.owner:
            raise Unauthorized('Only owner can call this method')

    @public(allow_deposit=True)
    def deposit(self, ctx: Context, investor: Address) -> None:
        """Record the native deposit on `ctx` as belonging to `investor`."""
        self._only_owner(ctx)
        if self.state != EscrowState.ACTIVE:
            raise InvalidEscrowState('Escrow is not accepting deposits')

        action = ctx.get_single_action(NATIVE_TOKEN_UID)
        if not isinstance(action, NCDepositAction):
            raise NCFail('Expected deposit action')

        self.deposited[investor] = Amount(self.deposited.get(investor, 0) + action.amount)
        self.total_deposited = Amount(self.total_deposited + action.amount)

    @public
    def close(self, ctx: Context) -> None:
        """Forward the whole balance to the beneficiary. No refunds after this."""
        self._only_owner(ctx)
        if self.state != EscrowState.ACTIVE:
            raise InvalidEscrowState('Escrow can only be closed while active')

        self.state = EscrowState.CLOSED
        balance = self.syscall.get_current_balance(NATIVE_TOKEN_UID)
        self.syscall.transfer(self.beneficiary, NATIVE_TOKEN_UID, balance)

    @public
    def enable_refunds(self, ctx: Context) -> None:
        self._only_owner(ctx)
        if self.state != EscrowState.ACTIVE:
            raise InvalidEscrowState('Refunds can only be enabled while active')
        self.state = EscrowState.REFUNDING

    @public
    def refund(self, ctx: Context, investor: Address) -> Amount:
        """Pay `investor` back everything deposited for them."""
        if self.state != EscrowState.REFUNDING:
            raise RefundNotEnabled('Refunds are not enabled')

        amount = self.deposited.get(investor, Amount(0))
        if amount == 0:
            raise NothingToRefund('No refund available')

        self.deposited[investor] = Amount(0)
        self.syscall.transfer(investor, NATIVE_TOKEN_UID, amount)
        self.syscall.emit_event(json.dumps({
            'event': 'Refunded',
            'investor': investor.hex(),
            'amount': amount,
        }).encode('utf-8'))
        return amount

    @view
    def deposits_of(self, investor: Address) -> Amount:
        return self.deposited.get(investor, Amount(0))

    @view
    def get_escrow_info(self) -> EscrowInfo:
        return EscrowInfo(
            beneficiary=self.beneficiary.hex(),
            state=self.state,
            balance=self.syscall.get_current_balance(NATIVE_TOKEN_UID),
            total_deposited=self.total_deposited,
        )
