import json
from typing import NamedTuple

from dappsale import (
    Address,
    Amount,
    Blueprint,
    Context,
    ContractId,
    NCFail,
    Timestamp,
    export,
    public,
    view,
)


class TokenTimelockInfo(NamedTuple):
    token: str
    beneficiary: str
    release_time: int
    locked: int


class ReleaseTooEarly(NCFail):
    pass


class NothingToRelease(NCFail):
    pass


class InvalidReleaseTime(NCFail):
    pass


@export
class TokenTimelock(Blueprint):
    """Holds a token balance for one beneficiary until `release_time`.

    The balance lives in the token contract under this contract's id.
    `release` is open to anyone and always pays the beneficiary.
    """

    token: ContractId
    beneficiary: Address
    release_time: Timestamp

    @public
    def initialize(self, ctx: Context, token: ContractId, beneficiary: Address, release_time: Timestamp) -> None:
        if release_time <= ctx.timestamp:
            raise InvalidReleaseTime('Release time must be in the future')
        if not beneficiary:
            raise NCFail('Invalid beneficiary')
        self.token = token
        self.beneficiary = beneficiary
        self.release_time = release_time

    def _locked_amount(self) -> Amount:
        token = self.syscall.get_contract(self.token)
        return token.view().balance_of(self.syscall.get_contract_id())

    @public
    def release(self, ctx: Context) -> Amount:
        """Transfer the whole locked balance to the beneficiary."""
        if ctx.timestamp < self.release_time:
            raise ReleaseTooEarly(f'Tokens are locked until {self.release_time}')

        amount = self._locked_amount()
        if amount == 0:
            raise NothingToRelease('No tokens to release')

        self.syscall.get_contract(self.token).public().transfer(self.beneficiary, amount)
        self.syscall.emit_event(json.dumps({
            'event': 'Released',
            'beneficiary': self.beneficiary.hex(),
            'amount': amount,
        }).encode('utf-8'))
        return amount

    @view
    def get_lock_info(self) -> TokenTimelockInfo:
        return TokenTimelockInfo(
            token=self.token.hex(),
            beneficiary=self.beneficiary.hex(),
            release_time=self.release_time,
            locked=self._locked_amount(),
        )
