import json
from typing import NamedTuple

from dappsale import (
    Amount,
    Blueprint,
    CallerId,
    Context,
    NCFail,
    Unauthorized,
    export,
    public,
    view,
)

MAX_DECIMALS = 36


class DappTokenInfo(NamedTuple):
    """General token information."""

    name: str
    symbol: str
    decimals: int
    total_supply: int
    owner: str
    paused: bool
    minting_finished: bool


class MintingRefused(NCFail):
    pass


class TokenPaused(NCFail):
    pass


class InsufficientBalance(NCFail):
    pass


class InvalidTokenState(NCFail):
    pass


@export
class DappToken(Blueprint):
    """Mintable, pausable fungible token.

    Balances are keyed by holder id, which may be a wallet address or a
    contract id (vesting locks hold tokens this way). Minting can be finished
    once and never resumed. While paused, `transfer` is refused; minting is
    not affected by the pause.
    """

    name: str
    symbol: str
    decimals: int
    owner: CallerId

    supply: Amount
    balances: dict[bytes, Amount]

    paused: bool
    minting_finished: bool

    @public
    def initialize(self, ctx: Context, name: str, symbol: str, decimals: int) -> None:
        if not name or not symbol:
            raise NCFail('Name and symbol are required')
        if decimals < 0 or decimals > MAX_DECIMALS:
            raise NCFail('Invalid decimals')

        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.owner = ctx.caller_id

        self.supply = Amount(0)
        self.balances = {}

        self.paused = False
        self.minting_finished = False

    def _only_owner(self, ctx: Context) -> None:
        if ctx.caller_id != self.owner:
            raise Unauthorized('Only owner can call this method')

    def _emit(self, event: str, **data: object) -> None:
        self.syscall.emit_event(json.dumps({'event': event, **data}).encode('utf-8'))

    @public
    def mint(self, ctx: Context, to: bytes, amount: Amount) -> bool:
        """Create `amount` new tokens for `to`."""
        self._only_owner(ctx)
        if self.minting_finished:
            raise MintingRefused('Minting is finished')
        if amount < 0:
            raise NCFail('Invalid amount')

        self.supply = Amount(self.supply + amount)
        self.balances[to] = Amount(self.balances.get(to, 0) + amount)
        self._emit('Mint', to=to.hex(), amount=amount)
        return True

    @public
    def finish_minting(self, ctx: Context) -> bool:
        """Stop minting for good. Returns False if it was already stopped."""
        self._only_owner(ctx)
        if self.minting_finished:
            return False
        self.minting_finished = True
        self._emit('MintFinished')
        return True

    @public
    def pause(self, ctx: Context) -> None:
        self._only_owner(ctx)
        if self.paused:
            raise InvalidTokenState('Token is already paused')
        self.paused = True

    @public
    def unpause(self, ctx: Context) -> None:
        self._only_owner(ctx)
        if not self.paused:
            raise InvalidTokenState('Token is not paused')
        self.paused = False

    @public
    def transfer_ownership(self, ctx: Context, new_owner: CallerId) -> None:
        self._only_owner(ctx)
        if not new_owner:
            raise NCFail('Invalid owner')
        self.owner = new_owner

    @public
    def transfer(self, ctx: Context, to: bytes, amount: Amount) -> None:
        """Move tokens from the caller to `to`."""
        if self.paused:
            raise TokenPaused('Token transfers are paused')
        if amount < 0:
            raise NCFail('Invalid amount')

        sender = ctx.caller_id
        balance = self.balances.get(sender, Amount(0))
        if balance < amount:
            raise InsufficientBalance(f'Balance is {balance}, cannot transfer {amount}')

        self.balances[sender] = Amount(balance - amount)
        self.balances[to] = Amount(self.balances.get(to, 0) + amount)

    @view
    def total_supply(self) -> Amount:
        return self.supply

    @view
    def balance_of(self, holder: bytes) -> Amount:
        return self.balances.get(holder, Amount(0))

    @view
    def get_owner(self) -> CallerId:
        return self.owner

    @view
    def get_token_info(self) -> DappTokenInfo:
        return DappTokenInfo(
            name=self.name,
            symbol=self.symbol,
            decimals=self.decimals,
            total_supply=self.supply,
            owner=self.owner.hex(),
            paused=self.paused,
            minting_finished=self.minting_finished,
        )
