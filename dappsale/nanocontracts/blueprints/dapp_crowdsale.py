import json
from enum import IntEnum
from typing import NamedTuple

from dappsale import (
    NATIVE_TOKEN_UID,
    Address,
    Amount,
    Blueprint,
    CallerId,
    Context,
    ContractId,
    NCDepositAction,
    NCFail,
    Timestamp,
    Unauthorized,
    export,
    public,
    view,
)
from dappsale.nanocontracts.blueprints import REFUND_ESCROW_BLUEPRINT_ID, TOKEN_TIMELOCK_BLUEPRINT_ID

# Per-investor contribution limits, in base units of the native token
INVESTOR_MIN_CAP = 2_000_000_000_000_000  # 0.002
INVESTOR_HARD_CAP = 50_000_000_000_000_000_000  # 50

# Token distribution, in percent of the final supply
TOKEN_SALE_PERCENTAGE = 70
FOUNDERS_PERCENTAGE = 10
FOUNDATION_PERCENTAGE = 10
PARTNERS_PERCENTAGE = 10

assert TOKEN_SALE_PERCENTAGE + FOUNDERS_PERCENTAGE + FOUNDATION_PERCENTAGE + PARTNERS_PERCENTAGE == 100


class CrowdsaleStage(IntEnum):
    PRE_SALE = 0
    PUBLIC_SALE = 1


class DappTokenCrowdsaleInfo(NamedTuple):
    """General sale information."""

    token: str
    wallet: str
    escrow: str
    stage: int
    rate: int
    cap: int
    goal: int
    wei_raised: int
    opening_time: int
    closing_time: int
    release_time: int
    is_finalized: bool
    participants: int


class DappTokenCrowdsaleTimelocks(NamedTuple):
    """Vesting locks created on a successful finalization (empty before)."""

    founders: str
    foundation: str
    partners: str


class InvalidParameters(NCFail):
    pass


class InvalidAmount(NCFail):
    pass


class NotWhitelisted(NCFail):
    pass


class SaleNotOpen(NCFail):
    pass


class SaleNotClosed(NCFail):
    pass


class CapExceeded(NCFail):
    pass


class BelowInvestorMinimum(NCFail):
    pass


class AboveInvestorMaximum(NCFail):
    pass


class InvalidStage(NCFail):
    pass


class AlreadyFinalized(NCFail):
    pass


class NotFinalized(NCFail):
    pass


class GoalReached(NCFail):
    pass


@export
class DappTokenCrowdsale(Blueprint):
    """Staged, capped, timed, allow-listed and refundable token sale.

    Purchases mint sale tokens at the price of the current stage. PreSale
    proceeds go straight to the wallet; PublicSale proceeds are held by a
    refund escrow until `finalize`. On a successful finalization the
    founders, foundation and partners buckets are minted into three
    `TokenTimelock` contracts and the token is released to the wallet owner.

    The token contract must be owned by this contract before the first
    purchase.
    """

    # Sale configuration
    owner: CallerId  # Administrator: stage, allow-list and finalization
    token: ContractId  # DappToken contract being sold
    wallet: Address  # Receives the proceeds
    escrow: ContractId  # RefundEscrow created on initialization
    pre_sale_rate: Amount  # Base units per token during PreSale
    public_sale_rate: Amount  # Base units per token during PublicSale
    cap: Amount  # Maximum raise
    goal: Amount  # Minimum raise for success
    opening_time: Timestamp
    closing_time: Timestamp

    # Reserve funds
    founders_fund: Address
    foundation_fund: Address
    partners_fund: Address
    release_time: Timestamp  # When the vesting locks can be released

    # Sale state
    stage: int
    wei_raised: Amount
    whitelist: dict[Address, bool]
    contributions: dict[Address, Amount]

    # Finalization record
    is_finalized: bool
    founders_timelock: ContractId
    foundation_timelock: ContractId
    partners_timelock: ContractId

    @public
    def initialize(
        self,
        ctx: Context,
        rate: Amount,
        public_sale_rate: Amount,
        wallet: Address,
        token: ContractId,
        cap: Amount,
        opening_time: Timestamp,
        closing_time: Timestamp,
        goal: Amount,
        founders_fund: Address,
        foundation_fund: Address,
        partners_fund: Address,
        release_time: Timestamp,
    ) -> None:
        """Initialize the sale in PreSale stage and create its refund escrow."""
        if rate <= 0 or public_sale_rate <= 0:
            raise InvalidParameters('Invalid rate')
        if not wallet or not token:
            raise InvalidParameters('Invalid wallet or token')
        if cap <= 0:
            raise InvalidParameters('Invalid cap')
        if goal > cap:
            raise InvalidParameters('Goal must not exceed cap')
        if opening_time < ctx.timestamp:
            raise InvalidParameters('Opening time is in the past')
        if opening_time >= closing_time:
            raise InvalidParameters('Invalid time range')
        if release_time <= closing_time:
            raise InvalidParameters('Release time must be after closing time')
        if not founders_fund or not foundation_fund or not partners_fund:
            raise InvalidParameters('Invalid reserve fund')

        self.owner = ctx.caller_id
        self.token = token
        self.wallet = wallet
        self.pre_sale_rate = rate
        self.public_sale_rate = public_sale_rate
        self.cap = cap
        self.goal = goal
        self.opening_time = opening_time
        self.closing_time = closing_time

        self.founders_fund = founders_fund
        self.foundation_fund = foundation_fund
        self.partners_fund = partners_fund
        self.release_time = release_time

        self.stage = int(CrowdsaleStage.PRE_SALE)
        self.wei_raised = Amount(0)
        self.whitelist = {}
        self.contributions = {}

        self.is_finalized = False
        self.founders_timelock = ContractId(b'')
        self.foundation_timelock = ContractId(b'')
        self.partners_timelock = ContractId(b'')

        self.escrow, _ = self.syscall.create_contract(
            REFUND_ESCROW_BLUEPRINT_ID, b'escrow', [], wallet
        )

    def _only_owner(self, ctx: Context) -> None:
        if ctx.caller_id != self.owner:
            raise Unauthorized('Only owner can call this method')

    def _emit(self, event: str, **data: object) -> None:
        self.syscall.emit_event(json.dumps({'event': event, **data}).encode('utf-8'))

    def _rate_for(self, stage: CrowdsaleStage) -> Amount:
        match stage:
            case CrowdsaleStage.PRE_SALE:
                return self.pre_sale_rate
            case CrowdsaleStage.PUBLIC_SALE:
                return self.public_sale_rate
        raise InvalidStage(f'Unknown stage {stage}')

    def _is_open(self, timestamp: int) -> bool:
        return self.opening_time <= timestamp <= self.closing_time

    # Allow-list

    @public
    def add_to_whitelist(self, ctx: Context, investor: Address) -> None:
        self._only_owner(ctx)
        self.whitelist[investor] = True

    @public
    def add_many_to_whitelist(self, ctx: Context, investors: list[Address]) -> None:
        self._only_owner(ctx)
        for investor in investors:
            self.whitelist[investor] = True

    # Stage

    @public
    def set_crowdsale_stage(self, ctx: Context, stage: int) -> None:
        """Switch between PreSale and PublicSale; the rate follows the stage."""
        self._only_owner(ctx)
        try:
            new_stage = CrowdsaleStage(stage)
        except ValueError:
            raise InvalidStage(f'Unknown stage {stage}')
        self.stage = int(new_stage)
        self._emit('StageChanged', stage=int(new_stage), rate=self._rate_for(new_stage))

    # Purchase

    def _validate_purchase(self, ctx: Context, beneficiary: Address) -> Amount:
        """Check every purchase precondition and return the deposited amount."""
        if not self.whitelist.get(beneficiary, False):
            raise NotWhitelisted('Beneficiary is not whitelisted')

        if not self._is_open(ctx.timestamp):
            raise SaleNotOpen('Sale is not open')

        # Any other token would be stuck in this contract
        if set(ctx.actions) != {NATIVE_TOKEN_UID}:
            raise InvalidAmount('Only the native token is accepted')
        actions = ctx.actions[NATIVE_TOKEN_UID]
        if len(actions) != 1 or not isinstance(actions[0], NCDepositAction):
            raise InvalidAmount('Expected a single deposit action')
        amount = Amount(actions[0].amount)
        if amount == 0:
            raise InvalidAmount('Amount must be positive')

        if self.wei_raised + amount > self.cap:
            raise CapExceeded('Purchase would exceed the sale cap')

        new_contribution = self.contributions.get(beneficiary, 0) + amount
        if new_contribution < INVESTOR_MIN_CAP:
            raise BelowInvestorMinimum('Contribution is below the investor minimum')
        if new_contribution > INVESTOR_HARD_CAP:
            raise AboveInvestorMaximum('Contribution is above the investor maximum')

        return amount

    def _forward_funds(self, beneficiary: Address, amount: Amount) -> None:
        match CrowdsaleStage(self.stage):
            case CrowdsaleStage.PRE_SALE:
                self.syscall.transfer(self.wallet, NATIVE_TOKEN_UID, amount)
            case CrowdsaleStage.PUBLIC_SALE:
                escrow = self.syscall.get_contract(self.escrow)
                escrow.public(NCDepositAction(token_uid=NATIVE_TOKEN_UID, amount=amount)).deposit(beneficiary)

    @public(allow_deposit=True)
    def buy_tokens(self, ctx: Context, beneficiary: Address) -> Amount:
        """Buy tokens for `beneficiary` with the native deposit on `ctx`.

        Returns the amount of tokens minted. The caller pays; contribution
        limits, minting and refunds all apply to the beneficiary.
        """
        amount = self._validate_purchase(ctx, beneficiary)

        self.contributions[beneficiary] = Amount(self.contributions.get(beneficiary, 0) + amount)

        rate = self._rate_for(CrowdsaleStage(self.stage))
        tokens = Amount(amount // rate)
        self.syscall.get_contract(self.token).public().mint(beneficiary, tokens)

        self._forward_funds(beneficiary, amount)

        self.wei_raised = Amount(self.wei_raised + amount)
        self._emit(
            'TokenPurchase',
            purchaser=ctx.caller_id.hex(),
            beneficiary=beneficiary.hex(),
            value=amount,
            amount=tokens,
        )
        return tokens

    # Finalization

    def _create_timelock(self, salt: bytes, beneficiary: Address, amount: Amount) -> ContractId:
        timelock_id, _ = self.syscall.create_contract(
            TOKEN_TIMELOCK_BLUEPRINT_ID, salt, [], self.token, beneficiary, self.release_time
        )
        self.syscall.get_contract(self.token).public().mint(timelock_id, amount)
        return timelock_id

    def _distribute_reserves(self) -> None:
        token = self.syscall.get_contract(self.token)
        pre_sale_supply = token.view().total_supply()
        # Truncates before scaling up; matches the deployed distribution.
        full_supply = pre_sale_supply // TOKEN_SALE_PERCENTAGE * 100

        self.founders_timelock = self._create_timelock(
            b'founders', self.founders_fund, Amount(full_supply * FOUNDERS_PERCENTAGE // 100)
        )
        self.foundation_timelock = self._create_timelock(
            b'foundation', self.foundation_fund, Amount(full_supply * FOUNDATION_PERCENTAGE // 100)
        )
        self.partners_timelock = self._create_timelock(
            b'partners', self.partners_fund, Amount(full_supply * PARTNERS_PERCENTAGE // 100)
        )

        token.public().finish_minting()
        if token.view().get_token_info().paused:
            token.public().unpause()
        token.public().transfer_ownership(self.wallet)

    @public
    def finalize(self, ctx: Context) -> None:
        """Settle the sale once it has closed. Can only happen once."""
        self._only_owner(ctx)
        if self.is_finalized:
            raise AlreadyFinalized('Sale already finalized')
        if not self.has_closed(ctx.timestamp):
            raise SaleNotClosed('Sale has not closed yet')

        escrow = self.syscall.get_contract(self.escrow).public()
        goal_reached = self.goal_reached()
        if goal_reached:
            self._distribute_reserves()
            escrow.close()
        else:
            escrow.enable_refunds()

        self.is_finalized = True
        self._emit('Finalized', goal_reached=goal_reached, wei_raised=self.wei_raised)

    @public
    def claim_refund(self, ctx: Context) -> Amount:
        """Get PublicSale contributions back after a failed sale."""
        if not self.is_finalized:
            raise NotFinalized('Sale is not finalized')
        if self.goal_reached():
            raise GoalReached('Sale reached its goal')
        return self.syscall.get_contract(self.escrow).public().refund(ctx.caller_id)

    # Queries

    @view
    def rate(self) -> Amount:
        return self._rate_for(CrowdsaleStage(self.stage))

    @view
    def get_wallet(self) -> Address:
        return self.wallet

    @view
    def get_token(self) -> ContractId:
        return self.token

    @view
    def get_cap(self) -> Amount:
        return self.cap

    @view
    def get_stage(self) -> int:
        return self.stage

    @view
    def has_closed(self, timestamp: Timestamp) -> bool:
        return timestamp > self.closing_time

    @view
    def is_whitelisted(self, investor: Address) -> bool:
        return self.whitelist.get(investor, False)

    @view
    def get_user_contribution(self, investor: Address) -> Amount:
        return self.contributions.get(investor, Amount(0))

    @view
    def goal_reached(self) -> bool:
        return self.wei_raised >= self.goal

    @view
    def get_timelocks(self) -> DappTokenCrowdsaleTimelocks:
        return DappTokenCrowdsaleTimelocks(
            founders=self.founders_timelock.hex(),
            foundation=self.foundation_timelock.hex(),
            partners=self.partners_timelock.hex(),
        )

    @view
    def get_sale_info(self) -> DappTokenCrowdsaleInfo:
        return DappTokenCrowdsaleInfo(
            token=self.token.hex(),
            wallet=self.wallet.hex(),
            escrow=self.escrow.hex(),
            stage=self.stage,
            rate=self.rate(),
            cap=self.cap,
            goal=self.goal,
            wei_raised=self.wei_raised,
            opening_time=self.opening_time,
            closing_time=self.closing_time,
            release_time=self.release_time,
            is_finalized=self.is_finalized,
            participants=len(self.contributions),
        )
