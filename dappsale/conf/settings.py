from pydantic import BaseModel, ConfigDict, Field, model_validator

ETHER = 10**18

MINUTE = 60
DAY = 24 * 60 * MINUTE
WEEK = 7 * DAY


class SaleSettings(BaseModel):
    """Network and reference sale parameters.

    Instances are immutable; see `dappsale.conf.get_settings` for how the
    active one is chosen.
    """
    model_config = ConfigDict(frozen=True)

    NETWORK_NAME: str

    TOKEN_NAME: str = 'Dapp Token'
    TOKEN_SYMBOL: str = 'DAPP'
    TOKEN_DECIMALS: int = Field(default=18, ge=0, le=36)

    # Base units of the native token per sale token, per stage.
    PRE_SALE_RATE: int = Field(default=500, gt=0)
    PUBLIC_SALE_RATE: int = Field(default=250, gt=0)

    SALE_CAP: int = Field(default=100 * ETHER, gt=0)
    SALE_GOAL: int = Field(default=50 * ETHER, ge=0)

    # Offsets from the deployment time.
    OPENING_DELAY: int = Field(default=MINUTE, ge=0)
    SALE_DURATION: int = Field(default=WEEK, gt=0)
    RELEASE_DELAY: int = Field(default=DAY, gt=0)

    # blueprint id -> blueprint name
    BLUEPRINTS: dict[bytes, str] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _check_goal_within_cap(self) -> 'SaleSettings':
        if self.SALE_GOAL > self.SALE_CAP:
            raise ValueError('SALE_GOAL must not exceed SALE_CAP')
        return self
