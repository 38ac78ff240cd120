from typing import TYPE_CHECKING

from dappsale.nanocontracts.types import BlueprintId, VertexId

if TYPE_CHECKING:
    from dappsale.nanocontracts.blueprint import Blueprint

DAPP_TOKEN_BLUEPRINT_ID = BlueprintId(VertexId(bytes.fromhex(
    'a4bfb10795926dc38c9add0980128b34985b87ed9c9fb409f67db29467afa749'
)))
REFUND_ESCROW_BLUEPRINT_ID = BlueprintId(VertexId(bytes.fromhex(
    'bd7b3840f47b565f780f8cbdabdee190e9f4cbcc315ccb4d7666c0281f8eaf52'
)))
TOKEN_TIMELOCK_BLUEPRINT_ID = BlueprintId(VertexId(bytes.fromhex(
    '70582b0acd2b3e911f9a5be478b35e2d88a480b2a31d89580b9986c587618e68'
)))
DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID = BlueprintId(VertexId(bytes.fromhex(
    '7aee949d59a1db3cffe034282469b16488f452477abb811caa74cd6ed1ba9c13'
)))

BLUEPRINT_IDS: dict[str, BlueprintId] = {
    'DappToken': DAPP_TOKEN_BLUEPRINT_ID,
    'RefundEscrow': REFUND_ESCROW_BLUEPRINT_ID,
    'TokenTimelock': TOKEN_TIMELOCK_BLUEPRINT_ID,
    'DappTokenCrowdsale': DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID,
}


def get_blueprint_classes() -> dict[BlueprintId, type['Blueprint']]:
    """Map every known blueprint id to its class, ready for `Runner.register_blueprint_class`."""
    from dappsale.nanocontracts.blueprints.dapp_crowdsale import DappTokenCrowdsale
    from dappsale.nanocontracts.blueprints.dapp_token import DappToken
    from dappsale.nanocontracts.blueprints.refund_escrow import RefundEscrow
    from dappsale.nanocontracts.blueprints.token_timelock import TokenTimelock

    return {
        DAPP_TOKEN_BLUEPRINT_ID: DappToken,
        REFUND_ESCROW_BLUEPRINT_ID: RefundEscrow,
        TOKEN_TIMELOCK_BLUEPRINT_ID: TokenTimelock,
        DAPP_TOKEN_CROWDSALE_BLUEPRINT_ID: DappTokenCrowdsale,
    }
