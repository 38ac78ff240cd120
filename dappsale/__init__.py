from dappsale.nanocontracts.blueprint import Blueprint, export
from dappsale.nanocontracts.context import Context
from dappsale.nanocontracts.exception import NCFail, Unauthorized
from dappsale.nanocontracts.types import (
    NATIVE_TOKEN_UID,
    Address,
    Amount,
    BlueprintId,
    CallerId,
    ContractId,
    NCAction,
    NCDepositAction,
    NCWithdrawalAction,
    Timestamp,
    TokenUid,
    VertexId,
    public,
    view,
)

__version__ = '0.1.0'

__all__ = [
    'NATIVE_TOKEN_UID',
    'Address',
    'Amount',
    'Blueprint',
    'BlueprintId',
    'CallerId',
    'Context',
    'ContractId',
    'NCAction',
    'NCDepositAction',
    'NCFail',
    'NCWithdrawalAction',
    'Timestamp',
    'TokenUid',
    'Unauthorized',
    'VertexId',
    'export',
    'public',
    'view',
]
