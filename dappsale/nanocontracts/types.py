from dataclasses import dataclass
from typing import Any, Callable, NewType, TypeVar, Union

VertexId = NewType('VertexId', bytes)
Address = NewType('Address', bytes)
ContractId = NewType('ContractId', VertexId)
BlueprintId = NewType('BlueprintId', VertexId)
TokenUid = NewType('TokenUid', bytes)
Amount = NewType('Amount', int)
Timestamp = NewType('Timestamp', int)

# Contracts are called either by a wallet address or by another contract.
CallerId = Union[Address, ContractId]

# Token of the native ledger, the currency contracts are paid with.
NATIVE_TOKEN_UID = TokenUid(b'\x00')

NC_PUBLIC_METHOD_ATTR = '_is_nc_public'
NC_VIEW_METHOD_ATTR = '_is_nc_view'
NC_ALLOW_DEPOSIT_ATTR = '_nc_allow_deposit'
NC_ALLOW_WITHDRAWAL_ATTR = '_nc_allow_withdrawal'
NC_INITIALIZE_METHOD = 'initialize'
NC_EXPORTED_ATTR = '_is_nc_exported'

T = TypeVar('T', bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class NCDepositAction:
    """Moves `amount` of `token_uid` from the caller into the called contract."""
    token_uid: TokenUid
    amount: int

    @property
    def name(self) -> str:
        return 'deposit'


@dataclass(frozen=True, slots=True)
class NCWithdrawalAction:
    """Moves `amount` of `token_uid` from the called contract to the caller."""
    token_uid: TokenUid
    amount: int

    @property
    def name(self) -> str:
        return 'withdrawal'


NCAction = Union[NCDepositAction, NCWithdrawalAction]


def public(
    fn: T | None = None,
    *,
    allow_deposit: bool = False,
    allow_withdrawal: bool = False,
) -> Any:
    """Mark a blueprint method as callable in a transaction.

    Can be used bare (`@public`) or with arguments (`@public(allow_deposit=True)`).
    A public method refuses any action kind it did not opt into.
    """
    def decorator(method: T) -> T:
        setattr(method, NC_PUBLIC_METHOD_ATTR, True)
        setattr(method, NC_ALLOW_DEPOSIT_ATTR, allow_deposit)
        setattr(method, NC_ALLOW_WITHDRAWAL_ATTR, allow_withdrawal)
        return method

    if fn is not None:
        return decorator(fn)
    return decorator


def view(fn: T) -> T:
    """Mark a blueprint method as a read-only query."""
    setattr(fn, NC_VIEW_METHOD_ATTR, True)
    return fn


def is_nc_public_method(method: Callable[..., Any]) -> bool:
    return getattr(method, NC_PUBLIC_METHOD_ATTR, False)


def is_nc_view_method(method: Callable[..., Any]) -> bool:
    return getattr(method, NC_VIEW_METHOD_ATTR, False)
