from dappsale.nanocontracts.blueprint import Blueprint
from dappsale.nanocontracts.context import Context
from dappsale.nanocontracts.exception import NCFail
from dappsale.nanocontracts.runner import Runner
from dappsale.nanocontracts.types import public, view

__all__ = [
    'Blueprint',
    'Context',
    'NCFail',
    'Runner',
    'public',
    'view',
]
