import hashlib
import logging
from typing import Any, Callable, NamedTuple, Sequence

from dappsale.nanocontracts.blueprint import Blueprint, is_exported_blueprint
from dappsale.nanocontracts.blueprint_env import BlueprintEnvironment
from dappsale.nanocontracts.context import Context
from dappsale.nanocontracts.exception import (
    BlueprintDoesNotExist,
    NCContractAlreadyExists,
    NCFail,
    NCForbiddenAction,
    NCMethodNotFound,
)
from dappsale.nanocontracts.storage import NCContractStorage, NCMemoryStorage
from dappsale.nanocontracts.types import (
    NC_ALLOW_DEPOSIT_ATTR,
    NC_ALLOW_WITHDRAWAL_ATTR,
    NC_INITIALIZE_METHOD,
    BlueprintId,
    CallerId,
    ContractId,
    NCAction,
    NCDepositAction,
    NCWithdrawalAction,
    TokenUid,
    VertexId,
    is_nc_public_method,
    is_nc_view_method,
)

logger = logging.getLogger(__name__)


class _CallRecord(NamedTuple):
    contract_id: ContractId
    method_name: str
    ctx: Context


def derive_child_contract_id(creator_id: ContractId, salt: bytes, blueprint_id: BlueprintId) -> ContractId:
    """Id of a contract created by another contract; deterministic in its inputs."""
    digest = hashlib.sha256(creator_id + salt + blueprint_id).digest()
    return ContractId(VertexId(digest))


class Runner:
    """Executes blueprint methods as transactions against an in-memory storage.

    Every public call (including contract creation and nested calls made
    through `syscall`) runs inside a snapshot: if any exception escapes, all
    contract fields, native balances and events go back to how they were
    before the call and the exception is re-raised. Nothing is retried.
    """

    def __init__(self, storage: NCMemoryStorage | None = None) -> None:
        self.storage = storage if storage is not None else NCMemoryStorage()
        self._blueprints: dict[BlueprintId, type[Blueprint]] = {}
        self._call_stack: list[_CallRecord] = []

    # Registry

    def register_blueprint_class(self, blueprint_id: BlueprintId, blueprint_class: type[Blueprint]) -> None:
        if not issubclass(blueprint_class, Blueprint):
            raise TypeError(f'{blueprint_class!r} is not a Blueprint')
        if not is_exported_blueprint(blueprint_class):
            raise TypeError(f'{blueprint_class.__name__} is not marked with @export')
        self._blueprints[blueprint_id] = blueprint_class

    def get_blueprint_class(self, blueprint_id: BlueprintId) -> type[Blueprint]:
        try:
            return self._blueprints[blueprint_id]
        except KeyError:
            raise BlueprintDoesNotExist(blueprint_id.hex())

    def get_blueprint_id(self, contract_id: ContractId) -> BlueprintId:
        return self.storage.get_contract_storage(contract_id).get_blueprint_id()

    def has_contract(self, contract_id: ContractId) -> bool:
        return self.storage.has_contract(contract_id)

    def get_storage(self, contract_id: ContractId) -> NCContractStorage:
        return self.storage.get_contract_storage(contract_id)

    def get_readonly_contract(self, contract_id: ContractId) -> Blueprint:
        storage = self.get_storage(contract_id)
        blueprint_class = self.get_blueprint_class(storage.get_blueprint_id())
        return blueprint_class(BlueprintEnvironment(self, contract_id), storage, readonly=True)

    # Native ledger

    def get_balance(self, holder: bytes, token_uid: TokenUid) -> int:
        return self.storage.ledger.get_balance(holder, token_uid).value

    def credit(self, holder: bytes, token_uid: TokenUid, amount: int) -> None:
        """Give `holder` native funds from outside any contract (wallet funding)."""
        if self._call_stack:
            raise NCFail('credit is not available inside a transaction')
        self.storage.ledger.add_balance(holder, token_uid, amount)

    def get_events(self, contract_id: ContractId | None = None) -> list[bytes]:
        return [data for cid, data in self.storage.events if contract_id is None or cid == contract_id]

    # Entry points

    def create_contract(
        self,
        contract_id: ContractId,
        blueprint_id: BlueprintId,
        ctx: Context,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Create a contract and run its `initialize` method in one transaction."""
        if self.storage.has_contract(contract_id):
            raise NCContractAlreadyExists(contract_id.hex())
        blueprint_class = self.get_blueprint_class(blueprint_id)

        def create() -> Any:
            storage = self.storage.create_contract_storage(contract_id, blueprint_id)
            logger.debug('creating contract %s of blueprint %s', contract_id.hex(), blueprint_class.__name__)
            return self._execute_public(blueprint_class, storage, NC_INITIALIZE_METHOD, ctx, args, kwargs)

        return self._transact(contract_id, NC_INITIALIZE_METHOD, ctx, create)

    def call_public_method(
        self,
        contract_id: ContractId,
        method_name: str,
        ctx: Context,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if method_name == NC_INITIALIZE_METHOD:
            raise NCMethodNotFound('initialize can only be called on contract creation')
        storage = self.storage.get_contract_storage(contract_id)
        blueprint_class = self.get_blueprint_class(storage.get_blueprint_id())

        def call() -> Any:
            return self._execute_public(blueprint_class, storage, method_name, ctx, args, kwargs)

        return self._transact(contract_id, method_name, ctx, call)

    def call_view_method(self, contract_id: ContractId, method_name: str, *args: Any, **kwargs: Any) -> Any:
        """Run a view against a private copy of the contract fields.

        Live storage objects are never handed to the view, so neither in-place
        changes made by the view nor references held by a running caller are
        affected.
        """
        storage = self.get_storage(contract_id)
        blueprint_class = self.get_blueprint_class(storage.get_blueprint_id())
        method = getattr(blueprint_class, method_name, None)
        if method is None or not is_nc_view_method(method):
            raise NCMethodNotFound(f'{blueprint_class.__name__}.{method_name} is not a view method')
        env = BlueprintEnvironment(self, contract_id, readonly=True)
        contract = blueprint_class(env, storage.copy(), readonly=True)
        return getattr(contract, method_name)(*args, **kwargs)

    # Syscalls

    def syscall_call_another_contract_public_method(
        self,
        caller_id: ContractId,
        contract_id: ContractId,
        method_name: str,
        actions: Sequence[NCAction],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        ctx = self._current_context().copy_to(caller_id, actions)
        return self.call_public_method(contract_id, method_name, ctx, *args, **kwargs)

    def syscall_create_child_contract(
        self,
        creator_id: ContractId,
        blueprint_id: BlueprintId,
        salt: bytes,
        actions: Sequence[NCAction],
        *args: Any,
        **kwargs: Any,
    ) -> tuple[ContractId, Any]:
        contract_id = derive_child_contract_id(creator_id, salt, blueprint_id)
        ctx = self._current_context().copy_to(creator_id, actions)
        result = self.create_contract(contract_id, blueprint_id, ctx, *args, **kwargs)
        return contract_id, result

    def syscall_transfer(self, from_id: ContractId, to: CallerId, token_uid: TokenUid, amount: int) -> None:
        if amount < 0:
            raise NCFail('cannot transfer a negative amount')
        self.storage.ledger.move(from_id, to, token_uid, amount)

    def syscall_emit_event(self, contract_id: ContractId, data: bytes) -> None:
        self.storage.events.append((contract_id, data))

    # Internals

    def _current_context(self) -> Context:
        if not self._call_stack:
            raise NCFail('syscall outside of a transaction')
        return self._call_stack[-1].ctx

    def _transact(self, contract_id: ContractId, method_name: str, ctx: Context, fn: Callable[[], Any]) -> Any:
        snapshot = self.storage.snapshot()
        self._call_stack.append(_CallRecord(contract_id, method_name, ctx))
        try:
            return fn()
        except Exception as e:
            self.storage.restore(snapshot)
            logger.debug('rolled back %s on %s: %r', method_name, contract_id.hex(), e)
            raise
        finally:
            self._call_stack.pop()

    def _execute_public(
        self,
        blueprint_class: type[Blueprint],
        storage: NCContractStorage,
        method_name: str,
        ctx: Context,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        method = getattr(blueprint_class, method_name, None)
        if method is None or not is_nc_public_method(method):
            raise NCMethodNotFound(f'{blueprint_class.__name__}.{method_name} is not a public method')

        contract_id = storage.contract_id
        for action in ctx.actions_list():
            if isinstance(action, NCDepositAction):
                if not getattr(method, NC_ALLOW_DEPOSIT_ATTR, False):
                    raise NCForbiddenAction(f'{method_name} does not accept deposits')
                self.storage.ledger.move(ctx.caller_id, contract_id, action.token_uid, action.amount)
            elif isinstance(action, NCWithdrawalAction):
                if not getattr(method, NC_ALLOW_WITHDRAWAL_ATTR, False):
                    raise NCForbiddenAction(f'{method_name} does not accept withdrawals')
                self.storage.ledger.move(contract_id, ctx.caller_id, action.token_uid, action.amount)
            else:
                raise NCForbiddenAction(f'unknown action {action!r}')

        contract = blueprint_class(BlueprintEnvironment(self, contract_id), storage)
        logger.debug('calling %s.%s %r', blueprint_class.__name__, method_name, ctx)
        return getattr(contract, method_name)(ctx, *args, **kwargs)
