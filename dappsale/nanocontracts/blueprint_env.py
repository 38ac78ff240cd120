from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from dappsale.nanocontracts.exception import NCFail
from dappsale.nanocontracts.types import Amount, BlueprintId, CallerId, ContractId, NCAction, TokenUid

if TYPE_CHECKING:
    from dappsale.nanocontracts.runner import Runner


class BlueprintEnvironment:
    """The `self.syscall` object of a running contract.

    Everything a contract does beyond reading and writing its own fields goes
    through here, so that the runner sees it and can roll it back.
    """

    __slots__ = ('__runner', '__contract_id', '__readonly')

    def __init__(self, runner: Runner, contract_id: ContractId, *, readonly: bool = False) -> None:
        self.__runner = runner
        self.__contract_id = contract_id
        self.__readonly = readonly

    def __check_writable(self, what: str) -> None:
        if self.__readonly:
            raise NCFail(f'{what} is not allowed in a view')

    def get_contract_id(self) -> ContractId:
        return self.__contract_id

    def get_blueprint_id(self, contract_id: ContractId | None = None) -> BlueprintId:
        return self.__runner.get_blueprint_id(contract_id or self.__contract_id)

    def get_current_balance(self, token_uid: TokenUid) -> Amount:
        return Amount(self.__runner.get_balance(self.__contract_id, token_uid))

    def get_contract(self, contract_id: ContractId, *, blueprint_id: BlueprintId | None = None) -> ContractAccessor:
        """Return a handle to call another contract as this contract."""
        if blueprint_id is not None and self.__runner.get_blueprint_id(contract_id) != blueprint_id:
            raise NCFail(f'contract {contract_id.hex()} is not of blueprint {blueprint_id.hex()}')
        return ContractAccessor(self.__runner, self.__contract_id, contract_id, readonly=self.__readonly)

    def create_contract(
        self,
        blueprint_id: BlueprintId,
        salt: bytes,
        actions: Sequence[NCAction],
        *args: Any,
        **kwargs: Any,
    ) -> tuple[ContractId, Any]:
        """Create a new contract with this contract as its creator. Returns its id and the `initialize` result."""
        self.__check_writable('create_contract')
        return self.__runner.syscall_create_child_contract(
            self.__contract_id, blueprint_id, salt, actions, *args, **kwargs
        )

    def transfer(self, to: CallerId, token_uid: TokenUid, amount: int) -> None:
        """Send `amount` of the native ledger token from this contract to `to`."""
        self.__check_writable('transfer')
        self.__runner.syscall_transfer(self.__contract_id, to, token_uid, amount)

    def emit_event(self, data: bytes) -> None:
        self.__check_writable('emit_event')
        self.__runner.syscall_emit_event(self.__contract_id, data)


class ContractAccessor:
    __slots__ = ('_runner', '_caller_id', '_contract_id', '_readonly')

    def __init__(
        self,
        runner: Runner,
        caller_id: ContractId,
        contract_id: ContractId,
        *,
        readonly: bool = False,
    ) -> None:
        self._runner = runner
        self._caller_id = caller_id
        self._contract_id = contract_id
        self._readonly = readonly

    def public(self, *actions: NCAction) -> _PublicMethodAccessor:
        if self._readonly:
            raise NCFail('public calls are not allowed in a view')
        return _PublicMethodAccessor(self._runner, self._caller_id, self._contract_id, actions)

    def view(self) -> _ViewMethodAccessor:
        return _ViewMethodAccessor(self._runner, self._contract_id)


class _PublicMethodAccessor:
    __slots__ = ('_runner', '_caller_id', '_contract_id', '_actions')

    def __init__(
        self,
        runner: Runner,
        caller_id: ContractId,
        contract_id: ContractId,
        actions: Sequence[NCAction],
    ) -> None:
        self._runner = runner
        self._caller_id = caller_id
        self._contract_id = contract_id
        self._actions = actions

    def __getattr__(self, method_name: str) -> Any:
        def call(*args: Any, **kwargs: Any) -> Any:
            return self._runner.syscall_call_another_contract_public_method(
                self._caller_id, self._contract_id, method_name, self._actions, *args, **kwargs
            )
        return call


class _ViewMethodAccessor:
    __slots__ = ('_runner', '_contract_id')

    def __init__(self, runner: Runner, contract_id: ContractId) -> None:
        self._runner = runner
        self._contract_id = contract_id

    def __getattr__(self, method_name: str) -> Any:
        def call(*args: Any, **kwargs: Any) -> Any:
            return self._runner.call_view_method(self._contract_id, method_name, *args, **kwargs)
        return call
