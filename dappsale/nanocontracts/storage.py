from copy import deepcopy
from typing import Any, NamedTuple

from dappsale.nanocontracts.exception import NCContractDoesNotExist, NCInsufficientFunds
from dappsale.nanocontracts.types import BlueprintId, ContractId, TokenUid


class NCContractStorage:
    """Field values of a single contract."""

    def __init__(self, contract_id: ContractId, blueprint_id: BlueprintId) -> None:
        self.contract_id = contract_id
        self.blueprint_id = blueprint_id
        self._fields: dict[str, Any] = {}

    def get_obj(self, key: str) -> Any:
        return self._fields[key]

    def put_obj(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def has_obj(self, key: str) -> bool:
        return key in self._fields

    def get_blueprint_id(self) -> BlueprintId:
        return self.blueprint_id

    def copy(self) -> 'NCContractStorage':
        """Detached copy of the fields; changes to it never reach this storage."""
        storage = NCContractStorage(self.contract_id, self.blueprint_id)
        storage._fields = deepcopy(self._fields)
        return storage


class Balance(NamedTuple):
    value: int


class NCLedger:
    """Native balances held by wallet addresses and contracts."""

    def __init__(self) -> None:
        self._balances: dict[tuple[bytes, TokenUid], int] = {}

    def get_balance(self, holder: bytes, token_uid: TokenUid) -> Balance:
        return Balance(self._balances.get((holder, token_uid), 0))

    def add_balance(self, holder: bytes, token_uid: TokenUid, amount: int) -> None:
        assert amount >= 0
        key = (holder, token_uid)
        self._balances[key] = self._balances.get(key, 0) + amount

    def sub_balance(self, holder: bytes, token_uid: TokenUid, amount: int) -> None:
        assert amount >= 0
        key = (holder, token_uid)
        current = self._balances.get(key, 0)
        if current < amount:
            raise NCInsufficientFunds(
                f'{holder.hex()} holds {current} of token {token_uid.hex()}, needs {amount}'
            )
        self._balances[key] = current - amount

    def move(self, from_id: bytes, to_id: bytes, token_uid: TokenUid, amount: int) -> None:
        self.sub_balance(from_id, token_uid, amount)
        self.add_balance(to_id, token_uid, amount)


class NCMemoryStorage:
    """In-memory state of every contract, the native ledger and the event log.

    `snapshot()` and `restore()` give the runner its all-or-nothing semantics.
    """

    def __init__(self) -> None:
        self.contracts: dict[ContractId, NCContractStorage] = {}
        self.ledger = NCLedger()
        self.events: list[tuple[ContractId, bytes]] = []

    def create_contract_storage(self, contract_id: ContractId, blueprint_id: BlueprintId) -> NCContractStorage:
        storage = NCContractStorage(contract_id, blueprint_id)
        self.contracts[contract_id] = storage
        return storage

    def get_contract_storage(self, contract_id: ContractId) -> NCContractStorage:
        try:
            return self.contracts[contract_id]
        except KeyError:
            raise NCContractDoesNotExist(contract_id.hex())

    def has_contract(self, contract_id: ContractId) -> bool:
        return contract_id in self.contracts

    def snapshot(self) -> dict[str, Any]:
        return {
            'contracts': {cid: deepcopy(storage._fields) for cid, storage in self.contracts.items()},
            'balances': dict(self.ledger._balances),
            'events': len(self.events),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        saved_fields = snapshot['contracts']
        # Contracts created after the snapshot are discarded.
        for contract_id in list(self.contracts):
            if contract_id not in saved_fields:
                del self.contracts[contract_id]
        for contract_id, fields in saved_fields.items():
            self.contracts[contract_id]._fields = fields
        self.ledger._balances = snapshot['balances']
        del self.events[snapshot['events']:]
