import os
from typing import Optional, Sequence
from unittest import TestCase

from dappsale.nanocontracts.blueprint import Blueprint
from dappsale.nanocontracts.blueprints import get_blueprint_classes
from dappsale.nanocontracts.context import Context
from dappsale.nanocontracts.runner import Runner
from dappsale.nanocontracts.types import (
    NATIVE_TOKEN_UID,
    Address,
    BlueprintId,
    CallerId,
    ContractId,
    NCAction,
    TokenUid,
    VertexId,
)

NATIVE_UID = NATIVE_TOKEN_UID
ETHER = 10**18


class BlueprintTestCase(TestCase):
    """Base class for blueprint tests, with a fresh runner per test."""

    def setUp(self) -> None:
        super().setUp()
        self.runner = Runner()
        self.now = 1_700_000_000

    def gen_random_address(self) -> Address:
        return Address(os.urandom(25))

    def gen_random_contract_id(self) -> ContractId:
        return ContractId(VertexId(os.urandom(32)))

    def gen_random_blueprint_id(self) -> BlueprintId:
        return BlueprintId(VertexId(os.urandom(32)))

    def _register_blueprint_class(
        self,
        blueprint_class: type[Blueprint],
        blueprint_id: Optional[BlueprintId] = None,
    ) -> BlueprintId:
        if blueprint_id is None:
            blueprint_id = self.gen_random_blueprint_id()
        self.runner.register_blueprint_class(blueprint_id, blueprint_class)
        return blueprint_id

    def _register_all_blueprints(self) -> None:
        for blueprint_id, blueprint_class in get_blueprint_classes().items():
            self.runner.register_blueprint_class(blueprint_id, blueprint_class)

    def create_context(
        self,
        actions: Sequence[NCAction] = (),
        caller_id: Optional[CallerId] = None,
        timestamp: Optional[int] = None,
    ) -> Context:
        return Context(
            actions=actions,
            caller_id=caller_id if caller_id is not None else self.gen_random_address(),
            timestamp=timestamp if timestamp is not None else self.now,
        )

    def get_readonly_contract(self, contract_id: ContractId) -> Blueprint:
        return self.runner.get_readonly_contract(contract_id)

    def fund(self, address: Address, amount: int, token_uid: TokenUid = NATIVE_UID) -> None:
        """Give a wallet native funds to pay with."""
        self.runner.credit(address, token_uid, amount)

    def get_native_balance(self, holder: bytes) -> int:
        return self.runner.get_balance(holder, NATIVE_UID)
