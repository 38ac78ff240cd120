from collections import defaultdict
from types import MappingProxyType
from typing import Mapping, Sequence

from dappsale.nanocontracts.exception import NCInvalidContext
from dappsale.nanocontracts.types import CallerId, NCAction, Timestamp, TokenUid


class Context:
    """Everything a public method knows about the transaction calling it."""

    __slots__ = ('_actions', 'caller_id', 'timestamp')

    def __init__(self, actions: Sequence[NCAction], caller_id: CallerId, timestamp: int) -> None:
        grouped: defaultdict[TokenUid, list[NCAction]] = defaultdict(list)
        for action in actions:
            if action.amount < 0:
                raise NCInvalidContext(f'negative amount in {action.name} action')
            grouped[action.token_uid].append(action)

        self._actions: Mapping[TokenUid, tuple[NCAction, ...]] = MappingProxyType(
            {token_uid: tuple(items) for token_uid, items in grouped.items()}
        )
        self.caller_id = caller_id
        self.timestamp = Timestamp(timestamp)

    @property
    def actions(self) -> Mapping[TokenUid, tuple[NCAction, ...]]:
        return self._actions

    def actions_list(self) -> list[NCAction]:
        return [action for items in self._actions.values() for action in items]

    def get_single_action(self, token_uid: TokenUid) -> NCAction:
        """Return the only action for `token_uid`, failing if there are none or several."""
        actions = self._actions.get(token_uid, ())
        if len(actions) != 1:
            raise NCInvalidContext(f'expected exactly 1 action for token {token_uid.hex()}')
        return actions[0]

    def copy_to(self, caller_id: CallerId, actions: Sequence[NCAction] = ()) -> 'Context':
        """Build the context of a nested call made at the same timestamp."""
        return Context(actions, caller_id, self.timestamp)

    def __repr__(self) -> str:
        return f'Context(caller_id={self.caller_id.hex()}, timestamp={self.timestamp}, ' \
               f'actions={self.actions_list()!r})'
