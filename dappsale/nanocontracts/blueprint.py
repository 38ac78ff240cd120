from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any

from dappsale.nanocontracts.exception import NCFail
from dappsale.nanocontracts.types import NC_EXPORTED_ATTR, NC_INITIALIZE_METHOD, is_nc_public_method

if TYPE_CHECKING:
    from dappsale.nanocontracts.blueprint_env import BlueprintEnvironment
    from dappsale.nanocontracts.storage import NCContractStorage

_BLUEPRINT_INTERNALS = frozenset({'syscall', '_storage', '_readonly'})


class _BlueprintFieldsMeta(type):
    """Collect the annotated attributes of a blueprint class as its storage fields."""

    def __new__(mcs, name: str, bases: tuple[type, ...], attrs: dict[str, Any]) -> Any:
        cls = super().__new__(mcs, name, bases, attrs)
        fields: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            if klass is object or '_is_blueprint_base' in klass.__dict__:
                continue
            fields.update(inspect.get_annotations(klass))
        for field_name in fields:
            if field_name in _BLUEPRINT_INTERNALS or field_name.startswith('_'):
                raise TypeError(f'{name}: invalid field name {field_name!r}')
        cls._fields = frozenset(fields)
        return cls


class Blueprint(metaclass=_BlueprintFieldsMeta):
    """Base class of every contract.

    Annotated class attributes are the contract fields. Reads and writes of
    those names go to the contract storage, so the runner can snapshot and
    restore them. Any other attribute assignment is refused.
    """

    _is_blueprint_base = True
    _fields: frozenset[str] = frozenset()

    def __init__(self, env: BlueprintEnvironment, storage: NCContractStorage, *, readonly: bool = False) -> None:
        object.__setattr__(self, 'syscall', env)
        object.__setattr__(self, '_storage', storage)
        object.__setattr__(self, '_readonly', readonly)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails, i.e. for storage fields.
        if name in type(self)._fields:
            storage = object.__getattribute__(self, '_storage')
            if not storage.has_obj(name):
                raise AttributeError(f'field {name!r} is not initialized')
            return storage.get_obj(name)
        raise AttributeError(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in type(self)._fields:
            raise AttributeError(f'cannot set {name!r}: not a field of {type(self).__name__}')
        if self._readonly:
            raise NCFail(f'cannot set {name!r} on a readonly contract')
        self._storage.put_obj(name, value)


def export(blueprint_class: type[Blueprint]) -> type[Blueprint]:
    """Mark a blueprint class as deployable.

    Only exported classes can be registered in a runner. The class must
    define a public `initialize` method.
    """
    if not (isinstance(blueprint_class, type) and issubclass(blueprint_class, Blueprint)):
        raise TypeError(f'{blueprint_class!r} is not a Blueprint')
    initialize = getattr(blueprint_class, NC_INITIALIZE_METHOD, None)
    if initialize is None or not is_nc_public_method(initialize):
        raise TypeError(f'{blueprint_class.__name__} must define a public {NC_INITIALIZE_METHOD} method')
    setattr(blueprint_class, NC_EXPORTED_ATTR, True)
    return blueprint_class


def is_exported_blueprint(blueprint_class: type[Blueprint]) -> bool:
    return NC_EXPORTED_ATTR in blueprint_class.__dict__
