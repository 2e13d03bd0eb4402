"""Action definitions discovered from the server.

An :class:`ActionDefinition` describes one remote command: what it returns,
which parameters it accepts and requires, and which entity types it applies
to. Definitions are learned once at login and never change afterward.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from ..errors import ValidationError
from .fields import GENERIC_ENTITY, SYSTEM_ENTITY, ResponseType
from .message import Action, Entity, System, Transaction


def _folded(names: Iterable[str]) -> FrozenSet[str]:
    return frozenset(str(name).lower() for name in names)


@dataclass(frozen=True)
class ActionDefinition:
    """Contract for one remote command.

    An empty ``all_parameters`` means the server declared no parameter list,
    and any caller parameter is passed through. An empty ``valid_entities``,
    or one containing the generic wildcard, accepts any entity type.
    """

    command: str
    return_type: ResponseType = ResponseType.SYSTEM
    all_parameters: FrozenSet[str] = field(default_factory=frozenset)
    required_parameters: FrozenSet[str] = field(default_factory=frozenset)
    valid_entities: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "command", self.command.lower())
        object.__setattr__(self, "return_type", ResponseType.parse(self.return_type))
        object.__setattr__(self, "all_parameters", _folded(self.all_parameters))
        object.__setattr__(self, "required_parameters", _folded(self.required_parameters))
        object.__setattr__(self, "valid_entities", _folded(self.valid_entities))

    def accepts(self, entity_type: str) -> bool:
        entity_type = entity_type.lower()
        return (
            not self.valid_entities
            or entity_type in self.valid_entities
            or GENERIC_ENTITY in self.valid_entities
        )

    def validate(self, parameters: Mapping[str, Any], entity: Union[str, Entity]) -> None:
        """Raise ValidationError if *parameters* or *entity* break the contract."""

        entity_type = entity if isinstance(entity, str) else entity.type

        if not self.accepts(entity_type):
            raise ValidationError(
                f"entity {entity_type!r} is not valid for action {self.command!r}"
            )

        supplied = _folded(parameters)
        missing = sorted(self.required_parameters - supplied)
        if missing:
            raise ValidationError(
                f"action {self.command!r} requires parameters: {', '.join(missing)}"
            )

    def filter_parameters(self, parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        """Drop parameters the action does not declare, if it declares any."""

        if not parameters:
            return {}

        folded = {str(name).lower(): value for name, value in parameters.items()}

        if not self.all_parameters:
            return folded

        return {name: value for name, value in folded.items() if name in self.all_parameters}

    def create_transaction(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        entity: Union[str, Entity] = SYSTEM_ENTITY,
    ) -> Transaction:
        """Validate, then wrap this action onto *entity* as a Transaction.

        The supplied Entity is not modified; the transaction carries a copy.
        """

        if isinstance(entity, str):
            entity = Entity(entity)

        self.validate(parameters or {}, entity)

        action = Action(self.command, self.filter_parameters(parameters))
        entity = entity.with_action(action)

        return Transaction(System(self.return_type, entity))


def parse_arguments(
    first: Any = None,
    second: Any = None,
) -> Tuple[Optional[Mapping[str, Any]], Entity]:
    """Interpret the flexible (parameters, entity) calling convention.

    Accepted forms:
        (parameters, entity)    entity is a type name or an Entity
        (entity)                no parameters
        (parameters)            the system entity
        ()                      no parameters, the system entity
    """

    if second is not None:
        parameters = first
        entity = second
    elif isinstance(first, (str, Entity)):
        parameters = None
        entity = first
    else:
        parameters = first
        entity = SYSTEM_ENTITY

    if isinstance(entity, str):
        entity = Entity(entity)

    return parameters, entity
