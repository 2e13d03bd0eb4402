"""Registry of remote actions discovered at login.

The server publishes its actions in two metadata tables: one row per
(entity, action, return type), and one row per action parameter with a
mandatory flag. :meth:`ActionRegistry.populate` folds those rows into
immutable :class:`ActionDefinition` instances keyed by :class:`ActionKey`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Set

from .errors import ValidationError
from .protocol.action import ActionDefinition
from .protocol.fields import GENERIC_ENTITY, ResponseType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionKey:
    """Composite (entity type, command) key, case-folded on construction."""

    entity: str
    command: str

    def __post_init__(self):
        object.__setattr__(self, "entity", self.entity.lower())
        object.__setattr__(self, "command", self.command.lower())

    def __str__(self) -> str:
        return f"{self.entity}.{self.command}"


class ActionRegistry:
    """Lookup table of discovered actions.

    Resolution prefers an exact (entity, command) match, then the generic
    wildcard entity for the same command.
    """

    def __init__(self) -> None:
        self._definitions: Dict[ActionKey, ActionDefinition] = {}

    def __contains__(self, key: ActionKey) -> bool:
        return key in self._definitions

    def __iter__(self) -> Iterator[ActionKey]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"ActionRegistry({sorted(str(key) for key in self._definitions)})"

    def register(self, entity: str, definition: ActionDefinition) -> ActionKey:
        key = ActionKey(entity, definition.command)
        self._definitions[key] = definition
        return key

    def get(self, key: ActionKey) -> ActionDefinition:
        return self._definitions[key]

    def resolve(self, entity: str, command: str) -> ActionDefinition:
        """Find the definition to run *command* against *entity*."""

        exact = ActionKey(entity, command)
        try:
            return self._definitions[exact]
        except KeyError:
            pass

        try:
            return self._definitions[ActionKey(GENERIC_ENTITY, command)]
        except KeyError:
            raise ValidationError(f"Could not find a registered action for {exact}.")

    def find(self, command: str) -> List[ActionDefinition]:
        """Return every definition registered for *command*, on any entity."""

        command = command.lower()
        return [d for key, d in self._definitions.items() if key.command == command]

    def commands(self) -> Set[str]:
        return {key.command for key in self._definitions}

    def populate(
        self,
        actions: Iterable[Mapping[str, Any]],
        parameters: Iterable[Mapping[str, Any]],
    ) -> List[ActionKey]:
        """Register a definition for every row of the actions table.

        Returns the keys that were registered.
        """

        parameters = list(parameters)
        registered = []

        for row in actions:
            entity = str(row.get("entity") or "").lower()
            command = str(row.get("action") or "").lower()

            if not entity or not command:
                logger.warning("ignoring malformed action row: %r", row)
                continue

            all_parameters = []
            required_parameters = []

            for p in parameters:
                if str(p.get("entity") or "").lower() != entity:
                    continue
                if str(p.get("action") or "").lower() != command:
                    continue

                name = p.get("parameter")
                if not name:
                    continue

                all_parameters.append(name)
                if _mandatory(p.get("is_mandatory")):
                    required_parameters.append(name)

            definition = ActionDefinition(
                command,
                _return_type(row.get("return_type")),
                all_parameters=all_parameters,
                required_parameters=required_parameters,
                valid_entities=[entity],
            )

            registered.append(self.register(entity, definition))

        return registered


def _mandatory(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _return_type(value: Any) -> ResponseType:
    try:
        return ResponseType.parse(value)
    except ValueError:
        logger.debug("unrecognized return type %r, assuming system", value)
        return ResponseType.SYSTEM
