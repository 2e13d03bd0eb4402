"""Convenience constructors for protocol messages."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from .fields import SYSTEM_ENTITY, ConnectionType, ResponseType
from .message import Action, Entity, Header, Request, System, Transaction

Transactions = Union[Transaction, Sequence[Transaction]]


def transaction(
    command: str,
    parameters: Optional[Mapping[str, Any]] = None,
    entity: Union[str, Entity] = SYSTEM_ENTITY,
    response_type: Union[str, ResponseType] = ResponseType.SYSTEM,
) -> Transaction:
    """Wrap a single unchecked action in a Transaction."""

    if isinstance(entity, str):
        entity = Entity(entity)

    entity = entity.with_action(Action(command, parameters))
    return Transaction(System(response_type, entity))


def ping(message: str = "Are you still there?") -> Transaction:
    return transaction("ping", {"message": message})


def start_session(user: str, password: str = "", transactions: Optional[Transactions] = None) -> Request:
    if transactions is None:
        transactions = transaction("login")
    header = Header(user, password=password, connect=ConnectionType.START_SESSION)
    return Request(header, transactions)


def continue_session(user: str, session: str, transactions: Optional[Transactions] = None) -> Request:
    if transactions is None:
        transactions = ping()
    header = Header(user, session=session, connect=ConnectionType.CONTINUE_SESSION)
    return Request(header, transactions)


def end_session(user: str, session: str, transactions: Optional[Transactions] = None) -> Request:
    if transactions is None:
        transactions = transaction("logout", entity="user", response_type=ResponseType.DATA)
    header = Header(user, session=session, connect=ConnectionType.END_SESSION)
    return Request(header, transactions)


def proxy(user: str, transactions: Transactions) -> Request:
    header = Header(user, connect=ConnectionType.PROXY)
    return Request(header, transactions)
