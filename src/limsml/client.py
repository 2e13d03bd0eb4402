""" The :class:`Client` holds a LIMSML session: it logs in, learns which
    remote actions the server exposes, executes transactions on behalf of
    the caller, and logs out again.

    A client moves through the states enumerated in :class:`SessionState`.
    Only an active client can execute actions; there is no implicit re-login,
    a dropped session must be re-established by calling :func:`Client.login`
    again. Each request/response exchange holds a per-client lock, so a
    client can be shared between threads, though its requests will be
    serialized.
"""

from __future__ import annotations

import enum
import logging
import threading
import types
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from . import config
from .errors import AuthenticationError, LimsmlError, NotLoggedInError
from .protocol.action import ActionDefinition, parse_arguments
from .protocol.fields import ACTIONS_TABLE, PARAMS_TABLE, ConnectionType, ResponseType
from .protocol.message import Entity, Header, Request, Transaction
from .protocol.response import Response
from .registry import ActionRegistry
from .transport.base import Transport
from .transport.soap import SoapTransport

logger = logging.getLogger(__name__)


# Page size requested for the metadata tables read during login.
METADATA_PAGE_SIZE = 1000


class SessionState(enum.Enum):
    DISCONNECTED = "disconnected"
    LOGGING_IN = "logging in"
    ACTIVE = "active"
    LOGGING_OUT = "logging out"


class LogoutStatus(enum.Enum):
    OK = "ok"
    FAILED = "failed"
    NOT_LOGGED_IN = "not logged in"


@dataclass(frozen=True)
class LogoutResult:
    """Outcome of :meth:`Client.logout`. Logout is best-effort: a failure is
    reported here, with its *reason*, rather than raised."""

    status: LogoutStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is LogoutStatus.OK


class Client:
    """ Client for a LIMSML web service. Connection settings not supplied
        here are taken from :mod:`limsml.config`. A custom *transport* may
        be supplied; otherwise a :class:`SoapTransport` is created for the
        configured *url*.

        After :func:`login`, the actions discovered on the server are
        available through :func:`dispatch`, or as ready-made callables in
        the :attr:`commands` table::

            client.commands['find']({'pagesize': 100}, 'personnel')
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        url: Optional[str] = None,
        transport: Optional[Transport] = None,
        debug: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):

        self.username = config.get('username', username)
        self.url = config.get('url', url)
        self.debug = config.get('debug', debug)
        self._password = config.get('password', password)

        if transport is None:
            transport = SoapTransport(self.url, config.get('timeout', timeout))

        self.transport = transport
        self.registry = ActionRegistry()

        self._session: Optional[str] = None
        self._state = SessionState.DISCONNECTED
        self._commands: Dict[str, Callable[..., Response]] = dict()
        self._lock = threading.Lock()


    def __repr__(self):
        return 'Client(%r, %r, %s)' % (self.username, self.url, self._state.value)


    @property
    def state(self) -> SessionState:
        return self._state


    @property
    def session(self) -> Optional[str]:
        """ The session token issued at login, or None.
        """

        return self._session


    @property
    def commands(self) -> Mapping[str, Callable[..., Response]]:
        """ Read-only table of callables, one per discovered command name.
            Each accepts the same (parameters, entity) arguments as
            :func:`limsml.protocol.action.parse_arguments`.
        """

        return types.MappingProxyType(self._commands)


    def action(self, command: str) -> List[ActionDefinition]:
        """ Return the registered definitions for *command*, on any entity.
        """

        return self.registry.find(command)


    def login(self) -> bool:
        """ Start a session. The login request also fetches the server's
            action metadata, which populates the registry the first time a
            session is established. Raises :class:`AuthenticationError` if
            the server does not issue a session token.
        """

        with self._lock:
            if self._state is SessionState.ACTIVE:
                logger.debug('login(): already logged in')
                return True

            self._state = SessionState.LOGGING_IN

            try:
                self._login()
            finally:
                if self._state is not SessionState.ACTIVE:
                    self._state = SessionState.DISCONNECTED

        return True


    def _login(self) -> None:

        find = ActionDefinition('find', ResponseType.DATA)
        parameters = {'pagesize': METADATA_PAGE_SIZE}
        transactions = [find.create_transaction(parameters, table) for table in (ACTIONS_TABLE, PARAMS_TABLE)]

        request = Request(self._header(ConnectionType.START_SESSION), transactions)

        logger.info('login(): logging in as user %s', self.username)
        response = self._process(request)

        session = response.session
        if not session:
            if response.errors:
                raise AuthenticationError(', '.join(response.errors))
            raise AuthenticationError('login failed')

        self._session = session
        logger.debug('login(): logged in with session %s', session.strip())

        if len(self.registry) == 0:
            self._register_actions(response)

        self._state = SessionState.ACTIVE


    def _register_actions(self, response: Response) -> None:

        actions = response.tables.get(ACTIONS_TABLE)
        parameters = response.tables.get(PARAMS_TABLE)

        if actions is None or parameters is None:
            logger.warning('login(): no action metadata returned, no actions registered')
            return

        keys = self.registry.populate(actions.rows, parameters.rows)

        for command in sorted(self.registry.commands()):
            if command not in self._commands:
                self._commands[command] = self._command(command)

        logger.debug('login(): registered actions %s', ', '.join(str(key) for key in keys))


    def _command(self, command: str) -> Callable[..., Response]:
        """ Build the shared convenience callable for one command name.
        """

        def invoke(parameters: Any = None, entity: Any = None) -> Response:
            parameters, entity = parse_arguments(parameters, entity)
            return self.dispatch(entity, command, parameters)

        invoke.__name__ = command
        invoke.__qualname__ = 'Client.commands[%r]' % (command)
        invoke.__doc__ = 'Run the %r action.' % (command)
        return invoke


    def dispatch(
        self,
        entity: Union[str, Entity],
        command: str,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> Response:
        """ Run the registered *command* against *entity*, which may be an
            entity type name or a complete :class:`Entity` tree. The
            definition for the exact entity type is preferred, then the one
            registered for the generic entity. Parameters the action does not
            declare are dropped; missing required parameters, or an entity
            type the action does not accept, raise
            :class:`limsml.errors.ValidationError` without contacting the
            server.
        """

        if self._state is not SessionState.ACTIVE:
            raise NotLoggedInError('not logged in')

        if isinstance(entity, str):
            entity = Entity(entity)

        definition = self.registry.resolve(entity.type, command)
        transaction = definition.create_transaction(parameters, entity)

        return self.execute(transaction)


    def execute(self, transactions: Union[Transaction, Sequence[Transaction]]) -> Response:
        """ Send one or more transactions in the current session and return
            the decoded :class:`Response`. Server-reported errors are returned
            in the response, not raised.
        """

        with self._lock:
            if self._state is not SessionState.ACTIVE:
                raise NotLoggedInError('not logged in')

            if isinstance(transactions, Transaction):
                transactions = [transactions]

            transactions = list(transactions)
            logger.debug('execute(): commands = [%s]', ', '.join(t.command for t in transactions))

            request = Request(self._header(ConnectionType.CONTINUE_SESSION), transactions)
            return self._process(request)


    def logout(self) -> LogoutResult:
        """ End the session. This is best-effort: if the server reports an
            error, or cannot be reached, the session token is kept and the
            failure is described in the returned :class:`LogoutResult`.
        """

        with self._lock:
            if self._state is not SessionState.ACTIVE:
                logger.debug('logout(): not logged in to begin with')
                return LogoutResult(LogoutStatus.NOT_LOGGED_IN)

            self._state = SessionState.LOGGING_OUT

            try:
                return self._logout()
            finally:
                if self._state is not SessionState.DISCONNECTED:
                    self._state = SessionState.ACTIVE


    def _logout(self) -> LogoutResult:

        logout = ActionDefinition('logout', ResponseType.DATA)
        request = Request(self._header(ConnectionType.END_SESSION), logout.create_transaction(entity='user'))

        try:
            response = self._process(request)
        except LimsmlError as e:
            logger.warning('logout(): failed: %s', e)
            return LogoutResult(LogoutStatus.FAILED, str(e))

        if response.errors:
            reason = ', '.join(response.errors)
            logger.warning('logout(): failed: %s', reason)
            return LogoutResult(LogoutStatus.FAILED, reason)

        self._session = None
        self._state = SessionState.DISCONNECTED
        logger.info('logout(): succeeded')

        return LogoutResult(LogoutStatus.OK)


    def close(self) -> None:
        self.transport.close()


    def _header(self, connect: ConnectionType) -> Header:

        if connect == ConnectionType.START_SESSION:
            return Header(self.username, password=self._password, connect=connect)

        if connect == ConnectionType.PROXY:
            return Header(self.username, connect=connect)

        return Header(self.username, session=self._session, connect=connect)


    def _process(self, request: Request) -> Response:
        """ Send a request, and decode the reply.
        """

        if self.debug:
            logger.debug('process(): sent XML\n%s', request.to_xml(pretty=True))

        text = self.transport.send(request.to_xml())

        if self.debug:
            logger.debug('process(): received XML\n%s', text)

        response = Response.from_xml(text)

        if self.debug:
            logger.debug('process(): received %r', response)

        return response


# end of class Client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
