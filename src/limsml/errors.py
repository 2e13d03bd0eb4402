""" Exceptions raised by the LIMSML client. Transport failures live with the
    transport implementations in :mod:`limsml.transport.base`, but share the
    :class:`LimsmlError` base class defined here so that callers can catch
    everything the client raises with a single clause.

    Application-level errors reported by the server are not exceptions; they
    are returned as strings in :attr:`limsml.protocol.response.Response.errors`
    for the caller to inspect.
"""


class LimsmlError(Exception):
    """ Base class for all errors raised by the LIMSML client.
    """


class DecodeError(LimsmlError):
    """ The server response could not be parsed as XML.
    """


class AuthenticationError(LimsmlError):
    """ The server did not issue a session token in response to a login
        request. The message carries any server-provided error text.
    """


class ValidationError(LimsmlError):
    """ The caller-supplied parameters or entity type do not satisfy the
        contract of a registered action, or no matching action is registered.
        The session remains usable.
    """


class NotLoggedInError(LimsmlError):
    """ An action was attempted without an active session.
    """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
