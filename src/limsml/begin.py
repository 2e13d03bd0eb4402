""" Implementation of the top-level :func:`login` method. This is intended to
    be the principal entry point for users interacting with a LIMSML server.
"""

from .client import Client


def login(username=None, password=None, url=None, debug=None, transport=None, timeout=None):
    """ Create a :class:`limsml.Client` and log in to the server. Any setting
        not supplied here is taken from :mod:`limsml.config`, which in turn
        consults the environment.

        The returned client is logged in, and its action registry populated;
        an :class:`limsml.errors.AuthenticationError` is raised if the server
        rejects the credentials.
    """

    client = Client(username, password, url, transport=transport, debug=debug, timeout=timeout)
    client.login()
    return client


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
