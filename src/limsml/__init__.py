""" Python client for LIMSML, the XML request language spoken by LIMS web
    services. This includes the message model and its XML encoding, the
    legacy header cipher, response decoding, and a session-holding client
    that discovers and dispatches the server's actions.
"""

# Submodules used by multiple other components.

from . import errors
from . import config
from . import protocol
from . import transport

# Primary public-facing interfaces.

from . import registry
from . import client
from .client import Client, LogoutResult, LogoutStatus, SessionState

from . import begin
login = begin.login

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
