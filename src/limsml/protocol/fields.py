"""Protocol vocabulary.

Keep these in one place to avoid stringly-typed message handling.
"""

from enum import Enum


class ConnectionType(Enum):
    START_SESSION = "StartSession"
    CONTINUE_SESSION = "ContinueSession"
    END_SESSION = "EndSession"
    PROXY = "Proxy"


class ResponseType(Enum):
    SYSTEM = "system"
    DATA = "data"

    @classmethod
    def parse(cls, value):
        """Accept a ResponseType or its (case-insensitive) string value."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


# Namespaces declared once, at the document root.
XMLNS = "http://www.thermo.com/informatics/xmlns/limsml/1.0"
XMLNS_XSD = "http://www.w3.org/2001/XMLSchema"
XMLNS_XSI = "http://www.w3.org/2001/XMLSchema-instance"

# Default field attributes
DIRECTION = "direction"
DIRECTION_IN = "in"
DIRECTION_OUT = "out"
DATATYPE = "datatype"
DATATYPE_TEXT = "Text"

# Header parameter names
USER = "USER"
PASSWORD = "PASSWORD"
SESSION = "SESSION"
CONNECT = "CONNECT"

# The StartSession password is space-padded to this length.
PASSWORD_LENGTH = 10

# Entity used for session-level actions, and the wildcard entity type that
# an action definition may declare to accept any entity.
SYSTEM_ENTITY = "system"
GENERIC_ENTITY = "generic"

# Server-side metadata tables read during login.
ACTIONS_TABLE = "limsml_entity_action"
PARAMS_TABLE = "limsml_entity_param"
