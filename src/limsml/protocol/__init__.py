from . import fields
from . import cipher
from . import wire
from . import message
from . import action
from . import factory
from . import response

from .fields import ConnectionType, ResponseType
from .message import Action, Entity, Field, Header, Request, System, Transaction
from .action import ActionDefinition
from .response import DataColumn, DataTable, Response, ResponseFile


"""
LIMSML Protocol Layer
=====================

This package defines the LIMSML message model and its XML encoding. It
provides the entity/action/field tree, the header cipher, and the decoder
for server replies.

The protocol layer MUST NOT depend on any transport implementation
(e.g. SOAP over HTTP).

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Client (limsml.client)
    Session state machine and action dispatch
    - login()
    - execute()
    - dispatch()
    - logout()

    │
    ▼
Action Definitions (action.py)
    Discovered remote commands
    - parameter filtering
    - validation
    - Transaction construction

    │
    ▼
Message Model (message.py, factory.py)
    Field, Action, Entity, System, Transaction, Header, Request
    Requests encrypt their header on construction (cipher.py)

    │
    ▼
Codec (wire.py, response.py)
    Maps Message <-> attributed tree <-> XML text
    Decodes replies into parameters, scalars, tables, files, errors

    │
    ▼
Field Vocabulary (fields.py)
    Canonical names, namespaces and enumerations

---------------------------------------------------------------------

Below the Protocol Layer (for context)
--------------------------------------

Transport Layer (limsml.transport)
    Moves XML text
    - SOAP over HTTP

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
