""" A class representation of LIMSML messages: the entity/action/field tree
    that carries a request, and the transaction, system and header layers
    that wrap it for the wire.

    Names are lower-case in memory and upper-case on the wire. The conversion
    happens once in each direction: in the constructors here when a node is
    built (or rebuilt from parsed XML), and in :func:`Node.to_tree` when it is
    serialized.
"""

from . import cipher
from . import fields
from . import wire
from .fields import ConnectionType, ResponseType


class Node:
    """ Common behaviour for anything that can be rendered as LIMSML XML.
        Subclasses provide the element *tag* and the element content via
        :func:`content`; the *root* flag indicates whether the node is the
        top of a document, which is the only place the XML declaration and
        namespaces appear.
    """

    tag = None

    def content(self, root=False):
        raise NotImplementedError('subclasses must implement content()')


    def to_tree(self, root=True):
        """ Return the attributed tree for this node, suitable for
            :func:`limsml.protocol.wire.dumps`.
        """

        return {self.tag: self.content(root)}


    def to_xml(self, pretty=False, root=True):
        return wire.dumps(self.to_tree(root), pretty=pretty, declaration=root)


# end of class Node



class Field(Node):
    """ A single datum attached to an :class:`Entity`. The *id* is stored
        lower-case; the *attributes* always include a direction and a
        datatype, defaulting to 'in' and 'Text' respectively.
    """

    tag = 'field'

    def __init__(self, id, value=None, attributes=None):

        self.id = str(id).lower()
        self.value = value

        attributes = dict() if attributes is None else dict(attributes)
        attributes.setdefault(fields.DIRECTION, fields.DIRECTION_IN)
        attributes.setdefault(fields.DATATYPE, fields.DATATYPE_TEXT)
        self.attributes = attributes


    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented

        return (self.id, wire.value_to_string(self.value), self.attributes) == \
               (other.id, wire.value_to_string(other.value), other.attributes)


    def __repr__(self):
        return 'Field(%r, %r, %r)' % (self.id, self.value, self.attributes)


    def content(self, root=False):

        content = dict()
        content['@id'] = self.id.upper()

        for name, value in self.attributes.items():
            content['@' + name] = wire.value_to_string(value)

        content['#text'] = wire.value_to_string(self.value)
        return content


    @classmethod
    def from_tree(cls, node):
        attributes = wire.attributes(node)
        id = attributes.pop('id', '')
        return cls(id, wire.text(node), attributes)


# end of class Field



class Action(Node):
    """ A named remote *command*, with optional *parameters*. Both the
        command and the parameter names are case-insensitive, stored
        lower-case and transmitted upper-case.
    """

    tag = 'action'

    def __init__(self, command, parameters=None):

        self.command = str(command).lower()
        self.parameters = dict()

        if parameters:
            for name, value in parameters.items():
                self.parameters[str(name).lower()] = value


    def __eq__(self, other):
        if not isinstance(other, Action):
            return NotImplemented

        mine = dict((k, wire.value_to_string(v)) for k, v in self.parameters.items())
        theirs = dict((k, wire.value_to_string(v)) for k, v in other.parameters.items())
        return self.command == other.command and mine == theirs


    def __repr__(self):
        return 'Action(%r, %r)' % (self.command, self.parameters)


    def content(self, root=False):

        content = dict()
        content['command'] = self.command.upper()

        if self.parameters:
            parameters = list()
            for name, value in self.parameters.items():
                parameter = dict()
                parameter['@name'] = name.upper()
                parameter['#text'] = wire.value_to_string(value)
                parameters.append(parameter)

            content['parameter'] = parameters

        return content


    @classmethod
    def from_tree(cls, node):

        command = wire.text(node.get('command')) or ''
        parameters = dict()

        for parameter in wire.listify(node.get('parameter')):
            name = wire.attributes(parameter).get('name', '')
            parameters[name] = wire.text(parameter)

        return cls(command, parameters)


# end of class Action



class Entity(Node):
    """ A typed node in the request tree, roughly a record of a given table.
        An entity may carry an :class:`Action`, an ordered set of
        :class:`Field` instances, and any number of child entities. Children
        are owned by their parent; there is no back-reference.

        The *fields* may be supplied as a dictionary of plain values, a
        dictionary of {'value': ..., attribute: ...} dictionaries, a
        dictionary of :class:`Field` instances, or a sequence of
        :class:`Field` instances. They are always stored as an ordered
        dictionary of :class:`Field` instances keyed by lower-case id.
    """

    tag = 'entity'

    def __init__(self, type, action=None, fields=None, children=None):

        self.type = str(type).lower()
        self.action = action
        self.fields = _normalize_fields(fields)
        self.children = list(children) if children else list()


    def __repr__(self):
        return 'Entity(%r, action=%r, fields=%r, children=%r)' % (
                self.type, self.action, list(self.fields.values()), self.children)


    def with_action(self, action):
        """ Return a shallow copy of this entity carrying the given *action*.
            The original entity is not modified.
        """

        return Entity(self.type, action, list(self.fields.values()), self.children)


    def content(self, root=False):

        # The actions, fields, and children wrappers are always present; an
        # empty string renders them as empty elements rather than omitting
        # them entirely.

        content = dict()
        content['@type'] = self.type.upper()

        if self.action is None:
            content['actions'] = ''
        else:
            content['actions'] = {'action': self.action.content()}

        if self.fields:
            content['fields'] = {'field': [f.content() for f in self.fields.values()]}
        else:
            content['fields'] = ''

        if self.children:
            content['children'] = {'entity': [c.content() for c in self.children]}
        else:
            content['children'] = ''

        return content


    @classmethod
    def from_tree(cls, node):

        type = wire.attributes(node).get('type', '')

        action = None
        actions = node.get('actions')
        if isinstance(actions, dict):
            found = wire.listify(actions.get('action'))
            if found:
                action = Action.from_tree(found[0])

        field_list = list()
        field_nodes = node.get('fields')
        if isinstance(field_nodes, dict):
            for field in wire.listify(field_nodes.get('field')):
                field_list.append(Field.from_tree(field))

        children = list()
        child_nodes = node.get('children')
        if isinstance(child_nodes, dict):
            for child in wire.listify(child_nodes.get('entity')):
                children.append(cls.from_tree(child))

        return cls(type, action, field_list, children)


# end of class Entity



class System(Node):
    """ Wraps the root :class:`Entity` of a transaction, and declares how the
        reply should be interpreted: a single system value, or data.
    """

    tag = 'system'

    def __init__(self, response_type, entity):
        self.response_type = ResponseType.parse(response_type)
        self.entity = entity


    def content(self, root=False):

        content = dict()
        content['@response_type'] = self.response_type.value

        if root:
            content['@xmlns'] = fields.XMLNS

        content['entity'] = self.entity.content()
        return content


# end of class System



class Transaction(Node):
    """ The unit of execution. A :class:`Request` carries one or more
        transactions, each of which produces its own reply segment.
    """

    tag = 'transaction'

    def __init__(self, system):
        self.system = system


    def __repr__(self):
        return 'Transaction(' + self.command + ')'


    @property
    def command(self):
        """ The 'entity.command' identity of this transaction, for logging.
        """

        entity = self.system.entity
        action = entity.action
        command = '' if action is None else action.command
        return entity.type + '.' + command


    def content(self, root=False):

        content = dict()

        if root:
            content['@xmlns:xsd'] = fields.XMLNS_XSD
            content['@xmlns:xsi'] = fields.XMLNS_XSI

        content['system'] = self.system.content(root)
        return content


    @classmethod
    def from_tree(cls, node):
        system = node['system']
        response_type = wire.attributes(system).get('response_type', ResponseType.SYSTEM.value)
        entity = Entity.from_tree(system['entity'])
        return cls(System(response_type, entity))


    @classmethod
    def from_xml(cls, text):
        tree = wire.loads(text)
        return cls.from_tree(tree[cls.tag])


# end of class Transaction



class Header:
    """ Connection details for a :class:`Request`. Which credential is
        populated depends on the *connect* mode: a password for StartSession,
        a session token for ContinueSession and EndSession, and neither for
        Proxy. Any other combination is rejected here.
    """

    def __init__(self, user, password=None, session=None, connect=ConnectionType.START_SESSION):

        connect = ConnectionType(connect)

        if connect == ConnectionType.START_SESSION:
            if session is not None:
                raise ValueError('a StartSession header does not carry a session')

        elif connect in (ConnectionType.CONTINUE_SESSION, ConnectionType.END_SESSION):
            if password is not None:
                raise ValueError('a %s header does not carry a password' % (connect.value))
            if not session:
                raise ValueError('a %s header requires a session' % (connect.value))

        else:
            if password is not None or session is not None:
                raise ValueError('a Proxy header carries neither password nor session')

        self.user = user
        self.password = password
        self.session = session
        self.connect = connect


    def parameters(self):
        """ Return the (name, value) pairs of the header, in wire order.
        """

        parameters = list()
        parameters.append((fields.USER, self.user))

        if self.connect == ConnectionType.START_SESSION:
            parameters.append((fields.PASSWORD, self.password))
        elif self.connect in (ConnectionType.CONTINUE_SESSION, ConnectionType.END_SESSION):
            parameters.append((fields.SESSION, self.session))

        parameters.append((fields.CONNECT, self.connect.value))
        return parameters


# end of class Header



class Request(Node):
    """ A complete LIMSML request: a :class:`Header` and one or more
        :class:`Transaction` instances. The header is encrypted in place as
        part of construction, with a key derived from the serialized
        transactions; a request is therefore built fresh for every call.

        :ivar encrypted: True once the header has been encrypted.
    """

    tag = 'limsml'

    def __init__(self, header, transactions):

        if isinstance(transactions, Transaction):
            transactions = [transactions]

        transactions = list(transactions)

        if len(transactions) == 0:
            raise ValueError('a request requires at least one transaction')

        self.header = header
        self.transactions = transactions
        self.encrypted = False

        self.encrypt_header()


    def __repr__(self):
        commands = ', '.join(t.command for t in self.transactions)
        return 'Request(%s: %s)' % (self.header.connect.value, commands)


    def payload(self):
        """ The keyed material for the header cipher: every transaction,
            serialized as a standalone document, concatenated in order.
        """

        return ''.join(t.to_xml() for t in self.transactions)


    def encrypt_header(self):
        """ Encrypt the header credentials in place. This is a one-shot
            operation; encrypting an already encrypted header would make the
            request unusable, and is treated as an error.
        """

        if self.encrypted:
            raise RuntimeError('request header is already encrypted')

        key = cipher.create_key(self.payload())
        header = self.header

        header.user = cipher.encrypt(key, header.user)

        if header.connect == ConnectionType.START_SESSION:
            password = header.password or ''
            password = password.ljust(fields.PASSWORD_LENGTH)
            header.password = cipher.encrypt(key, password)

        elif header.connect in (ConnectionType.CONTINUE_SESSION, ConnectionType.END_SESSION):
            header.session = cipher.encrypt(key, header.session)

        self.encrypted = True


    def content(self, root=False):

        content = dict()

        if root:
            content['@xmlns:xsd'] = fields.XMLNS_XSD
            content['@xmlns:xsi'] = fields.XMLNS_XSI
            content['@xmlns'] = fields.XMLNS

        parameters = list()
        for name, value in self.header.parameters():
            parameter = dict()
            parameter['@name'] = name
            parameter['#text'] = wire.value_to_string(value)
            parameters.append(parameter)

        content['header'] = {'parameter': parameters}
        content['body'] = {'transaction': [t.content(False) for t in self.transactions]}
        return content


# end of class Request



def _normalize_fields(supplied):
    """ Convert any of the accepted field representations into an ordered
        dictionary of :class:`Field` instances keyed by lower-case id.
    """

    normalized = dict()

    if not supplied:
        return normalized

    if isinstance(supplied, dict):
        items = supplied.items()
    else:
        items = ((field.id, field) for field in supplied)

    for id, value in items:
        if isinstance(value, Field):
            if value.id == str(id).lower():
                field = value
            else:
                field = Field(id, value.value, value.attributes)
        elif isinstance(value, dict):
            attributes = dict(value)
            field_value = attributes.pop('value', None)
            field = Field(id, field_value, attributes)
        else:
            field = Field(id, value)

        normalized[field.id] = field

    return normalized


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
