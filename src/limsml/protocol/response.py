""" Decoding of LIMSML responses. A :class:`Response` is built from the
    attributed tree of a server reply and exposes what the reply carried:
    header parameters (notably the session token), per-command scalar values
    from system transactions, tabular datasets and files from data
    transactions, and the flattened list of server errors.

    The server omits array wrapping when exactly one sibling is present, so
    every repeated element is normalized with :func:`wire.listify` before it
    is processed. Optional structures that are missing are treated as empty
    rather than as errors.
"""

import base64
import binascii
import logging

from ..errors import DecodeError
from . import wire

logger = logging.getLogger(__name__)


# Base64 file payloads shorter than this many characters are decoded to text
# automatically; longer payloads are left encoded and can be decoded on
# demand with ResponseFile.content().

MAX_BASE64_DECODE = 524288

# Column types in the embedded schema carry a three character namespace
# prefix, for example 'xs:boolean'.

_TYPE_PREFIX = 3


class DataColumn:
    """ Description of one column of a :class:`DataTable`.
    """

    def __init__(self, name, caption=None, type='string'):
        self.name = name
        self.caption = caption
        self.type = type


    def __repr__(self):
        return 'DataColumn(%r, %r, %r)' % (self.name, self.caption, self.type)


# end of class DataColumn



class DataTable:
    """ A decoded dataset table: the *columns* declared in the schema, keyed
        by lower-case column name, and the decoded *rows*, each a dictionary
        keyed the same way.

        :ivar row_count: The number of rows present in the payload.
    """

    def __init__(self, columns=None):
        self.columns = dict() if columns is None else columns
        self.row_count = 0
        self.rows = list()


    def __repr__(self):
        return 'DataTable(columns=%r, row_count=%d)' % (list(self.columns), self.row_count)


    def __iter__(self):
        return iter(self.rows)


    def __len__(self):
        return len(self.rows)


# end of class DataTable



class ResponseFile:
    """ A file returned by a data transaction. The *data* is always the raw
        base64 payload; *text* is only populated for payloads small enough
        to be decoded eagerly.
    """

    def __init__(self, filename, data, text=None):
        self.filename = filename
        self.data = data
        self.text = text


    def __repr__(self):
        return 'ResponseFile(%r, %d characters)' % (self.filename, len(self.data))


    def content(self):
        """ Decode the base64 payload and return the raw bytes.
        """

        return base64.b64decode(self.data)


# end of class ResponseFile



class Response:
    """ The decoded reply to a :class:`limsml.protocol.message.Request`.

        :ivar parameters: Header parameters, keyed by lower-case name.
        :ivar system: Scalar results of system transactions, keyed by the
            lower-case command name.
        :ivar tables: :class:`DataTable` instances, keyed by lower-case name.
        :ivar files: :class:`ResponseFile` instances, in order of appearance.
        :ivar errors: Server errors as 'description (code)' strings,
            flattened depth-first.
        :ivar raw: The attributed tree the response was decoded from.
    """

    def __init__(self, tree):

        self.parameters = dict()
        self.system = dict()
        self.tables = dict()
        self.files = list()
        self.errors = list()
        self.raw = tree

        if not isinstance(tree, dict) or 'limsml' not in tree:
            raise DecodeError('response is not a LIMSML document')

        limsml = tree['limsml']
        if not isinstance(limsml, dict):
            limsml = dict()

        for parameter in wire.listify(_path(limsml, 'header', 'parameter')):
            self._process_parameter(parameter)

        for transaction in wire.listify(_path(limsml, 'body', 'transaction')):
            self._process_transaction(transaction)

        for error in wire.listify(_path(limsml, 'errors', 'error')):
            self._process_error(error)


    def __repr__(self):
        return 'Response(parameters=%r, system=%r, tables=%r, files=%r, errors=%r)' % (
                list(self.parameters), self.system, list(self.tables), self.files, self.errors)


    @classmethod
    def from_xml(cls, text):
        return cls(wire.loads(text))


    @property
    def session(self):
        """ The session token issued by the server, if any.
        """

        return self.parameters.get('session')


    def _process_parameter(self, parameter):
        name = wire.attributes(parameter).get('name')
        if name is None:
            return

        self.parameters[name.lower()] = wire.text(parameter)


    def _process_transaction(self, transaction):

        if not isinstance(transaction, dict):
            return

        if 'system' in transaction:
            self._process_system(transaction['system'])
        elif 'data' in transaction:
            self._process_data(transaction['data'])


    def _process_system(self, system):
        """ A system transaction returns a single value: the text of the
            first field of the root entity, keyed by the command that
            produced it. Some actions, ping in particular, return no fields
            at all; their result is recorded as True.
        """

        entity = _path(system, 'entity')
        command = wire.text(_path(entity, 'actions', 'action', 'command'))

        if not command:
            logger.debug('system response without a command, ignored')
            return

        command = command.lower()
        fields = wire.listify(_path(entity, 'fields', 'field'))

        if len(fields) == 0:
            self.system[command] = True
            return

        value = wire.text(fields[0])
        self.system[command] = '' if value is None else value


    def _process_data(self, data):

        dataset = _path(data, 'ADODataSet', 'NewDataSet')
        if isinstance(dataset, dict):
            self._process_dataset(dataset)

        for file in wire.listify(_path(data, 'DataFile', 'file')):
            self._process_file(file)


    def _process_dataset(self, dataset):

        schemas = _path(dataset, 'xs:schema', 'xs:element', 'xs:complexType', 'xs:choice', 'xs:element')

        # Row elements are named after their table; match them regardless of
        # case, since the schema and the payload do not always agree.

        payload = dict()
        for key, value in dataset.items():
            if key.startswith(wire.ATTRIBUTE) or key == 'xs:schema':
                continue
            payload[key.lower()] = value

        for schema in wire.listify(schemas):
            table_name = wire.attributes(schema).get('name')
            columns = _path(schema, 'xs:complexType', 'xs:sequence', 'xs:element')

            if table_name is None or columns is None:
                continue

            name = table_name.lower()
            table = self._process_schema(columns)
            self.tables[name] = table

            rows = wire.listify(payload.get(name))
            table.row_count = len(rows)

            for row in rows:
                table.rows.append(self._process_row(table, row))


    def _process_schema(self, columns):

        table = DataTable()

        for column in wire.listify(columns):
            attributes = wire.attributes(column)
            name = attributes.get('name')
            if name is None:
                continue

            type = attributes.get('type', '')[_TYPE_PREFIX:]
            caption = attributes.get('msdata:Caption')
            table.columns[name.lower()] = DataColumn(name, caption, type)

        return table


    def _process_row(self, table, row):

        values = dict()
        if isinstance(row, dict):
            for key, value in row.items():
                if key.startswith(wire.ATTRIBUTE):
                    continue
                values[key.lower()] = wire.text(value)

        decoded = dict()
        for key, column in table.columns.items():
            decoded[key] = wire.string_to_value(values.get(key), column.type)

        return decoded


    def _process_file(self, file):

        filename = wire.text(_path(file, 'filename'))
        data = wire.text(_path(file, 'binary')) or ''

        text = None
        if len(data) < MAX_BASE64_DECODE:
            try:
                text = base64.b64decode(data).decode('utf-8', errors='replace')
            except binascii.Error as e:
                logger.warning('could not decode file %r: %s', filename, e)

        self.files.append(ResponseFile(filename, data, text))


    def _process_error(self, error):
        """ Record an error, then any errors nested beneath it, depth-first.
        """

        description = wire.text(_path(error, 'description'))
        code = wire.text(_path(error, 'code'))

        if description and code:
            self.errors.append('%s (%s)' % (description, code))
        elif description or code:
            self.errors.append(description or code)

        for child in wire.listify(_path(error, 'errors', 'error')):
            self._process_error(child)


# end of class Response



def _path(node, *keys):
    """ Walk down an attributed tree by element name, taking the first of
        any repeated siblings along the way. Returns None if any step along
        the path is missing.
    """

    for key in keys:
        if isinstance(node, list):
            node = node[0] if node else None
        if not isinstance(node, dict):
            return None
        node = node.get(key)

    return node


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
