import pytest

import limsml
import replies

from limsml.protocol import cipher, wire


def header_of(xml):
    """ Return the header parameters of a sent request as a dictionary.
    """

    tree = wire.loads(xml)
    parameters = wire.listify(tree['limsml']['header']['parameter'])
    return dict((p['@name'], p.get('#text')) for p in parameters)


def test_not_logged_in(transport):

    client = limsml.Client('SYSTEM', 'secret', transport=transport)
    assert client.state is limsml.SessionState.DISCONNECTED
    assert client.session is None

    with pytest.raises(limsml.errors.NotLoggedInError):
        client.dispatch('personnel', 'find')

    with pytest.raises(limsml.errors.NotLoggedInError):
        client.execute(limsml.protocol.factory.ping())

    assert transport.sent == []


def test_login(client, transport):

    assert client.state is limsml.SessionState.ACTIVE
    assert client.session == replies.SESSION
    assert len(transport.sent) == 1

    header = header_of(transport.sent[0])
    assert list(header) == ['USER', 'PASSWORD', 'CONNECT']
    assert header['CONNECT'] == 'StartSession'

    # The key is derived from the two metadata queries that accompany the
    # login; rebuilding them here must yield the same key.

    find = limsml.protocol.ActionDefinition('find', 'data')
    transactions = [find.create_transaction({'pagesize': 1000}, table) for table in ('limsml_entity_action', 'limsml_entity_param')]
    payload = ''.join(t.to_xml() for t in transactions)
    key = cipher.create_key(payload)

    assert cipher.decrypt(key, header['USER']) == 'SYSTEM'
    assert cipher.decrypt(key, header['PASSWORD']) == 'secret    '


def test_login_populates_registry(client):

    registry = client.registry
    assert limsml.registry.ActionKey('personnel', 'find') in registry
    assert limsml.registry.ActionKey('generic', 'ping') in registry

    authorise = registry.get(limsml.registry.ActionKey('sample', 'authorise'))
    assert authorise.required_parameters == frozenset(['id_numeric'])
    assert authorise.all_parameters == frozenset(['id_numeric', 'comment'])
    assert authorise.return_type is limsml.protocol.ResponseType.SYSTEM

    find = registry.get(limsml.registry.ActionKey('personnel', 'find'))
    assert find.return_type is limsml.protocol.ResponseType.DATA

    assert limsml.registry.ActionKey('sample', 'login') in registry
    assert sorted(client.commands) == ['authorise', 'find', 'login', 'ping']
    assert client.action('find') == [find]


def test_login_rejected(transport):

    transport.queue(replies.document(errors=replies.error('Invalid password', 1)))
    client = limsml.Client('SYSTEM', 'wrong', transport=transport)

    with pytest.raises(limsml.errors.AuthenticationError) as caught:
        client.login()

    assert str(caught.value) == 'Invalid password (1)'
    assert client.state is limsml.SessionState.DISCONNECTED
    assert client.session is None

    # No session, and no explanation either.

    transport.queue(replies.document())

    with pytest.raises(limsml.errors.AuthenticationError) as caught:
        client.login()

    assert str(caught.value) == 'login failed'


def test_login_transport_failure(transport):

    transport.queue(limsml.transport.TransportTimeout('no response'))
    client = limsml.Client('SYSTEM', 'secret', transport=transport)

    with pytest.raises(limsml.transport.TransportTimeout):
        client.login()

    assert client.state is limsml.SessionState.DISCONNECTED


def test_dispatch(client, transport):

    transport.queue(replies.document(body=replies.table('PERSONNEL', (('IDENTITY', 'string'),), (('ADMIN',),))))

    response = client.dispatch('personnel', 'find', {'pagesize': 10, 'bogus': 1})
    assert response.tables['personnel'].rows == [{'identity': 'ADMIN'}]

    sent = transport.sent[-1]
    assert '<parameter name="PAGESIZE">10</parameter>' in sent
    assert 'BOGUS' not in sent
    assert '<entity type="PERSONNEL">' in sent
    assert '<system response_type="data">' in sent

    header = header_of(sent)
    assert list(header) == ['USER', 'SESSION', 'CONNECT']
    assert header['CONNECT'] == 'ContinueSession'


def test_dispatch_validation(client, transport):

    sent = len(transport.sent)

    with pytest.raises(limsml.errors.ValidationError) as caught:
        client.dispatch('sample', 'authorise', {'comment': 'ok'})

    assert 'id_numeric' in str(caught.value)

    with pytest.raises(limsml.errors.ValidationError):
        client.dispatch('personnel', 'authorise', {'id_numeric': 1})

    with pytest.raises(limsml.errors.ValidationError):
        client.dispatch('sample', 'nonexistent')

    # None of the above should have reached the server, and the session
    # remains usable afterward.

    assert len(transport.sent) == sent
    assert client.state is limsml.SessionState.ACTIVE


def test_dispatch_sample_login(client, transport):

    transport.queue(replies.document(body=replies.system('LOGIN', (('ID_NUMERIC', '17'),), entity='SAMPLE')))

    response = client.dispatch('sample', 'login', {})
    assert response.system == {'login': '17'}

    sent = transport.sent[-1]
    assert '<entity type="SAMPLE">' in sent
    assert '<command>LOGIN</command>' in sent
    assert header_of(sent)['CONNECT'] == 'ContinueSession'
    assert client.state is limsml.SessionState.ACTIVE
    assert client.session == replies.SESSION

    transport.queue(replies.document(body=replies.system('LOGIN', (('ID_NUMERIC', '18'),), entity='SAMPLE')))
    assert client.commands['login']('sample').system == {'login': '18'}


def test_generic_fallback(client, transport):

    transport.queue(replies.document(body=replies.system('PING')))

    response = client.commands['ping']({'message': 'hello'})
    assert response.system == {'ping': True}

    sent = transport.sent[-1]
    assert '<entity type="SYSTEM">' in sent
    assert '<parameter name="MESSAGE">hello</parameter>' in sent


def test_commands_calling_convention(client, transport):

    reply = replies.document(body=replies.system('AUTHORISE', (('RETURN', 'done'),), entity='SAMPLE'))

    transport.queue(reply)
    response = client.commands['authorise']({'id_numeric': 42}, 'sample')
    assert response.system['authorise'] == 'done'

    entity = limsml.protocol.Entity('sample', fields={'id_numeric': 42})
    transport.queue(reply)
    client.commands['authorise']({'id_numeric': 42}, entity)

    assert '<field id="ID_NUMERIC" direction="in" datatype="Text">42</field>' in transport.sent[-1]
    assert entity.action is None

    with pytest.raises(TypeError):
        client.commands['find'] = None


def test_execute_batch(client, transport):

    factory = limsml.protocol.factory
    transactions = [factory.ping('one'), factory.ping('two')]

    transport.queue(replies.document(body=replies.system('PING') + replies.system('PING')))
    response = client.execute(transactions)

    assert response.system['ping'] is True
    assert transport.sent[-1].count('<transaction>') == 2


def test_logout(client, transport):

    transport.queue(replies.document())

    result = client.logout()
    assert result.ok
    assert result.status is limsml.LogoutStatus.OK
    assert client.session is None
    assert client.state is limsml.SessionState.DISCONNECTED

    sent = transport.sent[-1]
    assert header_of(sent)['CONNECT'] == 'EndSession'
    assert '<entity type="USER">' in sent
    assert '<command>LOGOUT</command>' in sent

    with pytest.raises(limsml.errors.NotLoggedInError):
        client.dispatch('personnel', 'find')

    result = client.logout()
    assert result.status is limsml.LogoutStatus.NOT_LOGGED_IN


def test_logout_failure(client, transport):

    transport.queue(replies.document(errors=replies.error('Session busy', 42)))

    result = client.logout()
    assert result.status is limsml.LogoutStatus.FAILED
    assert result.reason == 'Session busy (42)'
    assert client.session == replies.SESSION
    assert client.state is limsml.SessionState.ACTIVE

    transport.queue(limsml.transport.TransportConnectionError('connection refused'))

    result = client.logout()
    assert result.status is limsml.LogoutStatus.FAILED
    assert result.reason == 'connection refused'
    assert client.session == replies.SESSION


def test_logout_unexpected_error(client, transport):

    transport.queue(RuntimeError('transport bug'))

    with pytest.raises(RuntimeError):
        client.logout()

    assert client.state is limsml.SessionState.ACTIVE
    assert client.session == replies.SESSION

    transport.queue(replies.document())
    assert client.logout().ok
    assert client.state is limsml.SessionState.DISCONNECTED


def test_relogin_keeps_registry(client, transport):

    transport.queue(replies.document())
    client.logout()

    registry = len(client.registry)

    transport.queue(replies.login(session='E5F6', actions=(), parameters=()))
    client.login()

    assert client.session == 'E5F6'
    assert len(client.registry) == registry


def test_begin_login(transport):

    transport.queue(replies.login())

    client = limsml.login('SYSTEM', 'secret', transport=transport)
    assert isinstance(client, limsml.Client)
    assert client.state is limsml.SessionState.ACTIVE

    client.close()
    assert transport.closed


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
