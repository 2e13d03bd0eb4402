import pytest

import limsml
import replies


class FakeTransport(limsml.transport.Transport):
    """ Transport double: records every request sent, and answers with the
        queued replies in order. A queued exception is raised instead of
        being returned.
    """

    def __init__(self, *queued):
        self.sent = list()
        self.queued = list(queued)
        self.closed = False

    def queue(self, reply):
        self.queued.append(reply)

    def send(self, xml):
        self.sent.append(xml)

        if len(self.queued) == 0:
            raise AssertionError('unexpected request: ' + xml)

        reply = self.queued.pop(0)
        if isinstance(reply, Exception):
            raise reply

        return reply

    def close(self):
        self.closed = True


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    """ A client logged in against the fake server's standard metadata.
    """

    transport.queue(replies.login())

    client = limsml.Client('SYSTEM', 'secret', 'http://lims.invalid/', transport=transport, debug=True)
    client.login()
    return client


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for variable in limsml.config.environment.values():
        monkeypatch.delenv(variable, raising=False)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
