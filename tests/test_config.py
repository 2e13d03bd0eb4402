import limsml
import pytest


def test_defaults():

    assert limsml.config.get('url') == 'http://localhost:56104/'
    assert limsml.config.get('username') == 'SYSTEM'
    assert limsml.config.get('password') == ''
    assert limsml.config.get('timeout') is None
    assert limsml.config.get('debug') is False

    with pytest.raises(KeyError):
        limsml.config.get('nonexistent')


def test_precedence(monkeypatch):

    monkeypatch.setenv('LIMSML_URL', 'http://from.environment/')
    assert limsml.config.get('url') == 'http://from.environment/'
    assert limsml.config.get('url', 'http://explicit/') == 'http://explicit/'

    monkeypatch.setenv('LIMSML_PASSWORD', 'environment')
    assert limsml.config.get('password', '') == ''


def test_conversions(monkeypatch):

    monkeypatch.setenv('LIMSML_DEBUG', 'yes')
    assert limsml.config.get('debug') is True

    for value in ('false', 'No', '0', 'off', ''):
        monkeypatch.setenv('LIMSML_DEBUG', value)
        assert limsml.config.get('debug') is False

    monkeypatch.setenv('LIMSML_TIMEOUT', '2.5')
    assert limsml.config.get('timeout') == 2.5

    monkeypatch.setenv('LIMSML_TIMEOUT', '0')
    assert limsml.config.get('timeout') is None

    assert limsml.config.get('timeout', 10) == 10.0


def test_client_settings(monkeypatch):

    monkeypatch.setenv('LIMSML_USERNAME', 'ANALYST')
    monkeypatch.setenv('LIMSML_URL', 'http://lims.invalid/')
    monkeypatch.setenv('LIMSML_TIMEOUT', '30')

    client = limsml.Client()
    assert client.username == 'ANALYST'
    assert client.url == 'http://lims.invalid/'
    assert client.transport.url == 'http://lims.invalid/'
    assert client.transport.timeout == 30.0


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
