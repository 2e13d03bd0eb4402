""" Connection settings for a LIMSML client. Every setting has a built-in
    default, which can be overridden by an environment variable, which can
    in turn be overridden by a value passed explicitly by the caller.

    ==========  =================  ==========================
    Setting     Environment        Default
    ==========  =================  ==========================
    url         LIMSML_URL         http://localhost:56104/
    username    LIMSML_USERNAME    SYSTEM
    password    LIMSML_PASSWORD    (empty)
    timeout     LIMSML_TIMEOUT     None (wait indefinitely)
    debug       LIMSML_DEBUG       False
    ==========  =================  ==========================
"""

import os


defaults = dict()
defaults['url'] = 'http://localhost:56104/'
defaults['username'] = 'SYSTEM'
defaults['password'] = ''
defaults['timeout'] = None
defaults['debug'] = False

environment = dict()
environment['url'] = 'LIMSML_URL'
environment['username'] = 'LIMSML_USERNAME'
environment['password'] = 'LIMSML_PASSWORD'
environment['timeout'] = 'LIMSML_TIMEOUT'
environment['debug'] = 'LIMSML_DEBUG'

untruths = set((None, False, 0, 'false', 'f', 'no', 'n', 'off', 'disable', '0', ''))


def get(name, value=None):
    """ Return the effective value of the setting *name*. An explicit *value*
        other than None always wins; otherwise the environment is consulted,
        and finally the built-in default.
    """

    try:
        default = defaults[name]
    except KeyError:
        raise KeyError('unknown LIMSML setting: ' + repr(name))

    if value is None:
        value = os.environ.get(environment[name])

    if value is None:
        return default

    if name == 'timeout':
        return timeout(value)
    if name == 'debug':
        return boolean(value)

    return value



def boolean(value):
    """ Interpret *value* as a boolean, accepting the usual string spellings
        of false.
    """

    if isinstance(value, str):
        value = value.strip().lower()

    return value not in untruths



def timeout(value):
    """ Interpret *value* as a timeout in seconds; an empty value, or zero,
        means no timeout.
    """

    if isinstance(value, str):
        value = value.strip()
        if value == '':
            return None

    value = float(value)

    if value <= 0:
        return None

    return value


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
