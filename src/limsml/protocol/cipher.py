""" Key derivation and encryption for LIMSML request headers.

    The username, and either the password or the session token, are encrypted
    with a key derived from the serialized transactions of the request they
    accompany. The scheme is a legacy one and is cryptographically weak: the
    key is an MD5 digest truncated to 40 significant bits, and the cipher is
    RC4 with no nonce. It must be reproduced bit-for-bit, otherwise the server
    rejects the request; it is not a design to copy into new protocols.
"""

import hashlib

from Crypto.Cipher import ARC4


# This is the usual CRC-32 polynomial, but it is applied here without being
# bit-reversed, even though the register shifts to the right. The result is
# not a standard CRC-32, and zlib.crc32() cannot be substituted.

polynomial = 79764919

key_length = 16
significant_bytes = 5


def checksum(data):
    """ Compute the LIMSML variant of CRC-32 over the supplied *data* bytes.
        The result is an unsigned 32-bit integer.
    """

    crc = 0xFFFFFFFF

    for byte in data:
        temp = (crc ^ byte) & 0xFF
        for bit in range(8):
            if temp & 1:
                temp = (temp >> 1) ^ polynomial
            else:
                temp = temp >> 1
        crc = (crc >> 8) ^ temp

    return crc ^ 0xFFFFFFFF



def checksum_text(payload):
    """ Return the checksum of the *payload* string as four upper-case hex
        byte pairs joined by hyphens, most significant first; for example,
        'A1-02-FF-03'.
    """

    # Each character contributes the low byte of its UTF-16 code unit(s).
    # For ASCII payloads this is simply the ASCII encoding.

    data = payload.encode('utf-16-le')[::2]
    crc = checksum(data)
    crc = crc.to_bytes(4, 'big')

    return '-'.join('%02X' % (byte) for byte in crc)



def create_key(payload):
    """ Derive the 128-bit header key for the given *payload*, which is the
        concatenated XML of every transaction in a request. Only the first
        five bytes of the MD5 digest are kept; the remainder are zeroed.
    """

    text = checksum_text(payload)
    digest = hashlib.md5(text.encode('ascii')).digest()

    key = digest[:significant_bytes]
    key = key + bytes(key_length - significant_bytes)
    return key



def encrypt(key, plaintext):
    """ Encrypt *plaintext* as UTF-16-LE with RC4 and return lower-case hex.
        An empty or missing *plaintext* yields an empty string rather than
        an encryption of nothing.
    """

    if not plaintext:
        return ''

    cipher = ARC4.new(key)
    ciphertext = cipher.encrypt(plaintext.encode('utf-16-le'))
    return ciphertext.hex()



def decrypt(key, ciphertext):
    """ The inverse of :func:`encrypt`. RC4 is symmetric, so this consumes
        the same keystream to recover the original string.
    """

    if not ciphertext:
        return ''

    cipher = ARC4.new(key)
    plaintext = cipher.decrypt(bytes.fromhex(ciphertext))
    return plaintext.decode('utf-16-le')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
