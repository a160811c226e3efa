import hashlib

BASE58_ALPHABET = '123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz'


def base58encode(data):
    """Bitcoin-style base58 of a byte string."""
    num = int.from_bytes(data, 'big')
    encoded = ''
    while num > 0:
        num, rem = divmod(num, 58)
        encoded = BASE58_ALPHABET[rem] + encoded
    # Preserve leading zero bytes
    pad = len(data) - len(data.lstrip(b'\0'))
    return BASE58_ALPHABET[0] * pad + encoded


def content_address(text):
    """
    Deterministic stand-in for an IPFS CIDv0: 'Qm' followed by the base58
    SHA-256 of the content. Nothing is pinned anywhere.
    """
    digest = hashlib.sha256(text.encode('utf-8')).digest()
    return 'Qm' + base58encode(digest)[:44]
