"""Token generation utility

This module provides a helper function for generating short, random,
URL-safe tokens for new links.

Functions:
    generate_token(length=Token.LENGTH, alphabet=Token.ALPHABET):
        Generate a random token suitable for use as a URL slug.

Example:
    >>> from linkgate.utils import generate_token
    >>> generate_token()
    'Kq7mZp2xRt'
"""

import secrets

from linkgate.constants import Token


def generate_token(length: int = Token.LENGTH, alphabet: str = Token.ALPHABET) -> str:
    """Generate a random URL-safe token.

    Tokens are drawn with `secrets`, so they are not predictable from previously
    issued ones. The default alphabet leaves out look-alike characters
    (0/O, 1/l/I) to keep tokens readable when copied by hand.

    Args:
        length (int, optional):
            Number of characters in the token. Defaults to 10.

        alphabet (str, optional):
            Characters to draw from. Defaults to `Token.ALPHABET`.

    Returns:
        str: A random token of exactly `length` characters.

    NOTE:
        - Uniqueness is not guaranteed here; the store rejects duplicate tokens
          and the caller retries with a fresh one.
    """
    if not isinstance(length, int):
        raise TypeError(f'Length must be of type integer (given type: {type(length)}).')
    if length < 1 or length > Token.MAX_LENGTH:
        raise ValueError(f'Length must be between 1 and {Token.MAX_LENGTH} (given value: {length}).')
    if not alphabet:
        raise ValueError(f'Alphabet must be a non-empty string (given value: {alphabet!r}).')

    return ''.join(secrets.choice(alphabet) for _ in range(length))
