"""Password hashing for password-gated links

Hashes are produced by a passlib CryptContext (bcrypt). Only the encoded hash is
ever stored; the plaintext never leaves the creation request.

Functions:
    hash_password(password, rounds=None) -> str
    verify_password(password, encoded) -> bool

Example:
    >>> encoded = hash_password('s3cret')
    >>> verify_password('s3cret', encoded)
    True
    >>> verify_password('guess', encoded)
    False
"""

from typing import Optional

from passlib.context import CryptContext


# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

password_context = CryptContext(schemes=['bcrypt'], deprecated='auto')


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a link password.

    Args:
        password (str):
            Plaintext password (1..72 bytes once UTF-8 encoded).
        rounds (Optional[int]):
            bcrypt cost factor. Defaults to the context's default.

    Raises:
        TypeError: If `password` isn't a string.
        ValueError: If `password` is empty or longer than 72 bytes.
    """
    if not isinstance(password, str):
        raise TypeError(f'Password must be of type string (given type: {type(password)}).')
    if not password:
        raise ValueError('Password must be a non-empty string.')
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes long.')

    if rounds is None:
        return password_context.hash(password)
    return password_context.hash(password, rounds=rounds)


def verify_password(password: str | None, encoded: str) -> bool:
    """Check a supplied password against an encoded hash. Malformed hashes never verify."""
    if not password:
        return False

    try:
        return password_context.verify(password, encoded)
    except ValueError:
        return False
