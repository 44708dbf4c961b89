import hashlib
from passlib.context import CryptContext

bcrypt_context = CryptContext(schemes=['bcrypt'], deprecated='auto')

def get_password_hash(password: str):
    # Bcrypt has a 72-byte limit, truncate if necessary
    return bcrypt_context.hash(password[:72])


def verify_password(plain_password: str, hashed_password: str | None):
    if not hashed_password:
        return False
    # Bcrypt has a 72-byte limit, truncate if necessary
    return bcrypt_context.verify(plain_password[:72], hashed_password)


def hash_token(raw_token: str) -> str:
    """
    Fast one-way hash for lookup tokens (password setup, refresh JTIs).

    Tokens carry 256 bits of randomness, so a slow hash buys nothing and
    would prevent lookup by hash.
    """
    return hashlib.sha256(raw_token.encode()).hexdigest()
