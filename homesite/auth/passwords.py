"""密码哈希：SHA-256(password + salt)，salt 为每个账号独立的随机 UUID"""

import hashlib
import hmac
import uuid


def generate_salt() -> str:
    return str(uuid.uuid4())


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


def verify_password(password: str, salt: str, expected_hash: str) -> bool:
    if not password or not salt or not expected_hash:
        return False
    return hmac.compare_digest(hash_password(password, salt), expected_hash)
