# storefront/utils/signatures.py
import hashlib
import hmac


def hmac_sha256_hex(secret: str, message: str | bytes) -> str:
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_matches(secret: str, message: str | bytes, signature: str | None) -> bool:
    """
    Constant-time comparison of a hex HMAC-SHA256 signature.
    An empty secret never validates anything.
    """
    if not secret or not signature:
        return False
    expected = hmac_sha256_hex(secret, message)
    return hmac.compare_digest(expected, signature)
