import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    mac = hmac.new(secret.encode("utf-8"), msg=body, digestmod=hashlib.sha256)
    return SIGNATURE_PREFIX + mac.hexdigest()


def verify_signature(raw_body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Check a GitHub ``X-Hub-Signature-256`` header against the raw body.

    ``raw_body`` must be the exact bytes received; parse it only after this
    returns True.
    """
    if not secret:
        return False
    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False
    expected = compute_signature(secret, raw_body)
    return hmac.compare_digest(
        expected.encode("utf-8"), signature_header.encode("utf-8")
    )
