"""PKCE (Proof Key for Code Exchange) utilities.

RFC 7636: https://www.rfc-editor.org/rfc/rfc7636

PKCE binds the two legs of the authorization code grant together: the
browser carries only the derived challenge to the authorization server,
while the verifier stays with this app until it redeems the code.

Flow:
1. Client generates code_verifier (secret) and code_challenge (derived)
2. Client sends code_challenge with authorization request
3. Server stores code_challenge with the authorization code
4. Client sends code_verifier with token exchange request
5. Server verifies SHA256(code_verifier) == code_challenge
"""

import base64
import hashlib
import secrets

__all__ = [
    "VERIFIER_BYTES",
    "generate_code_verifier",
    "compute_code_challenge",
    "generate_pkce_pair",
    "base64url_encode",
]

VERIFIER_BYTES = 32


def base64url_encode(data: bytes) -> str:
    """Base64URL-encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Generate a code_verifier from 32 bytes of CSPRNG output.

    Returns:
        43-character base64url string without padding
    """
    return base64url_encode(secrets.token_bytes(VERIFIER_BYTES))


def compute_code_challenge(code_verifier: str) -> str:
    """Compute code_challenge from code_verifier using S256 method.

    code_challenge = BASE64URL(SHA256(UTF8(code_verifier)))

    Args:
        code_verifier: The PKCE code verifier string

    Returns:
        Base64URL-encoded SHA256 hash without padding
    """
    digest = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    return base64url_encode(digest)


def generate_pkce_pair() -> tuple[str, str]:
    """Generate PKCE code_verifier and code_challenge.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    code_verifier = generate_code_verifier()
    return code_verifier, compute_code_challenge(code_verifier)
