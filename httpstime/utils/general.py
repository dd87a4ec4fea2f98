import base64
import binascii
import hashlib
import ssl
from pathlib import Path

from httpstime.core.config import TIME_PATH
from httpstime.core.errors import ConfigurationError

DIGEST_SIZE = hashlib.sha256().digest_size


def normalize_target(target: str, session: bool = False) -> str:
    """
    Expand a bare `host:port` into the URL of the well-known time path.

    Sessions run over WebSocket, so http(s) schemes are mapped to ws(s).
    """
    url = target.strip()

    if session:
        if url.startswith("https://"):
            url = "wss://" + url.removeprefix("https://")
        elif url.startswith("http://"):
            url = "ws://" + url.removeprefix("http://")
        elif not url.startswith(("ws://", "wss://")):
            url = f"wss://{url}"
    elif not url.startswith(("http://", "https://")):
        url = f"http://{url}"

    if not url.endswith(TIME_PATH):
        url = url.rstrip("/") + TIME_PATH

    return url


def parse_fingerprint(value: str) -> bytes:
    """Decode a base64 SHA-256 certificate fingerprint."""
    try:
        digest = base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise ConfigurationError(f"Invalid base64 in cert-hash: {e}") from e

    if len(digest) != DIGEST_SIZE:
        raise ConfigurationError(f"Invalid hash length {len(digest)} (must be {DIGEST_SIZE} bytes)")

    return digest


def fingerprint(der: bytes) -> bytes:
    """Return the SHA-256 digest of a DER encoded certificate."""
    return hashlib.sha256(der).digest()


def certificate_fingerprint(cert_file: Path) -> str:
    """Return the base64 SHA-256 fingerprint of the first certificate in a PEM file."""
    try:
        pem = cert_file.read_text(encoding="ascii")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Unable to read certificate {cert_file}: {e}") from e

    start = pem.find(ssl.PEM_HEADER)
    end = pem.find(ssl.PEM_FOOTER, start)

    if start == -1 or end == -1:
        raise ConfigurationError(f"No PEM certificate found in {cert_file}")

    try:
        der = ssl.PEM_cert_to_DER_cert(pem[start : end + len(ssl.PEM_FOOTER)])
    except ValueError as e:
        raise ConfigurationError(f"Malformed PEM certificate in {cert_file}: {e}") from e

    return base64.b64encode(fingerprint(der)).decode("ascii")
