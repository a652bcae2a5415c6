# backend/app/security/totp.py
"""
TOTP (Time-based One-Time Password) engine.
RFC 6238 framing over RFC 4226 HOTP - compatible with Google Authenticator, Authy, Aegis

Key points:
- 6-digit codes, 30-second time step, HMAC-SHA1
- Current window and the one before it are accepted (clock drift), never a future one
- Secrets are Base32 text; decoding is lenient (unknown symbols skipped)
- Generated secrets use one symbol per random byte (byte % 32). This is
  not RFC 4648 bit packing, but it is what already-enrolled
  authenticator apps hold, so it must not change.
"""
import base64
import io
import secrets
import time
from typing import Optional

import pyotp
import qrcode
from pyotp.utils import strings_equal

from backend.app.core.config import settings

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
SECRET_RANDOM_BYTES = 20
CODE_DIGITS = 6
DEFAULT_TIME_STEP = 30

# Counter offsets accepted by verify_code: current window, previous window
ACCEPTED_OFFSETS = (0, -1)


def decode_shared_secret(text: str) -> bytes:
    """
    Decode a Base32 secret into raw key bytes.

    Case-insensitive, trailing "=" padding stripped, symbols outside
    A-Z2-7 skipped. Leftover bits that do not fill a byte are dropped.
    """
    if not text:
        return b""

    buffer = 0
    bits = 0
    out = bytearray()
    for char in text.upper().rstrip("="):
        value = BASE32_ALPHABET.find(char)
        if value == -1:
            continue
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
    return bytes(out)


def generate_shared_secret() -> str:
    """
    Generate a new random TOTP secret.
    Returns a 20-character Base32 string (one symbol per random byte).
    """
    return "".join(BASE32_ALPHABET[b % 32] for b in secrets.token_bytes(SECRET_RANDOM_BYTES))


def _totp(secret: bytes, time_step: int) -> pyotp.TOTP:
    # pyotp takes canonical padded Base32, so the decoded key is re-encoded
    return pyotp.TOTP(
        base64.b32encode(secret).decode("ascii"),
        digits=CODE_DIGITS,
        interval=time_step,
    )


def time_counter(for_time: Optional[float] = None, time_step: int = DEFAULT_TIME_STEP) -> int:
    """HOTP counter for a Unix time: floor(unix_time / time_step)."""
    if for_time is None:
        for_time = time.time()
    return int(for_time // time_step)


def compute_code(
    secret: bytes,
    for_time: Optional[float] = None,
    time_step: int = DEFAULT_TIME_STEP,
    counter_offset: int = 0,
) -> str:
    """
    Compute the 6-digit code for a key at a Unix time.

    counter = floor(unix_time / time_step) + counter_offset
    Raises ValueError for a negative counter.
    """
    counter = time_counter(for_time, time_step) + counter_offset
    return _totp(secret, time_step).generate_otp(counter)


def verify_code(
    submitted: str,
    secret: bytes,
    for_time: Optional[float] = None,
    time_step: int = DEFAULT_TIME_STEP,
) -> bool:
    """
    Verify a submitted code against the current or previous window.
    Returns True if valid, False otherwise (an empty key never verifies).
    """
    if not secret or not submitted:
        return False

    code = submitted.strip().replace(" ", "")
    if len(code) != CODE_DIGITS or not code.isdigit():
        return False

    counter = time_counter(for_time, time_step)
    totp = _totp(secret, time_step)
    matched = False
    # Check every window so the timing does not depend on which one matched
    for offset in ACCEPTED_OFFSETS:
        if counter + offset < 0:
            continue
        if strings_equal(code, totp.generate_otp(counter + offset)):
            matched = True
    return matched


def verify_totp(
    secret: str,
    code: str,
    for_time: Optional[float] = None,
    time_step: int = DEFAULT_TIME_STEP,
) -> bool:
    """Decode a stored Base32 secret and verify a code against it."""
    return verify_code(code, decode_shared_secret(secret), for_time=for_time, time_step=time_step)


def get_totp_uri(secret: str, account_name: Optional[str] = None, issuer: Optional[str] = None) -> str:
    """
    Generate the otpauth:// URI for QR code encoding.

    Format: otpauth://totp/{issuer}:{account}?secret={secret}&issuer={issuer}

    The secret is passed through as-is so the authenticator app decodes
    exactly the string the server stores.
    """
    totp = pyotp.TOTP(secret, interval=settings.TOTP_TIME_STEP)
    return totp.provisioning_uri(
        name=account_name or settings.TOTP_ACCOUNT_NAME,
        issuer_name=issuer or settings.TOTP_ISSUER,
    )


def generate_qr_code_base64(secret: str) -> str:
    """
    Generate a QR code image of the otpauth:// URI as Base64-encoded PNG.

    Frontend can display this directly using: <img src="data:image/png;base64,{result}">
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(get_totp_uri(secret))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)

    return base64.b64encode(buffer.read()).decode("utf-8")
