import base64
import logging
from getpass import getpass
from typing import Callable, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes

from .db import get_meta, set_meta
from .errors import AuthError

logger = logging.getLogger(__name__)

DEFAULT_KDF_ITERS = 200_000
MAX_PASSWORD_ATTEMPTS = 3
MIN_PASSWORD_LENGTH = 8
VERIFIER_PLAINTEXT = b"studentdb-verify"


def derive_key(passphrase: str, salt: bytes, kdf_iters: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=kdf_iters,
    )
    key = kdf.derive(passphrase.encode("utf-8"))
    return base64.urlsafe_b64encode(key)


def get_fernet(conn, passphrase: str) -> Fernet:
    salt = get_meta(conn, "salt")
    if not salt:
        raise AuthError("Keyring not initialized. Run: studentdb init")
    iters_raw = get_meta(conn, "kdf_iters")
    kdf_iters = int((iters_raw or str(DEFAULT_KDF_ITERS).encode()).decode())
    return Fernet(derive_key(passphrase, salt, kdf_iters))


def set_verifier(conn, f: Fernet):
    set_meta(conn, "verifier", f.encrypt(VERIFIER_PLAINTEXT))


def check_verifier(conn, f: Fernet) -> bool:
    token = get_meta(conn, "verifier")
    if not token:
        return False
    try:
        return f.decrypt(token) == VERIFIER_PLAINTEXT
    except InvalidToken:
        return False


def is_initialized(conn) -> bool:
    return bool(get_meta(conn, "verifier"))


def set_passphrase(conn, prompt: Optional[Callable[[str], str]] = None) -> None:
    prompt = prompt or getpass
    while True:
        pw1 = prompt("Create database password: ")
        pw2 = prompt("Confirm database password: ")
        if pw1 != pw2:
            print("Passwords do not match. Try again.\n")
            continue
        if len(pw1) < MIN_PASSWORD_LENGTH:
            print(f"Use at least {MIN_PASSWORD_LENGTH} characters.\n")
            continue
        break
    set_verifier(conn, get_fernet(conn, pw1))
    print("Database password set.")


def unlock(conn, prompt: Optional[Callable[[str], str]] = None,
           attempts: int = MAX_PASSWORD_ATTEMPTS) -> None:
    """Ask for the database password until it verifies.

    Raises:
        AuthError: if the keyring is not initialized, input ends, or every
            attempt fails.
    """
    prompt = prompt or getpass
    if not is_initialized(conn):
        raise AuthError("Keyring not initialized. Run: studentdb init")
    for attempt in range(1, attempts + 1):
        try:
            pw = prompt(f"Please enter database password to continue (attempt {attempt} of {attempts}): ")
        except EOFError:
            raise AuthError("Input error.")
        if check_verifier(conn, get_fernet(conn, pw)):
            print("CMS: Password accepted. Welcome to the Class Management System.\n")
            return
        logger.warning("Failed password attempt %d of %d", attempt, attempts)
        print("CMS: Incorrect password.")
    raise AuthError("Too many invalid password attempts. Exiting program.")
