import random
import secrets
import string

from webstack.models.config import StackConfig
from webstack.provisioner.constants import PASSWORD_LENGTH
from webstack.utils.logging import get_logger

logger = get_logger()

_FALLBACK_ALPHABET = string.ascii_letters + string.digits


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """
    Generate a random password of exactly `length` characters.

    Uses the OS cryptographic source (url-safe base64 alphabet). If the
    platform has no such source, falls back to an alphanumeric password from
    the pseudo-random generator and logs a warning.
    """
    if length < 1:
        raise ValueError("Password length must be positive")
    try:
        # 3 bytes encode to 4 characters; over-generate and cut
        return secrets.token_urlsafe(length)[:length]
    except NotImplementedError:
        logger.warning(
            "[CREDENTIALS] No cryptographic random source available, "
            "using pseudo-random password generation."
        )
        rng = random.Random()
        return "".join(rng.choice(_FALLBACK_ALPHABET) for _ in range(length))


def resolve_password(config: StackConfig, generator=generate_password) -> str:
    """Return the override password from config, or a freshly generated one."""
    if config.has_password_override:
        logger.info(f"[CREDENTIALS] Using password supplied via environment for {config.ssh_user}")
        return config.ssh_password

    password = generator()
    logger.info(f"[CREDENTIALS] Generated password for {config.ssh_user}: {password}")
    return password
