"""Random password generation from a cryptographically secure source."""
import string
import secrets

LOWER = string.ascii_lowercase
UPPER = string.ascii_uppercase
DIGITS = string.digits
SPECIAL = "!@#$^&*~"

CHARACTER_CLASSES = (LOWER, UPPER, DIGITS, SPECIAL)
ALPHABET = "".join(CHARACTER_CLASSES)

MIN_LENGTH = 8
DEFAULT_LENGTH = 12

_sysrand = secrets.SystemRandom()


def generate_password(length: int = DEFAULT_LENGTH) -> str:
    """Generate a password with at least one character of every class.

    Lengths below ``MIN_LENGTH`` are raised to it. One character is drawn
    from each class, the rest uniformly from the whole alphabet, and the
    result is shuffled so the class representatives land anywhere.
    """
    length = max(length, MIN_LENGTH)
    chars = [secrets.choice(cls) for cls in CHARACTER_CLASSES]
    chars.extend(secrets.choice(ALPHABET) for _ in range(length - len(chars)))
    _sysrand.shuffle(chars)
    return "".join(chars)
