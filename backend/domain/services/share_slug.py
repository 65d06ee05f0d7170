import secrets
import string

SLUG_ALPHABET = string.ascii_lowercase + string.digits

def generate_random_slug(length: int = 8) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))
