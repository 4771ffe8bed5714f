import secrets
import string

# URL-safe alphabet, same as nanoid
ALPHABET = string.ascii_letters + string.digits + "_-"

def generate_name(size: int = 10) -> str:
    """Generate a random item name"""
    return "".join(secrets.choice(ALPHABET) for _ in range(size))
