"""Shared password validation logic."""

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72  # bcrypt only looks at the first 72 bytes


def validate_password_strength(password: str) -> str:
    """Validate password meets length requirements.

    Raises ValueError if any requirement is not met.
    Returns the password unchanged if valid.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_LENGTH} bytes")
    return password
