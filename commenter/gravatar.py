import hashlib


def gravatar_hash(email: str) -> str:
    """Gravatar key for an email: md5 of the trimmed, lowercased address."""
    return hashlib.md5(email.strip().lower().encode("utf-8")).hexdigest()
