import re, secrets, string
ALPHABET = string.ascii_lowercase + string.digits
MAX_SLUG = 80

def slugify(name: str, max_len: int = 60) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    slug = slug[:max_len].rstrip("-")
    return slug or "hackathon"

def with_suffix(slug: str, length: int = 4) -> str:
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(length))
    return f"{slug[:MAX_SLUG - length - 1]}-{suffix}"
