# dashboard/utils.py
import os
import hashlib
import hmac
import secrets
from datetime import date
from itsdangerous import URLSafeSerializer

SECRET = os.getenv("APP_SECRET", "change-this-secret-key")

PBKDF2_ITERATIONS = 260_000

def signer():
    return URLSafeSerializer(SECRET, salt="dashboard-session")

def sign_payload(payload: dict) -> str:
    return signer().dumps(payload)

def unsign_payload(token: str) -> dict:
    return signer().loads(token)


def hash_password(password: str, salt: str | None = None, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"

def verify_password(password: str, hashed: str) -> bool:
    """Raises ValueError when `hashed` is not a pbkdf2_sha256 string."""
    algorithm, iterations, salt, expected = hashed.split("$")
    if algorithm != "pbkdf2_sha256":
        raise ValueError(f"unsupported hash algorithm: {algorithm}")
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate.split("$")[-1], expected)


def today() -> str:
    return date.today().isoformat()

def format_currency(cents: int) -> str:
    return f"${cents / 100:,.2f}"

def format_date(value: str) -> str:
    day = date.fromisoformat(value)
    return f"{day:%b} {day.day}, {day.year}"


def generate_pagination(current_page: int, total_pages: int) -> list:
    """
    Page links for the pagination bar; "..." marks a gap.
    7 pages or fewer are all shown, otherwise the first and last pages
    stay visible around the current one.
    """
    if total_pages <= 7:
        return list(range(1, total_pages + 1))
    if current_page <= 3:
        return [1, 2, 3, "...", total_pages - 1, total_pages]
    if current_page >= total_pages - 2:
        return [1, 2, "...", total_pages - 2, total_pages - 1, total_pages]
    return [1, "...", current_page - 1, current_page, current_page + 1, "...", total_pages]
