"""
Input policy checks shared by registration, password change and reset.

Password rules:
- 8 to 128 characters
- at least one uppercase, lowercase, digit and special character
- no weak patterns (runs of 3 identical characters, common passwords,
  letters only, digits only)
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MIN_STUDENT_LOCAL_PART = 3

WEAK_PATTERNS = [
    re.compile(r"(.)\1{2,}"),
    re.compile(r"123456|654321|password|qwerty|admin|letmein", re.IGNORECASE),
    re.compile(r"^[a-z]+$", re.IGNORECASE),
    re.compile(r"^[0-9]+$"),
]

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Upper score bound (exclusive) for each strength level
STRENGTH_LEVELS = [
    (30, "very-weak"),
    (50, "weak"),
    (70, "fair"),
    (85, "good"),
]


@dataclass
class PasswordCheck:
    valid: bool
    errors: List[str] = field(default_factory=list)
    strength_score: int = 0
    strength_level: str = "very-weak"


def password_requirements() -> List[str]:
    return [
        "At least 8 characters long",
        "Contains at least one uppercase letter (A-Z)",
        "Contains at least one lowercase letter (a-z)",
        "Contains at least one number (0-9)",
        "Contains at least one special character (!@#$%^&*)",
        'Avoid common patterns like "123456" or "password"',
    ]


def calculate_password_strength(password: str) -> int:
    """Score a password from 0 to 100."""
    score = 0
    length = len(password)
    if length >= 8:
        score += 20
    if length >= 12:
        score += 10
    if length >= 16:
        score += 10

    for pattern in (r"[a-z]", r"[A-Z]", r"[0-9]", r"[^A-Za-z0-9]"):
        if re.search(pattern, password):
            score += 15

    # Bonus for mixing classes across the string
    if re.search(r"[A-Z].*[0-9]|[0-9].*[A-Z]", password):
        score += 5
    if re.search(r"[^A-Za-z0-9].*[A-Za-z0-9]|[A-Za-z0-9].*[^A-Za-z0-9]", password):
        score += 5

    return min(score, 100)


def password_strength_level(score: int) -> str:
    for upper_bound, level in STRENGTH_LEVELS:
        if score < upper_bound:
            return level
    return "strong"


def validate_password_strength(password: str) -> PasswordCheck:
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter (A-Z)")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter (a-z)")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number (0-9)")
    if not re.search(r"[^A-Za-z0-9]", password):
        errors.append("Password must contain at least one special character (!@#$%^&*()_+-=[]{}|;:,.<>?)")
    if len(password) > MAX_PASSWORD_LENGTH:
        errors.append("Password must not exceed 128 characters")

    if any(pattern.search(password) for pattern in WEAK_PATTERNS):
        errors.append("Password contains weak patterns. Please use a stronger combination")

    score = calculate_password_strength(password)
    return PasswordCheck(
        valid=not errors,
        errors=errors,
        strength_score=score,
        strength_level=password_strength_level(score),
    )


def validate_student_email(email: str, required_domain: str) -> Optional[str]:
    """
    Check a student's registration e-mail.

    Returns an error message, or None when the address is acceptable.
    An empty required_domain accepts any well-formed address.
    """
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        return "Invalid email format"

    if not required_domain:
        return None

    local_part, domain = email.rsplit("@", 1)
    if domain.lower() != required_domain.lower():
        return f"Please use your university email address ending with @{required_domain}"
    if len(local_part) < MIN_STUDENT_LOCAL_PART:
        return "University email ID should be at least 3 characters before @"
    return None
