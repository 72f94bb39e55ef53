# =============================================================================
# tests/test_validators.py - Input Policy Tests
# =============================================================================
# Unit tests for the password and student e-mail rules used at sign up,
# password change and password reset.
# =============================================================================

import pytest

from campusjobs.core.validators import (
    calculate_password_strength,
    password_requirements,
    password_strength_level,
    validate_password_strength,
    validate_student_email,
)


# =============================================================================
# Password Strength Tests
# =============================================================================

class TestValidatePasswordStrength:
    """Tests for validate_password_strength."""

    def test_strong_password_is_valid(self):
        check = validate_password_strength("Str0ng!Pass")

        assert check.valid
        assert check.errors == []
        assert check.strength_level == "strong"

    @pytest.mark.parametrize("password, expected_error", [
        ("Sh0rt!", "at least 8 characters"),
        ("n0upper!case", "uppercase"),
        ("N0LOWER!CASE", "lowercase"),
        ("NoDigits!Here", "number"),
        ("NoSpecial1Here", "special character"),
    ])
    def test_missing_character_class_is_reported(self, password, expected_error):
        check = validate_password_strength(password)

        assert not check.valid
        assert any(expected_error in error for error in check.errors)

    @pytest.mark.parametrize("password", [
        "MyPassword1!",
        "Qwerty#2024x",
        "Xyz123456!ab",
        "Goood!!!Pw9",
    ])
    def test_weak_patterns_are_rejected(self, password):
        check = validate_password_strength(password)

        assert not check.valid
        assert any("weak patterns" in error for error in check.errors)

    def test_too_long_password_is_rejected(self):
        check = validate_password_strength("Ab1!" + "xy" * 70)

        assert not check.valid
        assert any("128" in error for error in check.errors)

    def test_requirements_are_listed(self):
        assert len(password_requirements()) == 6


class TestPasswordStrengthScore:
    """Tests for calculate_password_strength."""

    def test_score_grows_with_length_and_variety(self):
        weak = calculate_password_strength("abcdefgh")
        strong = calculate_password_strength("Str0ng!Pass-Longer16")

        assert weak < strong
        assert strong == 100

    def test_score_is_capped(self):
        assert calculate_password_strength("A1!a" * 10) <= 100

    def test_empty_password_scores_zero(self):
        assert calculate_password_strength("") == 0

    @pytest.mark.parametrize("score, level", [
        (0, "very-weak"), (29, "very-weak"), (30, "weak"), (49, "weak"),
        (50, "fair"), (69, "fair"), (70, "good"), (84, "good"), (85, "strong"), (100, "strong"),
    ])
    def test_score_maps_to_level(self, score, level):
        assert password_strength_level(score) == level

    def test_weak_password_level(self):
        check = validate_password_strength("abcdefgh")

        assert check.strength_score == 35
        assert check.strength_level == "weak"


# =============================================================================
# Student E-mail Tests
# =============================================================================

class TestValidateStudentEmail:
    """Tests for validate_student_email."""

    def test_any_domain_when_no_domain_is_required(self):
        assert validate_student_email("nia@gmail.com", "") is None

    def test_matching_university_domain(self):
        assert validate_student_email("nia.okafor@campus.edu", "campus.edu") is None

    def test_domain_is_case_insensitive(self):
        assert validate_student_email("nia@CAMPUS.EDU", "campus.edu") is None

    def test_other_domain_is_rejected(self):
        error = validate_student_email("nia@gmail.com", "campus.edu")

        assert error == "Please use your university email address ending with @campus.edu"

    def test_short_local_part_is_rejected(self):
        error = validate_student_email("ab@campus.edu", "campus.edu")

        assert "at least 3 characters" in error

    def test_malformed_address(self):
        assert validate_student_email("not-an-email", "campus.edu") == "Invalid email format"
