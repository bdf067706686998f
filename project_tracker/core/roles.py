"""Closed set of roles a caller can authenticate as."""

import enum


class Role(str, enum.Enum):
    """Role carried in the token ``role`` claim."""

    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
