'''
Static enums shared by the ORM, the API models and the token claims.
'''
import enum


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    GUARDIAN = "guardian"
    STUDENT = "student"
