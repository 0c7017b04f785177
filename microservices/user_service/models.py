"""
User Service Data Models
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from core.responses import CamelModel


class UserRole(str, Enum):
    """Authorization role"""
    USER = "user"
    ADMIN = "admin"


class Address(CamelModel):
    """Postal address"""
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool = False


class User(CamelModel):
    """Storefront user profile"""
    id: str
    email: str
    display_name: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[Address] = None
    role: UserRole = UserRole.USER
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Request body keys accepted on create/update, mapped to model fields
PROFILE_FIELDS = {
    "email": "email",
    "displayName": "display_name",
    "firstName": "first_name",
    "lastName": "last_name",
    "phoneNumber": "phone_number",
}

# Only admins may change these
ADMIN_FIELDS = {
    "role": "role",
    "isActive": "is_active",
}
