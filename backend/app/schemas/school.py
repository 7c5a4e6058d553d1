import re

from pydantic import BaseModel, EmailStr, Field, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


class SchoolCreate(BaseModel):
    name: str = Field(min_length=2, max_length=200)
    slug: str = Field(min_length=2, max_length=100)
    address: str | None = Field(default=None, max_length=500)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)

    admin_name: str = Field(min_length=2, max_length=200)
    admin_email: EmailStr
    admin_password: str = Field(min_length=6, max_length=128)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value: str) -> str:
        slug = value.strip()
        if not SLUG_PATTERN.match(slug):
            raise ValueError("Slug must be lowercase alphanumeric with hyphens")
        return slug

    @field_validator("admin_email")
    @classmethod
    def normalize_admin_email(cls, value: str) -> str:
        return value.strip().lower()


class SchoolOut(BaseModel):
    id: str
    name: str
    slug: str

    model_config = {"from_attributes": True}


class SchoolAdminOut(BaseModel):
    id: str
    email: str

    model_config = {"from_attributes": True}


class SchoolRegistrationOut(BaseModel):
    message: str
    school: SchoolOut
    admin: SchoolAdminOut
