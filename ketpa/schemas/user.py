from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_core import PydanticCustomError
from typing import Optional
from datetime import datetime

from ..core.errors import InvalidEmail, InvalidPhone, PasswordMismatch, WeakPassword
from ..core.validators import format_phone, is_strong_password, is_valid_phone, normalize_email

def _check_email(value: str) -> str:
    email = normalize_email(value)
    if email is None:
        raise PydanticCustomError(InvalidEmail.code, InvalidEmail.message)
    return email

def _check_phone(value: str) -> str:
    phone = format_phone(value)
    if not is_valid_phone(phone):
        raise PydanticCustomError(InvalidPhone.code, InvalidPhone.message)
    return phone

class Address(BaseModel):
    line1: str = ""
    line2: str = ""

class UserRegister(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    password: str = Field(min_length=1)
    confirm_password: str = Field(min_length=1)
    pet: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not is_strong_password(v):
            raise PydanticCustomError(WeakPassword.code, WeakPassword.message)
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise PydanticCustomError(PasswordMismatch.code, PasswordMismatch.message)
        return self

class UserLogin(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

class UpdateProfile(BaseModel):
    name: str = Field(min_length=1)
    dob: str = Field(min_length=1)
    gender: str = Field(min_length=1)
    about_pet: str = Field(min_length=1)
    phone: Optional[str] = None
    address: Optional[Address] = None
    pet: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        return _check_phone(v)

# Responses
class ApiResponse(BaseModel):
    success: bool = True
    message: str

class TokenResponse(ApiResponse):
    token: str

class UserProfile(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    pet: Optional[str] = None
    address: Address
    gender: Optional[str] = None
    dob: Optional[str] = None
    about_pet: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProfileResponse(BaseModel):
    success: bool = True
    user_data: UserProfile
