from pydantic import BaseModel, Field
from typing import Optional

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str  # plain str to allow .local and other dev domains
    password: str = Field(min_length=8)

class LoginRequest(BaseModel):
    email: str
    password: str

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=8)

class AuthOut(BaseModel):
    id: str
    name: str
    email: str
    isAdmin: bool
    token: Optional[str] = None
