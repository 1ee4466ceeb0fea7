"""Authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., description="Email address")
    password: str

    model_config = {
        "json_schema_extra": {
            "examples": [{"username": "ada@example.com", "password": "correct horse"}]
        }
    }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str


class UserResponse(BaseModel):
    id: str
    username: str
    role: str
    active: bool

    class Config:
        from_attributes = True
