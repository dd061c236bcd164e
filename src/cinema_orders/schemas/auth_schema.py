from pydantic import BaseModel, ConfigDict, EmailStr


class UserRead(BaseModel):
    id: int
    email: EmailStr
    is_active: bool
    group_id: int

    model_config = ConfigDict(from_attributes=True)


class TokenPayload(BaseModel):
    sub: str
    exp: int
