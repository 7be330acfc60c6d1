from typing import Optional

from pydantic import BaseModel

from caixa.models import UserRole


class StoreResponse(BaseModel):
    id: int
    name: str
    is_active: bool

    class Config:
        from_attributes = True


class StoreCreate(BaseModel):
    name: str


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    store_id: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    name: str
    email: str
    role: UserRole = UserRole.VISTORIADOR
    store_id: Optional[int] = None
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    store_id: Optional[int] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None
