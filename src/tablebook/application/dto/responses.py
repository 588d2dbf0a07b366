from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ReservationResponse(BaseModel):
    id: str
    email: str
    fullName: str
    tableNumber: int
    startTime: datetime
    endTime: datetime


class TableResponse(BaseModel):
    id: str
    tableNumber: int
    numberOfSeats: int


class AuthUserResponse(BaseModel):
    email: str
    role: str
    fullName: str
    phone: str | None = None


class UserProfileResponse(BaseModel):
    fullName: str
    email: str
    phone: str | None = None


class MessageResponse(BaseModel):
    message: str
