# hotel/schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import date
from decimal import Decimal

from hotel.models import Role, RoomType, RoomStatus, ReservationStatus, PaymentMethod


class Entity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None


class User(Entity):
    email: EmailStr
    password: str
    role: Role = Role.CLIENT

class Administrator(Entity):
    user_id: int
    name: str

class Client(Entity):
    user_id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None

class Room(Entity):
    room_number: int
    type: RoomType
    price_per_night: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    status: RoomStatus = RoomStatus.AVAILABLE

class Reservation(Entity):
    client_id: int
    room_id: int
    total_price: Optional[Decimal] = None
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.PENDING

class Payment(Entity):
    reservation_id: int
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    payment_date: date = Field(default_factory=date.today)
    method: PaymentMethod

class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = None
    payment_date: Optional[date] = None
    method: Optional[PaymentMethod] = None
