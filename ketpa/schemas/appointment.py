import re
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import Any, Dict, List, Optional
from datetime import datetime

from .user import Address

# Slot dates are used as given; only their shape is checked
SLOT_DATE_PATTERN = r"^\d{2}_\d{2}_\d{4}$"
# 12-hour clock; the ledger stores the canonical "hh:mm AM" spelling
SLOT_TIME_RE = re.compile(r"^(0?[1-9]|1[0-2]):([0-5]\d) ?(AM|PM)$", re.IGNORECASE)

class BookAppointment(BaseModel):
    doc_id: int
    slot_date: str = Field(pattern=SLOT_DATE_PATTERN, examples=["01_01_2030"])
    slot_time: str = Field(examples=["10:00 AM"])

    @field_validator("slot_time")
    @classmethod
    def canonical_slot_time(cls, v: str) -> str:
        """"9:00 am" and "09:00 AM" name the same slot; store the latter."""
        match = SLOT_TIME_RE.match(v.strip())
        if not match:
            raise PydanticCustomError("invalid_slot_time", "Enter a valid slot time (hh:mm AM/PM).")
        hours, minutes, modifier = match.groups()
        return f"{int(hours):02d}:{minutes} {modifier.upper()}"

class CancelAppointment(BaseModel):
    appointment_id: int

class BookingResponse(BaseModel):
    success: bool = True
    message: str
    appointment_id: int

class AppointmentOut(BaseModel):
    id: int
    user_id: int
    doctor_id: int
    user_data: Dict[str, Any]
    doc_data: Dict[str, Any]
    amount: float
    slot_date: str
    slot_time: str
    created_at: Optional[datetime] = None
    cancelled: bool
    payment: bool
    is_completed: bool

    class Config:
        from_attributes = True

class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: List[AppointmentOut]

class DoctorOut(BaseModel):
    id: int
    name: str
    speciality: Optional[str] = None
    degree: Optional[str] = None
    experience: Optional[str] = None
    about: Optional[str] = None
    image: Optional[str] = None
    fees: float
    clinic_name: Optional[str] = None
    address: Optional[Address] = None
    location: Optional[str] = None
    available: bool
    slots_booked: Dict[str, List[str]]

    class Config:
        from_attributes = True

class DoctorListResponse(BaseModel):
    success: bool = True
    doctors: List[DoctorOut]
