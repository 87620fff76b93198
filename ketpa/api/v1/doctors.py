from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...services.booking_service import BookingService
from ...schemas.appointment import DoctorListResponse, DoctorOut

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=DoctorListResponse)
async def list_doctors(db: Session = Depends(get_db)):
    """Doctors with their booked slots, for the booking calendar."""
    doctors = BookingService(db).list_doctors()
    return DoctorListResponse(doctors=[DoctorOut.model_validate(d) for d in doctors])
