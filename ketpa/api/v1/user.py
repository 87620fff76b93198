from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, get_notifier, rate_limit_check
from ...models.user import User
from ...services.booking_service import BookingService
from ...services.notification_service import Notifier
from ...services.user_service import UserService
from ...schemas.user import (
    UserRegister, UserLogin, UpdateProfile, ApiResponse, TokenResponse,
    ProfileResponse, UserProfile
)
from ...schemas.appointment import (
    BookAppointment, CancelAppointment, BookingResponse,
    AppointmentListResponse, AppointmentOut
)

router = APIRouter(prefix="/user", tags=["User"])

@router.post("/register", response_model=TokenResponse)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new user."""
    token = UserService(db).register_user(user_data)
    return TokenResponse(token=token, message="Account creation success.")

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return a token."""
    token = UserService(db).authenticate_user(login_data)
    return TokenResponse(token=token, message="Login success.")

@router.get("/get-profile", response_model=ProfileResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return ProfileResponse(user_data=UserProfile.model_validate(current_user))

@router.post("/update-profile", response_model=ApiResponse)
async def update_profile(
    profile: UpdateProfile,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    UserService(db).update_profile(current_user.id, profile)
    return ApiResponse(message="Profile Updated")

@router.post("/book-appointment", response_model=BookingResponse)
async def book_appointment(
    request: BookAppointment,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Book a slot; the confirmation email goes out after the response."""
    appointment = BookingService(db).book_appointment(current_user.id, request)

    background_tasks.add_task(
        notifier.send_appointment_confirmation,
        appointment.user_data.get("email"),
        appointment.snapshot(),
    )

    return BookingResponse(message="Appointment Booked", appointment_id=appointment.id)

@router.get("/appointments", response_model=AppointmentListResponse)
async def list_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    appointments = BookingService(db).list_appointments(current_user.id)
    return AppointmentListResponse(
        appointments=[AppointmentOut.model_validate(a) for a in appointments]
    )

@router.post("/cancel-appointment", response_model=ApiResponse)
async def cancel_appointment(
    request: CancelAppointment,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    BookingService(db).cancel_appointment(current_user.id, request.appointment_id)
    return ApiResponse(message="Appointment Cancelled")
