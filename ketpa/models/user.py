from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

# Stored until the user adds a real contact number
PHONE_PLACEHOLDER = "0000000000"

def _empty_address():
    return {"line1": "", "line2": ""}

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Contact information, canonical "+91 XXXXX XXXXX"
    phone = Column(String(20), nullable=False, default=PHONE_PLACEHOLDER)
    address = Column(JSON, nullable=False, default=_empty_address)

    # Pet profile
    pet = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True, default="Not Selected")
    dob = Column(String(20), nullable=True, default="Not Selected")
    about_pet = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    appointments = relationship("Appointment", back_populates="user")

    def snapshot(self) -> dict:
        """Denormalized copy stored on appointments, without the credential."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "pet": self.pet,
            "address": dict(self.address or {}),
            "gender": self.gender,
            "dob": self.dob,
            "image": self.image,
        }

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
