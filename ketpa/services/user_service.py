from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from ..models.user import User
from ..core.security import verify_password, get_password_hash, create_access_token
from ..core.errors import DuplicateEmail, InvalidCredentials, NotFound, StorageFailure
from ..schemas.user import UserLogin, UserRegister, UpdateProfile

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: Session):
        self.db = db

    def register_user(self, user_data: UserRegister) -> str:
        """Create the account and return a signed token for it."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise DuplicateEmail()

        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            phone=user_data.phone,
            pet=user_data.pet,
        )

        self.db.add(new_user)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise DuplicateEmail()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to register {user_data.email}: {str(e)}")
            raise StorageFailure()
        self.db.refresh(new_user)

        logger.info(f"Registered user {new_user.id}")
        return create_access_token(new_user.id)

    def authenticate_user(self, login_data: UserLogin) -> str:
        """Check credentials and return a signed token."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user:
            raise InvalidCredentials("User does not exist")

        if not verify_password(login_data.password, user.password_hash):
            raise InvalidCredentials()

        return create_access_token(user.id)

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, user_id: int, profile: UpdateProfile) -> User:
        """Update profile fields. Phone and address are only changed when sent."""
        user = self.get_user(user_id)

        user.name = profile.name
        user.dob = profile.dob
        user.gender = profile.gender
        user.about_pet = profile.about_pet
        if profile.phone is not None:
            user.phone = profile.phone
        if profile.address is not None:
            user.address = profile.address.model_dump()
        if profile.pet:
            user.pet = profile.pet

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update profile of user {user_id}: {str(e)}")
            raise StorageFailure()
        self.db.refresh(user)

        return user
