# storefront/models/users.py
import enum
from sqlalchemy import Column, Integer, String, DateTime, Enum, func
from storefront.database import Base

# The only two roles the system knows about
class Role(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(
        Enum(Role, values_callable=lambda roles: [r.value for r in roles], name="user_role"),
        nullable=False,
        default=Role.USER,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
