"""User model definitions."""

from sqlalchemy import Column, Integer, String
from scheduling.database import Base


ROLE_SPECIALIST = 'specialist'
ROLE_CLIENT = 'client'
ROLE_ADMIN = 'admin'


class User(Base):
    """An authenticated account, owned by the external account system."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)
    role = Column(String, nullable=False, default=ROLE_CLIENT)  # specialist/client/admin

    @property
    def is_specialist(self) -> bool:
        return self.role == ROLE_SPECIALIST

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT
