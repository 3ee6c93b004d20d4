from sqlalchemy import Column, Integer, String, DateTime, func
from config.database import Base
from sqlalchemy.orm import relationship


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)

    role = Column(String, default="parent", nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    children = relationship("Child", back_populates="parent", cascade="all, delete")
