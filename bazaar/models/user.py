from sqlalchemy import Column, Integer, BigInteger, String, Boolean, DateTime

from .base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    telegram_id = Column(BigInteger, unique=True, index=True, nullable=False)

    username = Column(String(64), nullable=True)
    name = Column(String(128), nullable=True)
    role = Column(String(16), nullable=True)      # 'admin'/'user'
    is_banned = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Удобное отображаемое имя
    @property
    def display_name(self) -> str:
        return self.name or (f"@{self.username}" if self.username else f"ID {self.telegram_id}")
