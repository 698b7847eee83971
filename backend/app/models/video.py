from sqlalchemy import JSON, BigInteger, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Video(Base):
    __tablename__ = "videos"

    # ids come from IdentityAllocator, not from the database
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(500), index=True)
    duration: Mapped[int] = mapped_column(BigInteger, index=True)
    data_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    liked_by: Mapped[list] = mapped_column(JSON, default=list)
    version: Mapped[int] = mapped_column(Integer, default=0)
