from sqlalchemy import Boolean, Column, Integer, String, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from wipshare.db.base import Base, BigIntId

class TrackVersion(Base):
    __tablename__ = "track_version"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    track_id = Column(BigIntId, ForeignKey("track.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    title = Column(String(255))
    description = Column(Text)
    filename = Column(String(255))
    file_path = Column(String(512))
    duration = Column(Integer)
    waveform_data = Column(JSON(none_as_null=True))
    is_pinned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    track = relationship("Track", back_populates="versions")
