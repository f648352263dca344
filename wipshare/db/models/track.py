from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from wipshare.db.base import Base, BigIntId

class Track(Base):
    __tablename__ = "track"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    filename = Column(String(255))
    file_path = Column(String(512))
    version = Column(String(8), default="001")
    duration = Column(Integer)
    # {"full": [...], "simplified": [...], "sampleRate": n}
    waveform_data = Column(JSON(none_as_null=True))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    versions = relationship(
        "TrackVersion",
        back_populates="track",
        cascade="all, delete-orphan",
        order_by="TrackVersion.version_number",
    )


# register the mapper referenced by Track.versions
from wipshare.db.models.track_version import TrackVersion  # noqa: E402,F401
