from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class WaveformPayload(BaseModel):
    full: List[float] = []
    simplified: List[float] = []
    sampleRate: int = 0


class TrackOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    filename: str | None = None
    version: str | None = None
    duration: int | None = None
    waveform: WaveformPayload | None = Field(default=None, validation_alias=AliasChoices("waveform", "waveform_data"))
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TrackVersionOut(BaseModel):
    id: int
    track_id: int
    version_number: int
    title: str | None = None
    description: str | None = None
    filename: str | None = None
    duration: int | None = None
    is_pinned: bool = False
    waveform: WaveformPayload | None = Field(default=None, validation_alias=AliasChoices("waveform", "waveform_data"))
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SimplifiedWaveform(BaseModel):
    simplified: List[float] = []
    sampleRate: int = 0


class TrackVersionSummaryOut(TrackVersionOut):
    # version lists only carry the dashboard-sized waveform
    waveform: SimplifiedWaveform | None = Field(default=None, validation_alias=AliasChoices("waveform", "waveform_data"))


class TrackVersionList(BaseModel):
    versions: List[TrackVersionSummaryOut]


class TrackUploadOut(BaseModel):
    message: str
    track: TrackOut


class TrackVersionMessageOut(BaseModel):
    message: str
    version: TrackVersionOut
