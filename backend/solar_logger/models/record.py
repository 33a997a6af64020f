import json
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, Float, String, Text

from solar_logger.constants import StationId
from solar_logger.database import Base


class StationDailyData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    input: str = ""
    recovered_percentage: float = Field(0.0, alias="recoveredPercentage")
    recovered_wh: float = Field(0.0, alias="recoveredWh")


class DailyPowerRecord(BaseModel):
    """One day's recovery across all stations, keyed by ``date`` (YYYY-MM-DD)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date: str
    station_data: Dict[StationId, StationDailyData] = Field(default_factory=dict, alias="stationData")
    total_wh_generated: float = Field(alias="totalWhGenerated")

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True)


class DailyRecordRow(Base):
    __tablename__ = "daily_power_records"

    date = Column(String(10), primary_key=True, index=True)
    station_data = Column(Text, nullable=False, default="{}")  # JSON, keyed by station id
    total_wh_generated = Column(Float, nullable=False)

    @classmethod
    def from_record(cls, record: DailyPowerRecord) -> "DailyRecordRow":
        data = record.to_dict()
        return cls(
            date=record.date,
            station_data=json.dumps(data["stationData"]),
            total_wh_generated=record.total_wh_generated,
        )

    def to_dict(self):
        return {
            "date": self.date,
            "stationData": json.loads(self.station_data or "{}"),
            "totalWhGenerated": self.total_wh_generated,
        }
