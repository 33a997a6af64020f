# Fixed set of monitored power stations
from dataclasses import dataclass
from enum import Enum


class StationId(str, Enum):
    RIVER2 = "River2"
    RIVER3 = "River3"
    DELTA3 = "Delta3"
    EB3A = "EB3A"


@dataclass(frozen=True)
class StationConfig:
    id: StationId
    name: str
    capacity_wh: float

    def to_dict(self):
        return {"id": self.id.value, "name": self.name, "capacityWh": self.capacity_wh}


# Order matters: records, CSV columns and tables follow it
POWER_STATION_CONFIGS = (
    StationConfig(StationId.RIVER2, "River2", 256),
    StationConfig(StationId.RIVER3, "River3", 230),
    StationConfig(StationId.DELTA3, "Delta3", 1024),
    StationConfig(StationId.EB3A, "EB3A", 268),
)

_CONFIGS_BY_ID = {config.id: config for config in POWER_STATION_CONFIGS}

# Recovery percentages above this are rejected even before capping at 100
MAX_RECOVERY_INPUT = 1000.0
MAX_RECOVERY_PERCENTAGE = 100.0

DATE_FORMAT = "%Y-%m-%d"

APP_TITLE = "Solar Power Logger"


def get_station_config(station_id) -> StationConfig:
    """Look up a station's configuration by id (enum member or its string value)."""
    return _CONFIGS_BY_ID[StationId(station_id)]
