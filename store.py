import threading
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class DeviceAttendance(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    value: bool


class DeviceLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    lat: float
    lon: float


class StateStore:
    """
    Last-known telemetry per device, in process memory.
    Attendance and locations are independent maps, each with its own lock.
    Lock hold time covers the map access only: callers log and publish
    after the write returns.
    """
    def __init__(self):
        self._attendance: Dict[str, bool] = {}
        self._attendance_lock = threading.Lock()
        self._locations: Dict[str, DeviceLocation] = {}
        self._locations_lock = threading.Lock()

    def set_attendance(self, device_id: str, value: bool) -> None:
        with self._attendance_lock:
            self._attendance[device_id] = value

    def set_location(self, device_id: str, lat: float, lon: float) -> None:
        # build outside the lock; the map only ever holds whole entries
        location = DeviceLocation(id=device_id, lat=lat, lon=lon)
        with self._locations_lock:
            self._locations[device_id] = location

    def get_attendance(self, device_id: str) -> Optional[bool]:
        with self._attendance_lock:
            return self._attendance.get(device_id)

    def get_location(self, device_id: str) -> Optional[DeviceLocation]:
        with self._locations_lock:
            return self._locations.get(device_id)

    def attendance(self) -> List[DeviceAttendance]:
        with self._attendance_lock:
            items = list(self._attendance.items())
        return [DeviceAttendance(id=k, value=v) for k, v in items]

    def locations(self) -> List[DeviceLocation]:
        with self._locations_lock:
            return list(self._locations.values())
