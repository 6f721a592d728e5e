from pydantic import BaseModel, ConfigDict

from app.schemas.settings import RoomSize


class RoomOut(BaseModel):
    id: str
    name: str
    beds: int
    size: RoomSize

    model_config = ConfigDict(from_attributes=True)
