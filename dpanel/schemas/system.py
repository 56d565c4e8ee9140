from pydantic import BaseModel


class StatsResponse(BaseModel):
    protection_count: int
    remaining_time: str = ""


class Language(BaseModel):
    code: str
    name: str


class CommandRequest(BaseModel):
    command: str = ""


class CommandResponse(BaseModel):
    message: str
    output: str
