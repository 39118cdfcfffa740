from typing import Optional

from pydantic import BaseModel


class ClientWrite(BaseModel):
    name: Optional[str] = None


class ClientRead(BaseModel):
    id: str
    name: str


class OkResponse(BaseModel):
    ok: bool = True


class ResetResponse(OkResponse):
    message: str


__all__ = ["ClientWrite", "ClientRead", "OkResponse", "ResetResponse"]
