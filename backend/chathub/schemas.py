"""Pydantic models for chat messages and WebSocket frames."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

EVENT_SEND_MESSAGE = "SendMessage"
EVENT_RECEIVE_MESSAGE = "ReceiveMessage"
EVENT_CONNECTED = "Connected"


class InboundMessage(BaseModel):
    user: str = ""
    message: str = ""
    date_time: str = Field(default="", alias="dateTime")

    model_config = ConfigDict(populate_by_name=True)


class OutboundMessage(BaseModel):
    prefix: str
    user: str
    message: str
    date_time: str

    model_config = ConfigDict(frozen=True)

    def as_args(self) -> List[str]:
        return [self.prefix, self.user, self.message, self.date_time]


class InvocationFrame(BaseModel):
    """Client -> server frame. Either positional ``args`` or keyed ``data``."""

    event: str
    args: Optional[List[Any]] = None
    data: Optional[Dict[str, Any]] = None

    def to_inbound(self) -> InboundMessage:
        if self.data is not None:
            return InboundMessage.model_validate(self.data)
        args = list(self.args or [])
        if len(args) != 4:
            raise ValueError(f"{self.event} expects 4 arguments, got {len(args)}")
        # args[0] is the client's text field; it is replaced by the server prefix.
        _text, user, message, date_time = args
        return InboundMessage.model_validate({"user": user, "message": message, "dateTime": date_time})


class EventFrame(BaseModel):
    """Server -> client frame."""

    event: str
    args: List[Any] = Field(default_factory=list)


class ErrorFrame(BaseModel):
    type: str = "error"
    error: str
    detail: str = ""
    retry_after: Optional[int] = None
