from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from .constants import T_ERROR, T_HELLO, T_RECOGNITION_RESULT, T_RECOGNIZE_IMAGE

# Drawing payloads (coordinates, color, stroke metadata) are opaque to the
# server: only `type` is read, the raw frame is what gets relayed.


class Envelope(BaseModel):
    """Any inbound frame. Extra keys are kept but never inspected."""

    model_config = ConfigDict(extra="allow")

    type: str


class RecognizeImage(BaseModel):
    type: Literal[T_RECOGNIZE_IMAGE]
    # base64, optionally prefixed with `data:image/<type>;base64,`
    image: str


class Hello(BaseModel):
    type: Literal[T_HELLO] = T_HELLO
    clients: int


class RecognitionResult(BaseModel):
    type: Literal[T_RECOGNITION_RESULT] = T_RECOGNITION_RESULT
    text: str


class ErrorReply(BaseModel):
    type: Literal[T_ERROR] = T_ERROR
    message: str = "server error processing request"
