from .constants import (
    RELAY_TYPES,
    T_CLEAR,
    T_CURSOR,
    T_DRAW,
    T_ERROR,
    T_HELLO,
    T_RECOGNITION_RESULT,
    T_RECOGNIZE_IMAGE,
)

__all__ = [
    "RELAY_TYPES",
    "T_CLEAR",
    "T_CURSOR",
    "T_DRAW",
    "T_ERROR",
    "T_HELLO",
    "T_RECOGNITION_RESULT",
    "T_RECOGNIZE_IMAGE",
]
