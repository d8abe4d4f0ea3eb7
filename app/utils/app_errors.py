"""Application errors raised by the classroom domain.

Domain components raise ``AppError``; the realtime boundary catches it and
turns it into a silent no-op or an explicit negative reply.
"""

import inspect
from enum import Enum
from uuid import uuid4


class AppErrorCode(str, Enum):
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_UNKNOWN_SENDER = "E_UNKNOWN_SENDER"
    E_NOT_ADMIN = "E_NOT_ADMIN"
    E_TARGET_NOT_FOUND = "E_TARGET_NOT_FOUND"
    E_DRAW_DENIED = "E_DRAW_DENIED"

    def __str__(self) -> str:
        return self.value


class AppError(Exception):
    """Error with a stable code, a human readable message and the raising site."""

    def __init__(self, errcode: AppErrorCode | str, errmesg: str = ""):
        self.errcode = str(errcode)
        self.errmesg = errmesg or self.errcode
        self.erresid = uuid4().hex[:10]

        caller_frame = inspect.stack()[1]
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

        super().__init__(f"{self.errcode}: {self.errmesg}")
