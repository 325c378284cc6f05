from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Wire body; ``sessionId`` is left out until the backend has issued one."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ChatResponse(BaseModel):
    # Errors raised inside an agent come back with null response and sessionId.
    response: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    success: bool
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def ok(cls, response: str, session_id: str) -> "ChatResponse":
        return cls(response=response, session_id=session_id, success=True)

    @classmethod
    def failed(cls, error: str, session_id: Optional[str] = None) -> "ChatResponse":
        return cls(session_id=session_id, success=False, error=error)
