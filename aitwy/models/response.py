"""Response envelope shared by every account-service endpoint."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """A single request validation failure."""

    field: str
    message: str


class ApiResponse(BaseModel):
    """Envelope: ``{success, message?, data?, error?, errors?}``.

    Attributes:
        success: Whether the operation succeeded
        message: Human-readable outcome shown to the user
        data: Operation payload
        error: Internal error text (server errors only)
        errors: Field-level validation failures
        requires_verification: Set on login attempts against unverified accounts
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None
    errors: Optional[List[FieldError]] = None
    requires_verification: Optional[bool] = Field(default=None, alias="requiresVerification")

    def to_content(self) -> dict:
        """Serialize without unset optional keys, using the wire key names."""
        content: dict = {"success": self.success}
        if self.message is not None:
            content["message"] = self.message
        if self.data is not None:
            content["data"] = self.data
        if self.error is not None:
            content["error"] = self.error
        if self.errors is not None:
            content["errors"] = [e.model_dump() for e in self.errors]
        if self.requires_verification is not None:
            content["requiresVerification"] = self.requires_verification
        return content


def success_response(message: Optional[str] = None, data: Any = None) -> dict:
    """Build a success envelope; pydantic payloads are dumped by alias."""
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    return ApiResponse(success=True, message=message, data=data).to_content()


def error_response(
    message: str,
    error: Optional[str] = None,
    errors: Optional[List[FieldError]] = None,
    requires_verification: Optional[bool] = None,
) -> dict:
    """Build a failure envelope."""
    return ApiResponse(
        success=False,
        message=message,
        error=error,
        errors=errors,
        requires_verification=requires_verification,
    ).to_content()
