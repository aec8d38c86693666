"""
Token Event Exceptions - Custom exception hierarchy.

Every error is scoped to one fetch call or one (operation, handler) unit.
The dispatcher catches the unit-scoped kinds and keeps the batch going.
"""

from typing import Any, Optional


class TokenEventError(Exception):
    """
    Base exception for all token event errors.
    
    Unit-scoped errors carry the operation id and handler type they were
    raised for. Errors raised below the dispatcher (e.g. from the identity
    generator) may not know the handler yet; the dispatcher binds it.
    """
    
    def __init__(
        self,
        message: str,
        operation_id: Optional[int] = None,
        handler_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation_id = operation_id
        self.handler_type = handler_type
        self.original_error = original_error
        self.context = context or {}
    
    @property
    def unit(self) -> Optional[tuple[Optional[int], Optional[str]]]:
        """(operation_id, handler_type), or None for fetch/config errors."""
        if self.operation_id is None and self.handler_type is None:
            return None
        return (self.operation_id, self.handler_type)
    
    def bind(self, operation_id: Optional[int], handler_type: str) -> "TokenEventError":
        """Fill in the unit fields the raiser did not know. Returns self."""
        if self.operation_id is None:
            self.operation_id = operation_id
        if self.handler_type is None:
            self.handler_type = handler_type
        return self
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        data: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
        }
        if self.unit is not None:
            data["unit"] = {"opid": self.operation_id, "handler": self.handler_type}
        if self.original_error is not None:
            data["cause"] = f"{type(self.original_error).__name__}: {self.original_error}"
        if self.context:
            data["context"] = self.context
        return data
    
    def __str__(self) -> str:
        text = self.message
        if self.unit is not None:
            text = f"{self.handler_type or '?'}@{self.operation_id}: {text}"
        if self.original_error is not None:
            text += f" (caused by {type(self.original_error).__name__})"
        return text


class FetchError(TokenEventError):
    """Upstream request failed. Fatal to the current fetch call."""
    
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, original_error=original_error, context=context)
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data


class MalformedOperationError(TokenEventError):
    """Operation lacks the fields needed to derive an event id."""
    
    def __init__(
        self,
        message: str,
        operation_id: Optional[int] = None,
        handler_type: Optional[str] = None,
        missing_fields: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, operation_id, handler_type, context=context)
        self.missing_fields = missing_fields or []
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["missing_fields"] = self.missing_fields
        return data


class UnsupportedDomainValueError(TokenEventError):
    """
    Expected business rejection raised by a handler.
    
    Not a bug: e.g. a sale settled in a currency we do not track.
    """
    
    def __init__(
        self,
        message: str,
        operation_id: Optional[int] = None,
        handler_type: Optional[str] = None,
        field_name: Optional[str] = None,
        value: Optional[Any] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, operation_id, handler_type, context=context)
        self.field_name = field_name
        self.value = value
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "field_name": self.field_name,
            "value": str(self.value)[:200] if self.value is not None else None,
        })
        return data


class SchemaViolationError(TokenEventError):
    """Extraction output does not satisfy the handler schema."""
    
    def __init__(
        self,
        message: str,
        operation_id: Optional[int] = None,
        handler_type: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, operation_id, handler_type, original_error, context)
        self.errors = errors or []
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConfigurationError(TokenEventError):
    """Invalid settings or handler declaration."""
    
    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, original_error=original_error, context=context)
        self.config_key = config_key
    
    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data
