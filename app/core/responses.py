from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    """Standard response envelope"""
    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = Field(default=True)

    @model_validator(mode="after")
    def _derive_success(self):
        self.success = self.status_code < 400
        return self
