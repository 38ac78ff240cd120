from typing import TYPE_CHECKING, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from typing_extensions import Self

if TYPE_CHECKING:
    from twisted.web.http import Request


def set_cors(request: 'Request', method: str) -> None:
    request.setHeader(b'Access-Control-Allow-Origin', b'*')
    request.setHeader(b'Access-Control-Allow-Methods', method.encode('ascii'))
    request.setHeader(b'Access-Control-Allow-Headers', b'content-type')


class Response(BaseModel):
    def json_dumpb(self) -> bytes:
        return self.model_dump_json().encode('utf-8')


class ErrorResponse(Response):
    success: Literal[False] = False
    error: str


class QueryParams(BaseModel):
    """Request arguments parsed into a pydantic model.

    Twisted hands us every argument as a list of bytes. Fields not annotated
    as lists get the first value only.
    """
    model_config = ConfigDict(extra='ignore')

    @model_validator(mode='before')
    @classmethod
    def _unwrap_single_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        unwrapped = {}
        for key, value in data.items():
            field = cls.model_fields.get(key)
            is_list = field is not None and getattr(field.annotation, '__origin__', None) is list
            if isinstance(value, list) and not is_list:
                value = value[0] if value else None
            unwrapped[key] = value
        return unwrapped

    @classmethod
    def from_request(cls, request: 'Request') -> Union[Self, ErrorResponse]:
        encoding = 'utf-8'
        raw_args = (request.args or {}).items()
        args = {
            key.decode(encoding).removesuffix('[]'): [value.decode(encoding) for value in values]
            for key, values in raw_args
        }
        return cls.from_args(args)

    @classmethod
    def from_args(cls, args: dict[str, Any]) -> Union[Self, ErrorResponse]:
        try:
            return cls.model_validate(args)
        except ValidationError as error:
            return ErrorResponse(error=str(error))
