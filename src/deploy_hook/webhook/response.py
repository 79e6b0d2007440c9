"""Response value returned for a handled notification."""

import json
from collections.abc import Mapping
from typing import Any

from deploy_hook.errors import MissingDataKeyError

# Code 0 means success; anything else is an error code.
CODE_SUCCESS = 0

HTTP_CODE_SUCCESS = 200
HTTP_CODE_ERROR = 400

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"


class Response:
    """
    Immutable result of handling a notification.

    Built either from a plain string, which becomes the data, or from a
    mapping with a required ``data`` entry and optional ``code``, ``status``
    and ``http_code`` overrides.
    """

    __slots__ = ("_data", "_code", "_status", "_http_code")

    def __init__(self, value: str | Mapping[str, Any]) -> None:
        if isinstance(value, str):
            value = {"data": value}

        if value.get("data") is None:
            raise MissingDataKeyError(
                'Key "data" is required in the response when it is a mapping.'
            )

        data = value["data"]
        if isinstance(data, Mapping):
            data = dict(data)
        self._data: str | Mapping[str, Any] = data
        self._code: int | None = value.get("code")
        self._status: str | None = value.get("status")
        self._http_code: int | None = value.get("http_code")

    @property
    def data(self) -> str | Mapping[str, Any]:
        return self._data

    @property
    def code(self) -> int:
        return CODE_SUCCESS if self._code is None else self._code

    @property
    def is_success(self) -> bool:
        return self.code == CODE_SUCCESS

    @property
    def status(self) -> str:
        if self._status is not None:
            return self._status
        return STATUS_SUCCESS if self.is_success else STATUS_ERROR

    @property
    def http_code(self) -> int:
        if self._http_code is not None:
            return self._http_code
        return HTTP_CODE_SUCCESS if self.is_success else HTTP_CODE_ERROR

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the outbound ``{code, http_code, status, data}`` shape."""
        return {
            "code": self.code,
            "http_code": self.http_code,
            "status": self.status,
            "data": self.data,
        }

    def to_json(self, indent: int | None = 4) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Response):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Response(code={self.code}, status={self.status!r}, data={self.data!r})"
