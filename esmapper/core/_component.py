from __future__ import annotations

import importlib
import inspect
from typing import Any

from ._provider import Provider
from ._response import Response
from .exceptions import UnsupportedOperationError


class Component:
    __provider__: Provider
    __unpack__: bool
    __native__: bool

    def __init__(
        self,
        **kwargs,
    ):
        self.__native__ = kwargs.pop("__native__", False)
        self.__unpack__ = kwargs.pop("__unpack__", False)
        if "__provider__" in kwargs:
            self.__bind__(kwargs.pop("__provider__"))

    def __bind__(
        self,
        provider: Provider | dict | str | None,
    ) -> None:
        if provider is None:
            return
        if isinstance(provider, Provider):
            provider.__component__ = self
            self.__provider__ = provider
            return
        if isinstance(provider, dict):
            provider = dict(provider)
            type = provider.pop("type")
            parameters = provider.pop("parameters", dict())
        else:
            type = provider
            parameters = dict()
        module_name = self.__class__.__module__.rsplit(".", 1)[0]
        self.__bind__(
            provider=load_provider(
                path=f"{module_name}.providers.{type}",
                parameters=parameters,
            )
        )

    def __setup__(self) -> None:
        self.__provider__.__setup__()

    def __run__(self, name: str, *args, **kwargs) -> Any:
        if not hasattr(self, "__provider__"):
            raise UnsupportedOperationError(
                f"{self.__class__.__name__} has no provider bound"
            )
        response = self.__provider__.__run__(name, *args, **kwargs)
        if isinstance(response, Response):
            if not self.__native__:
                response.native = None
            if self.__unpack__:
                return response.result
        return response


def load_provider(
    path: str,
    parameters: dict[str, Any] | None = None,
) -> Provider:
    module = importlib.import_module(path)
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if issubclass(cls, Provider) and cls.__module__ == path:
            return cls(**(parameters or {}))
    raise UnsupportedOperationError(f"Provider not found at {path}")
