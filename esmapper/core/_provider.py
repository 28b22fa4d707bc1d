from typing import Any

from .exceptions import UnsupportedOperationError


class Provider:
    __component__: Any
    __type__: str

    def __init__(self, **kwargs):
        self.__type__ = kwargs.pop("__type__", self.__class__.__module__)
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __setup__(self) -> None:
        pass

    def __supports__(self, name: str) -> bool:
        return callable(getattr(self, name, None))

    def __run__(self, name: str, *args, **kwargs) -> Any:
        if not self.__supports__(name):
            raise UnsupportedOperationError(
                f"{self.__class__.__name__} does not support {name}"
            )
        self.__setup__()
        return getattr(self, name)(*args, **kwargs)
