from functools import wraps
from typing import Any, Callable, TypeVar, cast

T = TypeVar("T", bound=Callable[..., Any])


def operation(**config: Any) -> Callable[[T], T]:
    def decorator(func: T) -> T:
        setattr(func, "__operation__", True)
        setattr(func, "__config__", config)

        @wraps(func)
        def wrapper(self, *args, **kwargs) -> Any:
            if hasattr(self, "__provider__") and (
                self.__provider__.__supports__(func.__name__)
            ):
                return self.__run__(func.__name__, *args, **kwargs)
            return func(self, *args, **kwargs)

        return cast(T, wrapper)

    return decorator
