from ._component import Component, load_provider
from ._decorators import operation
from ._log_helper import debug, info, warn
from ._provider import Provider
from ._response import Response
from .config import DEFAULT_SIZE, IdType, MapperConfig
from .data_model import DataModel, FrozenDataModel

__all__ = [
    "Component",
    "DataModel",
    "DEFAULT_SIZE",
    "FrozenDataModel",
    "IdType",
    "MapperConfig",
    "Provider",
    "Response",
    "debug",
    "info",
    "load_provider",
    "operation",
    "warn",
]
