from .gateway import DEFAULT_OPTIONS, BaseGateway
from .statement import BaseStatement, FetchMode, ParamType, infer_param_type

__all__ = (
    "DEFAULT_OPTIONS",
    "BaseGateway",
    "BaseStatement",
    "FetchMode",
    "ParamType",
    "infer_param_type",
)
