"""Load JSON documents into database tables as content-addressed records."""

from .db_connector import ConnectionFactory, Session
from .errors import (ConfigError, FieldNotFoundError, Json2DbError, LoadError,
                     MalformedExpressionError, TypeMismatchError)
from .id_expr import compile_expression, evaluate
from .loader import Loader
from .mapping_parser import load_mapping_file, parse_mappings
from .models import LoaderOptions, Mapping

__all__ = [
    "ConfigError",
    "ConnectionFactory",
    "FieldNotFoundError",
    "Json2DbError",
    "LoadError",
    "Loader",
    "LoaderOptions",
    "MalformedExpressionError",
    "Mapping",
    "Session",
    "TypeMismatchError",
    "compile_expression",
    "evaluate",
    "load_mapping_file",
    "parse_mappings",
]
