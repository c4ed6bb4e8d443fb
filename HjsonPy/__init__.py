"""HjsonPy: read and write Hjson, the human-friendly JSON superset."""

from .decoder import HjsonReader, unmarshal
from .encoder import HjsonWriter, marshal, marshal_json, marshal_with_options
from .errors import HjsonError, HjsonFileError, HjsonSyntaxError, IndexOutOfBounds, TypeMismatch
from .files import marshal_to_file, unmarshal_from_file
from .merge import merge
from .number_parser import HjsonNumberParser
from .options import DecoderOptions, EncoderOptions, default_options
from .value import Type, Value

__version__ = "0.1.0"

__all__ = [
    "DecoderOptions",
    "EncoderOptions",
    "HjsonError",
    "HjsonFileError",
    "HjsonNumberParser",
    "HjsonReader",
    "HjsonSyntaxError",
    "HjsonWriter",
    "IndexOutOfBounds",
    "Type",
    "TypeMismatch",
    "Value",
    "default_options",
    "marshal",
    "marshal_json",
    "marshal_to_file",
    "marshal_with_options",
    "merge",
    "unmarshal",
    "unmarshal_from_file",
]
