"""Core logic for JSON Type Extractor.

The Gradio playground lives in `app.py`. This package turns JSON into typed
Python values:
- parse JSON text into an immutable node tree
- navigate it with dot paths
- extract dataclasses, NamedTuples, pydantic models, collections and scalars
- plug in custom converters and explicit readers
"""
from .exceptions import (
    ConversionFailedError,
    DepthExceededError,
    ExtractionError,
    MissingRequiredFieldError,
    NoApplicableConverterError,
    TypeMismatchError,
)
from .extractable import ExtractableNode, extractable
from .extraction import extract, extract_opt
from .formats import DEFAULT_FORMATS, Formats, camel_to_snake, identity_naming, snake_to_camel
from .io_utils import parse_json, read_json_content
from .nodes import (
    JArray,
    JBool,
    JDecimal,
    JDouble,
    JInt,
    JNOTHING,
    JNULL,
    JNothing,
    JNull,
    JObject,
    JString,
    JValue,
    from_python,
)
from .readers import Failure, Reader, Success, TypeReader, reader
