"""
Serialization collaborator: Value <-> text.

The editing core only relies on the round-trip contract
``deserialize(serialize(v)) == v`` with object key order and array element
order preserved. JsonCodec is the default implementation; anything with the
same two methods (see Codec) can be handed to the workspace instead.
"""

import json
import math
from typing import Any, List, Optional, Protocol, Tuple

from jsonstate.errors import ParseError
from jsonstate.value_model import ObjectNode, Value, as_value, to_python


class Codec(Protocol):
    def serialize(self, value: Value) -> str:
        ...

    def deserialize(self, text: str) -> Value:
        ...


def _reject_constant(name: str) -> Any:
    raise ParseError(f"Non-standard JSON constant {name!r} is not supported")


def _parse_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise ParseError(f"Number {text!r} is out of range")
    return number


def _build_object(pairs: List[Tuple[str, Any]]) -> ObjectNode:
    # Duplicate keys: last value wins, kept at the first occurrence's position
    merged = {}
    for key, child in pairs:
        merged[key] = child
    return ObjectNode(tuple((key, as_value(child)) for key, child in merged.items()))


class JsonCodec:
    """JSON text codec that keeps key order."""

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    def serialize(self, value: Value) -> str:
        return json.dumps(to_python(as_value(value)), indent=self.indent, ensure_ascii=False, allow_nan=False)

    def deserialize(self, text: str) -> Value:
        """Parse JSON text into a Value.

        Raises:
            ParseError: malformed text, non-finite numbers, nesting too
                deep to parse, or literals the interpreter cannot represent.
        """
        if not isinstance(text, str):
            raise ParseError(f"Expected text, got {type(text).__name__}")
        try:
            parsed = json.loads(
                text,
                object_pairs_hook=_build_object,
                parse_constant=_reject_constant,
                parse_float=_parse_float,
            )
            return as_value(parsed)
        except ParseError:
            raise
        except json.JSONDecodeError as e:
            raise ParseError(e.msg, e.lineno, e.colno) from e
        except ValueError as e:
            # e.g. integer literals beyond the interpreter's digit limit
            raise ParseError(str(e)) from e
        except RecursionError as e:
            raise ParseError("Document is nested too deeply") from e


_DEFAULT_CODEC = JsonCodec()


def serialize(value: Value, indent: Optional[int] = 2) -> str:
    """Serialize ``value`` to JSON text."""
    if indent == _DEFAULT_CODEC.indent:
        return _DEFAULT_CODEC.serialize(value)
    return JsonCodec(indent=indent).serialize(value)


def deserialize(text: str) -> Value:
    """Parse JSON text into a Value; raises ParseError on bad input."""
    return _DEFAULT_CODEC.deserialize(text)
