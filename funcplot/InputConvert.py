# === SECTION: InputConvert [id: InputConvert]===
from __future__ import annotations

import math
from typing import Any

import numpy as np

from .errors import ExpressionSyntaxError, InvalidArgumentError
from .expression_parser import X, parse_constant
from .numpify import numpify_cached


def InputConvert(obj: Any, name: str = "value", *, allow_infinite: bool = False) -> float:
    """
    Convert `obj` to a real float.

    Rules:
    - If `obj` is a real number (int, float, NumPy real): cast via float(obj).
    - If `obj` is a string:
        1) try float(s)
        2) else parse it as a constant expression ("pi/2", "2e", "-sqrt(2)")
           and evaluate it through the same compiled path used for plots.
    - bool and complex values are rejected.

    `name` is used in error messages. Non-finite results are rejected unless
    `allow_infinite=True` (NaN is always rejected).

    Raises
    ------
    InvalidArgumentError
        If conversion fails or the value is not an acceptable real number.
    """
    if isinstance(obj, bool) or isinstance(obj, (complex, np.complexfloating)):
        raise InvalidArgumentError(f"{name} must be a real number, got {obj!r}")

    if isinstance(obj, (int, float, np.integer, np.floating)):
        value = float(obj)
    elif isinstance(obj, str):
        value = _convert_text(obj, name)
    else:
        try:
            value = float(obj)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Could not convert {obj!r} to {name}.") from e

    if math.isnan(value) or (math.isinf(value) and not allow_infinite):
        raise InvalidArgumentError(f"{name} must be finite, got {value!r}")
    return value


def _convert_text(text: str, name: str) -> float:
    s = text.strip()
    if s == "":
        raise InvalidArgumentError(f"Cannot convert empty string to {name}.")

    # 1) Plain native conversion
    try:
        return float(s)
    except ValueError:
        pass

    # 2) Constant expression path
    try:
        compiled = numpify_cached(parse_constant(s), var=X)
        with np.errstate(all="ignore"):
            return float(compiled(0.0))
    except ExpressionSyntaxError as e:
        raise InvalidArgumentError(f"Could not convert {text!r} to {name}: {e}") from e
    except (ArithmeticError, ValueError, TypeError) as e:
        raise InvalidArgumentError(f"Could not evaluate {text!r} as {name}: {e}") from e

# === END OF SECTION: InputConvert [id: InputConvert]===
