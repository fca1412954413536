"""Value algebra and closed namespace used by the constrained evaluator.

Values are plain Python objects so they can be compared and hashed without any
wrapper:

* numbers are always ``float`` (``nan`` and ``±inf`` included),
* booleans are ``bool``,
* strings are ``str``,
* arrays are ``tuple`` instances of values,
* the JavaScript ``undefined`` value is the :data:`UNDEFINED` singleton.

The helpers in this module reproduce the ECMAScript conversion and operator
rules for that algebra (``ToNumber``, ``ToString``, ``ToInt32``, strict and
loose equality, ``parseInt`` ...) because the challenge answers are compared
bit-for-bit against what a browser computes.  Nothing here executes code: the
namespace is a fixed table from dotted path to behaviour.
"""

from __future__ import annotations

import math
import re
import struct
from dataclasses import dataclass, replace
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from .exceptions import EvaluationError


class _Undefined:
    """The JavaScript ``undefined`` value."""

    __slots__ = ()
    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "undefined"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()

SandboxValue = Union[float, bool, str, Tuple["SandboxValue", ...], _Undefined]

NAN = float("nan")
INF = float("inf")

# WhiteSpace and LineTerminator code points trimmed by StringToNumber/parseInt.
_JS_WHITESPACE = (
    " \t\n\r\v\f\u00a0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006"
    "\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"
)

_DECIMAL_LITERAL_RE = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_RADIX_LITERAL_RE = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_FLOAT_PREFIX_RE = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Type helpers


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_array(value: object) -> bool:
    return isinstance(value, tuple)


def is_sandbox_value(value: object) -> bool:
    if value is UNDEFINED or isinstance(value, (bool, str)) or is_number(value):
        return True
    if isinstance(value, tuple):
        return all(is_sandbox_value(item) for item in value)
    return False


def type_of(value: SandboxValue) -> str:
    """Return the ``typeof`` string for ``value``."""

    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if is_number(value):
        return "number"
    if isinstance(value, tuple):
        return "object"
    raise EvaluationError(f"Value outside the sandbox algebra: {value!r}")


# ---------------------------------------------------------------------------
# Conversions


def to_boolean(value: SandboxValue) -> bool:
    if value is UNDEFINED:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value)
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    return True


def digits_to_number(digits: str, base: int) -> float:
    """Value of an unsigned digit string, ``Infinity`` beyond the double range."""

    if not digits:
        raise ValueError("no digits")
    digits = digits.lstrip("0")
    if not digits:
        return 0.0
    try:
        return float(int(digits, base))
    except OverflowError:
        return INF
    except ValueError:
        # int() refuses very long decimal strings; they overflow a double anyway
        if len(digits) > 400:
            return INF
        raise


def string_to_number(text: str) -> float:
    """ECMAScript ``StringToNumber``."""

    stripped = text.strip(_JS_WHITESPACE)
    if not stripped:
        return 0.0
    if _RADIX_LITERAL_RE.fullmatch(stripped):
        base = {"x": 16, "o": 8, "b": 2}[stripped[1].lower()]
        return digits_to_number(stripped[2:], base)
    if not _DECIMAL_LITERAL_RE.fullmatch(stripped):
        return NAN
    if stripped.lstrip("+-") == "Infinity":
        return -INF if stripped.startswith("-") else INF
    return float(stripped)


def to_number(value: SandboxValue) -> float:
    if value is UNDEFINED:
        return NAN
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        return string_to_number(value)
    if isinstance(value, tuple):
        return string_to_number(to_string(value))
    raise EvaluationError(f"Cannot convert {value!r} to a number")


def _shortest_digits(value: float) -> Tuple[str, int]:
    """Return ``(digits, n)`` such that ``value == 0.digits * 10 ** n``."""

    mantissa, _, exponent = repr(value).partition("e")
    int_part, _, frac_part = mantissa.partition(".")
    combined = int_part + frac_part
    stripped = combined.lstrip("0")
    point = len(int_part) + (int(exponent) if exponent else 0)
    point -= len(combined) - len(stripped)
    return stripped.rstrip("0"), point


def number_to_string(value: float) -> str:
    """ECMAScript ``Number::toString`` for radix 10."""

    if math.isnan(value):
        return "NaN"
    if value == 0:
        return "0"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value < 0:
        return "-" + number_to_string(-value)

    digits, n = _shortest_digits(float(value))
    k = len(digits)
    if k <= n <= 21:
        return digits + "0" * (n - k)
    if 0 < n <= 21:
        return digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return "0." + "0" * (-n) + digits
    exponent = n - 1
    sign = "+" if exponent >= 0 else "-"
    if k == 1:
        return f"{digits}e{sign}{abs(exponent)}"
    return f"{digits[0]}.{digits[1:]}e{sign}{abs(exponent)}"


def to_string(value: SandboxValue) -> str:
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if is_number(value):
        return number_to_string(float(value))
    if isinstance(value, tuple):
        return ",".join("" if item is UNDEFINED else to_string(item) for item in value)
    raise EvaluationError(f"Cannot convert {value!r} to a string")


def to_primitive(value: SandboxValue) -> SandboxValue:
    if isinstance(value, tuple):
        return to_string(value)
    return value


def to_int32(value: SandboxValue) -> int:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    result = int(number) & 0xFFFFFFFF
    if result >= 0x80000000:
        result -= 0x100000000
    return result


def to_uint32(value: SandboxValue) -> int:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number) & 0xFFFFFFFF


# ---------------------------------------------------------------------------
# Operators


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and value == math.floor(value) and math.fmod(value, 2.0) != 0


def js_divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return NAN
        negative = (left < 0) != (math.copysign(1.0, right) < 0)
        return -INF if negative else INF
    return left / right


def js_remainder(left: float, right: float) -> float:
    if math.isnan(left) or math.isnan(right) or math.isinf(left) or right == 0:
        return NAN
    if math.isinf(right) or left == 0:
        return left
    return math.fmod(left, right)


def js_pow(base: float, exponent: float) -> float:
    if math.isnan(exponent):
        return NAN
    if exponent == 0:
        return 1.0
    if math.isnan(base):
        return NAN
    if abs(base) == 1 and math.isinf(exponent):
        return NAN
    try:
        return math.pow(base, exponent)
    except ZeroDivisionError:
        return math.copysign(INF, base) if _is_odd_integer(exponent) else INF
    except ValueError:
        if base == 0:
            return math.copysign(INF, base) if _is_odd_integer(exponent) else INF
        return NAN
    except OverflowError:
        return -INF if base < 0 and _is_odd_integer(exponent) else INF


def _less_than(left: SandboxValue, right: SandboxValue) -> Optional[bool]:
    """Abstract relational comparison; ``None`` stands for *undefined*."""

    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) and isinstance(right, str):
        return left < right
    lnum = to_number(left)
    rnum = to_number(right)
    if math.isnan(lnum) or math.isnan(rnum):
        return None
    return lnum < rnum


def _kind(value: SandboxValue) -> str:
    return type_of(value)


def strict_equals(left: SandboxValue, right: SandboxValue) -> bool:
    """``===``.  ``NaN`` never equals itself; ``+0`` equals ``-0``."""

    if _kind(left) != _kind(right):
        return False
    if isinstance(left, tuple):
        raise EvaluationError("Array identity is not modelled by the sandbox")
    if left is UNDEFINED:
        return True
    return left == right


def loose_equals(left: SandboxValue, right: SandboxValue) -> bool:
    """``==`` restricted to the sandbox algebra (no ``null``, no objects)."""

    lkind, rkind = _kind(left), _kind(right)
    if lkind == rkind:
        return strict_equals(left, right)
    if left is UNDEFINED or right is UNDEFINED:
        return False
    if lkind == "boolean":
        return loose_equals(to_number(left), right)
    if rkind == "boolean":
        return loose_equals(left, to_number(right))
    if lkind == "object":
        return loose_equals(to_primitive(left), right)
    if rkind == "object":
        return loose_equals(left, to_primitive(right))
    return to_number(left) == to_number(right)


def _add(left: SandboxValue, right: SandboxValue) -> SandboxValue:
    left = to_primitive(left)
    right = to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    return to_number(left) + to_number(right)


def _shift_count(value: SandboxValue) -> int:
    return to_uint32(value) & 0x1F


def _wrap_int32(value: int) -> float:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return float(value)


_BINARY_OPERATORS: Dict[str, Callable[[SandboxValue, SandboxValue], SandboxValue]] = {
    "+": _add,
    "-": lambda l, r: to_number(l) - to_number(r),
    "*": lambda l, r: to_number(l) * to_number(r),
    "/": lambda l, r: js_divide(to_number(l), to_number(r)),
    "%": lambda l, r: js_remainder(to_number(l), to_number(r)),
    "**": lambda l, r: js_pow(to_number(l), to_number(r)),
    "<": lambda l, r: _less_than(l, r) is True,
    ">": lambda l, r: _less_than(r, l) is True,
    "<=": lambda l, r: _less_than(r, l) is False,
    ">=": lambda l, r: _less_than(l, r) is False,
    "==": loose_equals,
    "!=": lambda l, r: not loose_equals(l, r),
    "===": strict_equals,
    "!==": lambda l, r: not strict_equals(l, r),
    "&": lambda l, r: float(to_int32(l) & to_int32(r)),
    "|": lambda l, r: float(to_int32(l) | to_int32(r)),
    "^": lambda l, r: float(to_int32(l) ^ to_int32(r)),
    "<<": lambda l, r: _wrap_int32(to_int32(l) << _shift_count(r)),
    ">>": lambda l, r: float(to_int32(l) >> _shift_count(r)),
    ">>>": lambda l, r: float(to_uint32(l) >> _shift_count(r)),
}

LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})
BINARY_OPERATORS = frozenset(_BINARY_OPERATORS)


def binary_op(op: str, left: SandboxValue, right: SandboxValue) -> SandboxValue:
    """Apply a non short-circuiting binary operator."""

    try:
        handler = _BINARY_OPERATORS[op]
    except KeyError:
        raise EvaluationError(f"Unsupported binary operator {op!r}") from None
    return handler(left, right)


def unary_op(op: str, operand: SandboxValue) -> SandboxValue:
    if op == "-":
        return -to_number(operand)
    if op == "+":
        return to_number(operand)
    if op == "!":
        return not to_boolean(operand)
    if op == "~":
        return float(~to_int32(operand))
    if op == "typeof":
        return type_of(operand)
    if op == "void":
        return UNDEFINED
    raise EvaluationError(f"Unsupported unary operator {op!r}")


# ---------------------------------------------------------------------------
# Global functions


def parse_int(string: SandboxValue, radix: SandboxValue = UNDEFINED) -> float:
    """ECMAScript ``parseInt``."""

    text = to_string(string).lstrip(_JS_WHITESPACE)
    sign = 1.0
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1.0
        text = text[1:]
    base = to_int32(radix)
    strip_prefix = True
    if base != 0:
        if base < 2 or base > 36:
            return NAN
        if base != 16:
            strip_prefix = False
    else:
        base = 10
    if strip_prefix and text[:2] in ("0x", "0X"):
        text = text[2:]
        base = 16
    valid = _DIGITS[:base]
    end = 0
    while end < len(text) and text[end].lower() in valid:
        end += 1
    if end == 0:
        return NAN
    return sign * digits_to_number(text[:end], base)


def parse_float(string: SandboxValue) -> float:
    text = to_string(string).lstrip(_JS_WHITESPACE)
    match = _FLOAT_PREFIX_RE.match(text)
    if match is None:
        return NAN
    literal = match.group(0)
    if literal.lstrip("+-") == "Infinity":
        return -INF if literal.startswith("-") else INF
    return float(literal)


# ---------------------------------------------------------------------------
# Math functions with ECMAScript edge cases


def _domain(fn: Callable[[float], float]) -> Callable[[float], float]:
    """Map Python's domain errors onto ``NaN``."""

    def wrapper(x: float) -> float:
        if math.isnan(x):
            return NAN
        try:
            return fn(x)
        except ValueError:
            return NAN

    wrapper.__name__ = fn.__name__
    return wrapper


def _log_family(fn: Callable[[float], float], pole: float = 0.0) -> Callable[[float], float]:
    def wrapper(x: float) -> float:
        if math.isnan(x) or x < pole:
            return NAN
        if x == pole:
            return -INF
        if math.isinf(x):
            return INF
        return fn(x)

    wrapper.__name__ = fn.__name__
    return wrapper


def _overflowing(fn: Callable[[float], float], signed: bool = False) -> Callable[[float], float]:
    def wrapper(x: float) -> float:
        try:
            return fn(x)
        except OverflowError:
            return math.copysign(INF, x) if signed else INF

    wrapper.__name__ = fn.__name__
    return wrapper


def _integral(fn: Callable[[float], int]) -> Callable[[float], float]:
    def wrapper(x: float) -> float:
        if not math.isfinite(x) or x == 0:
            return x
        result = float(fn(x))
        if result == 0:
            return math.copysign(0.0, x)
        return result

    wrapper.__name__ = fn.__name__
    return wrapper


def _atanh(x: float) -> float:
    if math.isnan(x) or abs(x) > 1:
        return NAN
    if abs(x) == 1:
        return math.copysign(INF, x)
    return math.atanh(x)


def _round(x: float) -> float:
    if not math.isfinite(x) or x == 0:
        return x
    result = math.floor(x)
    if x - result >= 0.5:
        result += 1
    if result == 0 and x < 0:
        return -0.0
    return float(result)


def _sign(x: float) -> float:
    if math.isnan(x) or x == 0:
        return x
    return 1.0 if x > 0 else -1.0


def _cbrt(x: float) -> float:
    if not math.isfinite(x) or x == 0:
        return x
    return math.cbrt(x)


def _clz32(x: float) -> float:
    return float(32 - to_uint32(x).bit_length())


def _fround(x: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", x))[0]
    except OverflowError:
        return math.copysign(INF, x)


def _imul(a: float, b: float) -> float:
    return _wrap_int32(to_int32(a) * to_int32(b))


def _hypot(*values: float) -> float:
    return math.hypot(*values)


def _max(*values: float) -> float:
    result = -INF
    for value in values:
        if math.isnan(value):
            return NAN
        if value > result or (value == 0 and result == 0 and math.copysign(1.0, result) < 0):
            result = value
    return result


def _min(*values: float) -> float:
    result = INF
    for value in values:
        if math.isnan(value):
            return NAN
        if value < result or (value == 0 and result == 0 and math.copysign(1.0, value) < 0):
            result = value
    return result


def _numeric(fn: Callable[..., float]) -> Callable[..., float]:
    def wrapper(*args: SandboxValue) -> float:
        return fn(*(to_number(arg) for arg in args))

    wrapper.__name__ = getattr(fn, "__name__", "numeric")
    return wrapper


MATH_CONSTANTS: Dict[str, float] = {
    "E": math.e,
    "LN10": math.log(10),
    "LN2": math.log(2),
    "LOG10E": 1 / math.log(10),
    "LOG2E": 1 / math.log(2),
    "PI": math.pi,
    "SQRT1_2": math.sqrt(0.5),
    "SQRT2": math.sqrt(2),
}

# name -> (implementation, min arity, max arity or None for variadic)
MATH_FUNCTIONS: Dict[str, Tuple[Callable[..., float], int, Optional[int]]] = {
    "abs": (abs, 1, 1),
    "acos": (_domain(math.acos), 1, 1),
    "acosh": (_domain(math.acosh), 1, 1),
    "asin": (_domain(math.asin), 1, 1),
    "asinh": (_domain(math.asinh), 1, 1),
    "atan": (_domain(math.atan), 1, 1),
    "atan2": (math.atan2, 2, 2),
    "atanh": (_atanh, 1, 1),
    "cbrt": (_cbrt, 1, 1),
    "ceil": (_integral(math.ceil), 1, 1),
    "clz32": (_clz32, 1, 1),
    "cos": (_domain(math.cos), 1, 1),
    "cosh": (_overflowing(_domain(math.cosh)), 1, 1),
    "exp": (_overflowing(_domain(math.exp)), 1, 1),
    "expm1": (_overflowing(_domain(math.expm1)), 1, 1),
    "floor": (_integral(math.floor), 1, 1),
    "fround": (_fround, 1, 1),
    "hypot": (_hypot, 0, None),
    "imul": (_imul, 2, 2),
    "log": (_log_family(math.log), 1, 1),
    "log10": (_log_family(math.log10), 1, 1),
    "log1p": (_log_family(math.log1p, pole=-1.0), 1, 1),
    "log2": (_log_family(math.log2), 1, 1),
    "max": (_max, 0, None),
    "min": (_min, 0, None),
    "pow": (js_pow, 2, 2),
    "round": (_round, 1, 1),
    "sign": (_sign, 1, 1),
    "sin": (_domain(math.sin), 1, 1),
    "sinh": (_overflowing(_domain(math.sinh), signed=True), 1, 1),
    "sqrt": (_domain(math.sqrt), 1, 1),
    "tan": (_domain(math.tan), 1, 1),
    "tanh": (_domain(math.tanh), 1, 1),
    "trunc": (_integral(math.trunc), 1, 1),
}


# ---------------------------------------------------------------------------
# Namespace


CONSTANT = "constant"
FUNCTION = "function"
MEASURED_FIELD = "measured_field"
MEASURED_CALL = "measured_call"

MEASURED_KINDS = frozenset({MEASURED_FIELD, MEASURED_CALL})

PROCESS_KEYS_PATH = "Object.keys"
MARKER_PATH = "globalThis.marker"


@dataclass(frozen=True)
class NamespaceEntry:
    """Behaviour bound to a single dotted path."""

    path: str
    kind: str
    value: SandboxValue = UNDEFINED
    function: Callable[..., SandboxValue] | None = None
    min_arity: int = 0
    max_arity: int | None = 0
    measured: bool = False

    @property
    def is_callable(self) -> bool:
        return self.kind in (FUNCTION, MEASURED_CALL)

    def check_arity(self, count: int) -> None:
        if count < self.min_arity or (self.max_arity is not None and count > self.max_arity):
            if self.max_arity is None:
                expected = f"at least {self.min_arity}"
            elif self.min_arity == self.max_arity:
                expected = str(self.min_arity)
            else:
                expected = f"{self.min_arity}..{self.max_arity}"
            raise EvaluationError(
                f"{self.path} expects {expected} argument(s), got {count}"
            )

    def read(self) -> SandboxValue:
        """Return the value of a field entry."""

        if self.kind == CONSTANT:
            return self.value
        if self.kind == MEASURED_FIELD:
            return self.measured_value()
        raise EvaluationError(f"{self.path} is a function and cannot be read as a value")

    def measured_value(self) -> SandboxValue:
        if not self.measured:
            raise EvaluationError(f"{self.path} has not been measured")
        return self.value

    def call(self, args: Tuple[SandboxValue, ...]) -> SandboxValue:
        self.check_arity(len(args))
        if self.kind == MEASURED_CALL:
            return self.measured_value()
        if self.kind != FUNCTION or self.function is None:
            raise EvaluationError(f"{self.path} is not callable")
        return self.function(*args)


class SandboxNamespace(Mapping[str, NamespaceEntry]):
    """Closed, enumerable table of dotted paths the evaluator may resolve."""

    def __init__(self, entries: Iterable[NamespaceEntry]) -> None:
        self._entries: Dict[str, NamespaceEntry] = {entry.path: entry for entry in entries}

    def __getitem__(self, path: str) -> NamespaceEntry:
        return self._entries[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, path: str) -> NamespaceEntry:
        try:
            return self._entries[path]
        except KeyError:
            raise EvaluationError(f"Unknown namespace path {path!r}") from None

    def roots(self) -> frozenset[str]:
        return frozenset(path.split(".", 1)[0] for path in self._entries)

    def measured_paths(self) -> Tuple[str, ...]:
        return tuple(path for path, entry in self._entries.items() if entry.kind in MEASURED_KINDS)

    def with_measurements(self, measurements: Mapping[str, SandboxValue]) -> "SandboxNamespace":
        """Return a copy with the measured entries bound to ``measurements``."""

        entries = dict(self._entries)
        for path, value in measurements.items():
            entry = entries.get(path)
            if entry is None or entry.kind not in MEASURED_KINDS:
                raise EvaluationError(f"{path!r} is not a measured namespace path")
            if not is_sandbox_value(value):
                raise EvaluationError(f"Measured value for {path!r} is outside the sandbox algebra")
            entries[path] = replace(entry, value=value, measured=True)
        return SandboxNamespace(entries.values())


def build_default_namespace() -> SandboxNamespace:
    entries = [
        NamespaceEntry("NaN", CONSTANT, NAN),
        NamespaceEntry("Infinity", CONSTANT, INF),
        NamespaceEntry("undefined", CONSTANT, UNDEFINED),
    ]
    for name, value in MATH_CONSTANTS.items():
        entries.append(NamespaceEntry(f"Math.{name}", CONSTANT, value))
    for name, (fn, min_arity, max_arity) in MATH_FUNCTIONS.items():
        entries.append(
            NamespaceEntry(
                f"Math.{name}",
                FUNCTION,
                function=_numeric(fn),
                min_arity=min_arity,
                max_arity=max_arity,
            )
        )
    entries.extend(
        [
            NamespaceEntry("parseInt", FUNCTION, function=parse_int, min_arity=1, max_arity=2),
            NamespaceEntry("parseFloat", FUNCTION, function=parse_float, min_arity=1, max_arity=1),
            NamespaceEntry(
                "isNaN",
                FUNCTION,
                function=lambda value: math.isnan(to_number(value)),
                min_arity=1,
                max_arity=1,
            ),
            NamespaceEntry(
                "isFinite",
                FUNCTION,
                function=lambda value: math.isfinite(to_number(value)),
                min_arity=1,
                max_arity=1,
            ),
            NamespaceEntry(PROCESS_KEYS_PATH, MEASURED_CALL, min_arity=1, max_arity=1),
            NamespaceEntry(MARKER_PATH, MEASURED_FIELD),
        ]
    )
    return SandboxNamespace(entries)


DEFAULT_NAMESPACE = build_default_namespace()


__all__ = [
    "CONSTANT",
    "DEFAULT_NAMESPACE",
    "FUNCTION",
    "LOGICAL_OPERATORS",
    "BINARY_OPERATORS",
    "MARKER_PATH",
    "MEASURED_CALL",
    "MEASURED_FIELD",
    "NamespaceEntry",
    "PROCESS_KEYS_PATH",
    "SandboxNamespace",
    "SandboxValue",
    "UNDEFINED",
    "binary_op",
    "build_default_namespace",
    "digits_to_number",
    "is_array",
    "is_number",
    "is_sandbox_value",
    "loose_equals",
    "number_to_string",
    "parse_float",
    "parse_int",
    "strict_equals",
    "string_to_number",
    "to_boolean",
    "to_int32",
    "to_number",
    "to_string",
    "to_uint32",
    "type_of",
    "unary_op",
]
