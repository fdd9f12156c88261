# espocrm_client/models/types.py
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1


class ValueKind(Enum):
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    MAP = "map"


@dataclass(frozen=True)
class Value:
    """
    Tagged filter value. The tag is always explicit, so True and 1 never
    compare equal and a string "1" never becomes an integer.

    Build with the constructors rather than the dataclass directly:
        Value.string("a"), Value.integer(5), Value.boolean(True),
        Value.array([...]), Value.map({...}), Value.of(python_obj)
    """

    kind: ValueKind
    payload: Any

    # ---- constructors ----

    @classmethod
    def string(cls, text: str) -> "Value":
        if not isinstance(text, str):
            raise TypeError(f"Value.string expects str, got {type(text).__name__}")
        return cls(ValueKind.STRING, text)

    @classmethod
    def integer(cls, number: int) -> "Value":
        if isinstance(number, bool) or not isinstance(number, int):
            raise TypeError(f"Value.integer expects int, got {type(number).__name__}")
        if not (_I64_MIN <= number <= _I64_MAX):
            raise ValueError("Value.integer must fit in a signed 64-bit integer")
        return cls(ValueKind.INTEGER, number)

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        if not isinstance(flag, bool):
            raise TypeError(f"Value.boolean expects bool, got {type(flag).__name__}")
        return cls(ValueKind.BOOLEAN, flag)

    @classmethod
    def array(cls, items: Iterable[Any]) -> "Value":
        return cls(ValueKind.ARRAY, tuple(_coerce(v) for v in items))

    @classmethod
    def map(cls, entries: Mapping[str, Any]) -> "Value":
        # insertion order is kept; it is the order the entries are rendered in
        out = []
        for k, v in entries.items():
            if not isinstance(k, str):
                raise TypeError("Value.map keys must be str")
            out.append((k, _coerce(v)))
        return cls(ValueKind.MAP, tuple(out))

    @classmethod
    def of(cls, obj: Any) -> "Value":
        """Convert plain Python data (str/int/bool/list/tuple/dict) to a Value."""
        if isinstance(obj, Value):
            return obj
        # bool first: bool is a subclass of int
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, int):
            return cls.integer(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, (list, tuple)):
            return cls.array(obj)
        if isinstance(obj, Mapping):
            return cls.map(obj)
        if obj is None:
            raise TypeError("None is not a filter value; leave Where.value unset instead")
        raise TypeError(f"Unsupported filter value type: {type(obj).__name__}")

    # ---- accessors ----

    def as_text(self) -> str:
        """Wire text of a scalar value."""
        if self.kind is ValueKind.BOOLEAN:
            return "true" if self.payload else "false"
        if self.kind is ValueKind.INTEGER:
            return str(self.payload)
        if self.kind is ValueKind.STRING:
            return self.payload
        raise TypeError(f"{self.kind.value} value has no scalar text form")

    def to_python(self) -> Any:
        if self.kind is ValueKind.ARRAY:
            return [v.to_python() for v in self.payload]
        if self.kind is ValueKind.MAP:
            return {k: v.to_python() for k, v in self.payload}
        return self.payload


def _coerce(v: Any) -> Value:
    return v if isinstance(v, Value) else Value.of(v)


class FilterType(Enum):
    """Filter operators understood by the remote API. Value is the wire token."""

    Equals = "equals"
    NotEquals = "notEquals"
    GreaterThan = "greaterThan"
    LessThan = "lessThan"
    GreaterThanOrEquals = "greaterThanOrEquals"
    LessThanOrEquals = "lessThanOrEquals"
    IsNull = "isNull"
    IsNotNull = "isNotNull"
    IsTrue = "isTrue"
    IsFalse = "isFalse"
    LinkedWith = "linkedWith"
    NotLinkedWith = "notLinkedWith"
    IsLinked = "isLinked"
    IsNotLinked = "isNotLinked"
    In = "in"
    NotIn = "notIn"
    Contains = "contains"
    NotContains = "notContains"
    StartsWith = "startsWith"
    EndsWith = "endsWith"
    Like = "like"
    NotLike = "notLike"
    Or = "or"
    And = "and"
    Today = "today"
    Past = "past"
    Future = "future"
    LastSevenDays = "lastSevenDays"
    CurrentMonth = "currentMonth"
    LastMonth = "lastMonth"
    NextMonth = "nextMonth"
    CurrentQuarter = "currentQuarter"
    LastQuarter = "lastQuarter"
    CurrentYear = "currentYear"
    LastYear = "lastYear"
    CurrentFiscalYear = "currentFiscalYear"
    LastFiscalYear = "lastFiscalYear"
    CurrentFiscalQuarter = "currentFiscalQuarter"
    LastFiscalQuarter = "lastFiscalQuarter"
    LastXDays = "lastXDays"
    NextXDays = "nextXDays"
    OlderThanXDays = "olderThanXDays"
    AfterXDays = "afterXDays"
    Between = "between"
    ArrayAnyOf = "arrayAnyOf"
    ArrayNoneOf = "arrayNoneOf"
    ArrayAllOf = "arrayAllOf"
    ArrayIsEmpty = "arrayIsEmpty"
    ArrayIsNotEmpty = "arrayIsNotEmpty"

    def token(self) -> str:
        return self.value

    @classmethod
    def from_token(cls, token: str) -> "FilterType":
        try:
            return cls(token)
        except ValueError:
            raise ValueError(f"Unknown filter type: {token!r}") from None


class Order(Enum):
    Asc = "asc"
    Desc = "desc"

    def token(self) -> str:
        return self.value


@dataclass(frozen=True)
class Where:
    """One filter condition. `value` stays None for operand-less operators."""

    type: FilterType
    attribute: str
    value: Optional[Value] = None

    def __post_init__(self) -> None:
        if not isinstance(self.type, FilterType):
            raise TypeError("Where.type must be a FilterType")
        if not isinstance(self.attribute, str) or self.attribute.strip() == "":
            raise ValueError("Where.attribute must be a non-empty string")
        if self.value is not None and not isinstance(self.value, Value):
            object.__setattr__(self, "value", Value.of(self.value))

    def as_value(self) -> Value:
        """Map form, for nesting a condition inside an `or`/`and` group."""
        entries: Dict[str, Any] = {
            "type": Value.string(self.type.token()),
            "attribute": Value.string(self.attribute),
        }
        if self.value is not None:
            entries["value"] = self.value
        return Value.map(entries)


def _non_negative(name: str, n: Optional[int]) -> Optional[int]:
    if n is None:
        return None
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"{name} must be an int")
    if n < 0:
        raise ValueError(f"{name} must be >= 0")
    return n


def _optional_str(name: str, s: Optional[str]) -> Optional[str]:
    if s is not None and not isinstance(s, str):
        raise TypeError(f"{name} must be a str, got {type(s).__name__}")
    return s


@dataclass(frozen=True)
class Params:
    """
    Query parameters for list requests. Every field is optional; unset
    fields are left out of the query string entirely.

      params = (
          Params()
          .set_offset(0)
          .set_max_size(20)
          .add_where(Where(FilterType.IsTrue, "isActive"))
          .build()
      )

    Setters return a new instance, so a Params can be shared freely.
    Fields are checked the same way whether they come from a setter or the
    constructor.
    """

    offset: Optional[int] = None
    max_size: Optional[int] = None
    select: Optional[str] = None
    where: Optional[Tuple[Where, ...]] = None
    primary_filter: Optional[str] = None
    bool_filter_list: Optional[Tuple[str, ...]] = None
    order: Optional[Order] = None
    order_by: Optional[str] = None

    def __post_init__(self) -> None:
        _non_negative("offset", self.offset)
        _non_negative("max_size", self.max_size)
        _optional_str("primary_filter", self.primary_filter)
        _optional_str("order_by", self.order_by)
        if self.order is not None and not isinstance(self.order, Order):
            raise TypeError("order must be an Order")

        if self.select is not None and not isinstance(self.select, str):
            names = (str(s).strip() for s in self.select if s)
            object.__setattr__(self, "select", ",".join(n for n in names if n))

        if self.where is not None:
            items = tuple(self.where)
            for w in items:
                if not isinstance(w, Where):
                    raise TypeError("where entries must be Where instances")
            object.__setattr__(self, "where", items)

        if self.bool_filter_list is not None:
            # a lone name is one filter, not a list of characters
            names = self.bool_filter_list
            items = (names,) if isinstance(names, str) else tuple(names)
            for n in items:
                if not isinstance(n, str):
                    raise TypeError("bool_filter_list entries must be str")
            object.__setattr__(self, "bool_filter_list", items)

    def set_offset(self, offset: int) -> "Params":
        return replace(self, offset=offset)

    def set_max_size(self, max_size: int) -> "Params":
        return replace(self, max_size=max_size)

    def set_select(self, select: Union[str, Sequence[str]]) -> "Params":
        return replace(self, select=select)

    def set_where(self, where: Iterable[Where]) -> "Params":
        return replace(self, where=tuple(where))

    def add_where(self, where: Where) -> "Params":
        return self.set_where((self.where or ()) + (where,))

    def set_primary_filter(self, name: str) -> "Params":
        return replace(self, primary_filter=name)

    def set_bool_filter_list(self, names: Union[str, Iterable[str]]) -> "Params":
        return replace(self, bool_filter_list=names)

    def add_bool_filter(self, name: str) -> "Params":
        return self.set_bool_filter_list((self.bool_filter_list or ()) + (name,))

    def set_order(self, order: Order) -> "Params":
        return replace(self, order=order)

    def set_order_by(self, attribute: str) -> "Params":
        return replace(self, order_by=attribute)

    def build(self) -> "Params":
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Wire-named fields in emission order; unset fields omitted."""
        out: Dict[str, Any] = {}
        if self.select is not None:
            out["select"] = self.select
        if self.order_by is not None:
            out["orderBy"] = self.order_by
        if self.order is not None:
            out["order"] = self.order.token()
        if self.offset is not None:
            out["offset"] = self.offset
        if self.bool_filter_list is not None:
            out["boolFilterList"] = list(self.bool_filter_list)
        if self.max_size is not None:
            out["maxSize"] = self.max_size
        if self.primary_filter is not None:
            out["primaryFilter"] = self.primary_filter
        if self.where is not None:
            out["where"] = [w.as_value().to_python() for w in self.where]
        return out
