"""
Filter normalization.

Turns the loose, all-optional filter mapping a caller sends into typed
FilterValue variants keyed by entity field. Absent and null values are
dropped, strings are trimmed, and numbers, booleans, dates and UUIDs are
parsed or rejected with a ValidationError.
"""

from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Literal
from uuid import UUID

from scopedsearch.core.dsl import ExactMatch, FilterValue, RangeMatch, SetMatch, TextMatch
from scopedsearch.core.errors import UnknownFilterError, ValidationError
from scopedsearch.core.types import EntitySchema, FieldSpec, FilterKind, ValueType
from scopedsearch.logging import get_logger

logger = get_logger(__name__)

RANGE_SUFFIXES = {"_from": "lower", "_to": "upper"}
RANGE_KEYS = {"lower": "lower", "upper": "upper", "from": "lower", "to": "upper"}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def coerce_value(spec: FieldSpec, value: Any) -> Any:
    """
    Coerce one raw value to the field's value type.

    Raises ValidationError when the value cannot be parsed.
    """
    try:
        match spec.value_type:
            case ValueType.STRING:
                if isinstance(value, (dict, list, tuple, set)):
                    raise ValueError("expected a string")
                return str(value).strip()
            case ValueType.INTEGER:
                return _to_int(value)
            case ValueType.FLOAT:
                return _to_float(value)
            case ValueType.BOOLEAN:
                return _to_bool(value)
            case ValueType.DATETIME:
                return _to_datetime(value)
            case ValueType.DATE:
                return _to_date(value)
            case ValueType.UUID:
                return str(value if isinstance(value, UUID) else UUID(str(value).strip()))
            case ValueType.JSON:
                return value
    except (TypeError, ValueError, InvalidOperation) as e:
        raise ValidationError(
            f"Invalid {spec.value_type.value} value for '{spec.name}'", field=spec.name
        ) from e
    raise ValidationError(f"Unsupported value type for '{spec.name}'", field=spec.name)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("not an integral number")
        return int(value)
    return int(str(value).strip())


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, (int, float)):
        return float(value)
    parsed = Decimal(str(value).strip())
    if not parsed.is_finite():
        raise ValueError("not a finite number")
    return float(parsed)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError("not a boolean")


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise TypeError("expected an ISO 8601 timestamp")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            return _to_datetime(text).date()
    raise TypeError("expected an ISO 8601 date")


def _range_bound(spec: FieldSpec, value: Any) -> Any:
    """
    Coerce a range bound.

    A date-only bound on a datetime field stays a date, so that it selects
    whole calendar days: ``created_at_to=2024-01-31`` includes all of the
    31st.
    """
    if spec.value_type == ValueType.DATETIME and isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            try:
                return date.fromisoformat(text)
            except ValueError:
                pass
    return coerce_value(spec, value)


def _instant(value: Any, at: time) -> Any:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, at, tzinfo=timezone.utc)
    return value


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class FilterNormalizer:
    """
    Normalizes raw filters against an entity's field table.

    Unknown or non-filterable fields are rejected with UnknownFilterError,
    or dropped when the entity's policy is ``"ignore"``.
    """

    def __init__(
        self,
        schema: EntitySchema,
        unknown_filters: Literal["reject", "ignore"] = "reject",
    ) -> None:
        self.schema = schema
        self.unknown_filters = unknown_filters

    def normalize(self, raw: Mapping[str, Any] | None) -> dict[str, FilterValue]:
        """
        Normalize a raw filter mapping.

        An empty result is valid and means no filtering beyond scope.
        """
        result: dict[str, FilterValue] = {}
        bounds: dict[str, dict[str, Any]] = {}

        for key, value in (raw or {}).items():
            if _is_absent(value):
                continue

            spec = self._filterable(key)
            if spec is not None:
                result[key] = self._normalize_field(spec, value)
                continue

            range_target = self._range_target(key)
            if range_target is not None:
                spec, bound = range_target
                bounds.setdefault(spec.name, {})[bound] = _range_bound(spec, value)
                continue

            self._unknown(key)

        for name, collected in bounds.items():
            if name in result and not isinstance(result[name], RangeMatch):
                raise ValidationError(
                    f"Field '{name}' cannot combine an exact value with range bounds", field=name
                )
            existing = result.get(name)
            merged = {
                "lower": existing.lower if isinstance(existing, RangeMatch) else None,
                "upper": existing.upper if isinstance(existing, RangeMatch) else None,
            }
            merged.update(collected)
            result[name] = self._range(self.schema.fields[name], merged["lower"], merged["upper"])

        return result

    def _normalize_field(self, spec: FieldSpec, value: Any) -> FilterValue:
        match spec.kind:
            case FilterKind.TEXT:
                if isinstance(value, (list, tuple, set, dict)):
                    raise ValidationError(f"Field '{spec.name}' expects a single string", field=spec.name)
                return TextMatch(substring=coerce_value(spec, value), case_sensitive=spec.case_sensitive)
            case FilterKind.RANGE:
                if isinstance(value, Mapping):
                    return self._range_from_mapping(spec, value)
                return ExactMatch(value=coerce_value(spec, value))
            case FilterKind.EXACT | FilterKind.ENUM:
                if isinstance(value, (list, tuple, set)):
                    return self._set(spec, value)
                return ExactMatch(value=self._checked(spec, coerce_value(spec, value)))
        raise ValidationError(f"Unsupported filter kind for '{spec.name}'", field=spec.name)

    def _set(self, spec: FieldSpec, values: Any) -> SetMatch:
        present = [v for v in values if not _is_absent(v)]
        if not present:
            raise ValidationError(f"Field '{spec.name}' needs at least one value", field=spec.name)
        coerced: list[Any] = []
        for v in present:
            item = self._checked(spec, coerce_value(spec, v))
            if item not in coerced:
                coerced.append(item)
        return SetMatch(values=tuple(coerced))

    def _checked(self, spec: FieldSpec, value: Any) -> Any:
        if spec.kind == FilterKind.ENUM and spec.choices and value not in spec.choices:
            raise ValidationError(
                f"Invalid value for '{spec.name}'; expected one of: "
                + ", ".join(str(c) for c in spec.choices),
                field=spec.name,
            )
        return value

    def _range_from_mapping(self, spec: FieldSpec, value: Mapping[str, Any]) -> RangeMatch:
        collected: dict[str, Any] = {"lower": None, "upper": None}
        for key, bound in value.items():
            if key not in RANGE_KEYS:
                raise ValidationError(f"Unknown range bound '{key}' for '{spec.name}'", field=spec.name)
            if not _is_absent(bound):
                collected[RANGE_KEYS[key]] = _range_bound(spec, bound)
        return self._range(spec, collected["lower"], collected["upper"])

    def _range(self, spec: FieldSpec, lower: Any, upper: Any) -> RangeMatch:
        if (
            lower is not None
            and upper is not None
            and _instant(lower, time.min) > _instant(upper, time.max)
        ):
            raise ValidationError(
                f"Lower bound of '{spec.name}' is greater than its upper bound", field=spec.name
            )
        return RangeMatch(lower=lower, upper=upper)

    def _filterable(self, key: str) -> FieldSpec | None:
        spec = self.schema.get_field(key)
        if spec is None or not spec.filterable:
            return None
        return spec

    def _range_target(self, key: str) -> tuple[FieldSpec, str] | None:
        for suffix, bound in RANGE_SUFFIXES.items():
            if key.endswith(suffix):
                spec = self._filterable(key[: -len(suffix)])
                if spec is not None and spec.kind == FilterKind.RANGE:
                    return spec, bound
        return None

    def _unknown(self, key: str) -> None:
        if self.unknown_filters == "ignore":
            logger.debug("Ignored unknown filter field", entity=self.schema.name, field=key)
            return
        raise UnknownFilterError(
            field=key,
            entity=self.schema.name,
            allowed_fields=self.schema.filterable_fields(),
        )
