"""
Users search query model.

This module provides the structured filter model for user searches and the
parsing of that model from URL query parameters.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from tutorbook.models.base import FALSE_STRINGS, TRUE_STRINGS, Aspect, Option, Timeslot
from tutorbook.utils.errors import ErrorDetail, ValidationError

OPTION_PARAMS = ("subjects", "langs", "checks", "orgs", "tags")


class UsersQuery(BaseModel):
    """
    Structured representation of a user search request.

    Option lists are OR'd within an attribute and AND'd across attributes.
    Availability timeslots are alternatives; each one becomes its own
    backend query.
    """

    model_config = ConfigDict(frozen=True)

    aspect: Aspect = Aspect.TUTORING
    subjects: List[Option] = Field(default_factory=list)
    langs: List[Option] = Field(default_factory=list)
    checks: List[Option] = Field(default_factory=list)
    orgs: List[Option] = Field(default_factory=list)
    tags: List[Option] = Field(default_factory=list)
    availability: List[Timeslot] = Field(default_factory=list)
    visible: Optional[bool] = None

    @classmethod
    def from_url_params(
        cls,
        params: Union[Mapping[str, Union[str, List[str]]], Iterable[Tuple[str, str]]],
    ) -> "UsersQuery":
        """
        Parse a query from URL parameters.

        Option lists may be sent as one JSON-encoded array or as repeated
        plain values; availability is a JSON-encoded array of timeslots.

        Args:
            params: Mapping of parameter name to value(s), or key/value pairs

        Returns:
            Parsed users query

        Raises:
            ValidationError: If a parameter cannot be parsed
        """
        values = _collect_params(params)
        data: Dict[str, Any] = {}

        if values.get("aspect"):
            aspect = values["aspect"][-1]
            try:
                data["aspect"] = Aspect(aspect)
            except ValueError:
                raise ValidationError(
                    f"Unknown aspect: {aspect}",
                    details=[ErrorDetail(location="query", param="aspect", value=aspect,
                                         message="Must be 'mentoring' or 'tutoring'")],
                )

        for name in OPTION_PARAMS:
            if values.get(name):
                data[name] = _parse_options(name, values[name])

        if values.get("availability"):
            data["availability"] = _parse_availability(values["availability"])

        if values.get("visible"):
            data["visible"] = _parse_bool("visible", values["visible"][-1])

        return cls(**data)

    def to_url_params(self) -> Dict[str, str]:
        """Encode this query the way ``from_url_params`` expects it."""
        params: Dict[str, str] = {"aspect": self.aspect.value}
        for name in OPTION_PARAMS:
            options = getattr(self, name)
            if options:
                params[name] = json.dumps([o.model_dump() for o in options])
        if self.availability:
            params["availability"] = json.dumps(
                [{"from": t.from_millis_value(), "to": t.to_millis_value()}
                 for t in self.availability]
            )
        if self.visible is not None:
            params["visible"] = "true" if self.visible else "false"
        return params


def _collect_params(params: Any) -> Dict[str, List[str]]:
    """Normalize parameters into a name -> list of values mapping."""
    items = params.items() if isinstance(params, Mapping) else params
    collected: Dict[str, List[str]] = {}
    for key, value in items:
        if key.endswith("[]"):
            key = key[:-2]
        bucket = collected.setdefault(key, [])
        if isinstance(value, (list, tuple)):
            bucket.extend(str(v) for v in value)
        else:
            bucket.append(str(value))
    return collected


def _load_json(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            f"Malformed {name} parameter",
            details=[ErrorDetail(location="query", param=name, value=raw, message=str(e))],
        )


def _parse_options(name: str, raw_values: List[str]) -> List[Option]:
    decoded: Any = None
    if len(raw_values) == 1 and raw_values[0].lstrip().startswith("["):
        try:
            decoded = json.loads(raw_values[0])
        except json.JSONDecodeError:
            decoded = None
    # Plain values may start with a bracket too, e.g. "[AP] Chemistry".
    if not isinstance(decoded, list):
        decoded = [v for v in raw_values if v]

    try:
        return [Option.model_validate(item) for item in decoded]
    except Exception as e:
        raise ValidationError(
            f"Invalid {name} parameter",
            details=[ErrorDetail(location="query", param=name, message=str(e))],
        )


def _parse_availability(raw_values: List[str]) -> List[Timeslot]:
    timeslots: List[Timeslot] = []
    for raw in raw_values:
        decoded = _load_json("availability", raw)
        if isinstance(decoded, dict):
            decoded = [decoded]
        if not isinstance(decoded, list):
            raise ValidationError(
                "Invalid availability parameter",
                details=[ErrorDetail(location="query", param="availability", value=raw,
                                     message="Must be a JSON array of timeslots")],
            )
        for item in decoded:
            try:
                timeslot = Timeslot.model_validate(item)
            except Exception as e:
                raise ValidationError(
                    "Invalid availability parameter",
                    details=[ErrorDetail(location="query", param="availability", message=str(e))],
                )
            if timeslot.end < timeslot.start:
                raise ValidationError(
                    "Timeslot closes before it opens",
                    details=[ErrorDetail(location="query", param="availability",
                                         value=item, message="'to' must not precede 'from'")],
                )
            timeslots.append(timeslot)
    return timeslots


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValidationError(
        f"Invalid {name} parameter",
        details=[ErrorDetail(location="query", param=name, value=raw,
                             message="Must be a boolean")],
    )
