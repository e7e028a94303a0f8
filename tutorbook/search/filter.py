"""
Filter-string compilation for the users search index.

This module turns a ``UsersQuery`` into the index's native filter syntax.
The index cannot combine AND groups with OR across groups, e.g.
``(A AND B) OR (C AND D)``. Availability timeslots are exactly that shape, so
every timeslot is compiled into its own complete filter string; the engine
runs one query per string and merges the results.

Example:
    (tutoring.subjects:"Chemistry H" OR tutoring.subjects:"Chemistry") AND
    (availability.from <= 1587322800000 AND availability.to >= 1587304800000)
"""

from typing import List, Sequence, Tuple

from tutorbook.models.base import Option, Timeslot
from tutorbook.search.query import UsersQuery

AND = " AND "
OR = " OR "


def quote(value: str) -> str:
    """Quote a facet value, escaping backslashes and double quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def add_filters(base: str, options: Sequence[Option], attr: str) -> str:
    """
    Append one parenthesized OR group for ``attr`` to ``base``.

    Args:
        base: Filter string built so far (may be empty)
        options: Option values to OR together
        attr: Index attribute the options are matched against

    Returns:
        ``base`` unchanged when there are no options, otherwise ``base`` AND
        ``(attr:"a" OR attr:"b" ...)``
    """
    if not options:
        return base
    group = "(" + OR.join(f"{attr}:{quote(option.value)}" for option in options) + ")"
    return f"{base}{AND}{group}" if base else group


def availability_filter(timeslot: Timeslot) -> str:
    """
    Overlap test between a requested window and a stored availability window.

    A stored window overlaps the request when it opens before the request
    closes and closes after the request opens.
    """
    return (
        f"(availability.from <= {timeslot.to_millis_value()}"
        f"{AND}availability.to >= {timeslot.from_millis_value()})"
    )


def attribute_filters(query: UsersQuery) -> List[Tuple[Sequence[Option], str]]:
    """The option attributes of ``query`` in compile order, paired with index attributes."""
    return [
        (query.subjects, f"{query.aspect.value}.subjects"),
        (query.langs, "langs"),
        (query.checks, "verifications.checks"),
        (query.orgs, "orgs"),
        (query.tags, "_tags"),
    ]


def get_filter_strings(query: UsersQuery) -> List[str]:
    """
    Compile ``query`` into one or more filter strings.

    Without availability exactly one string is returned (empty when nothing
    is filtered, meaning "match all"). With K timeslots, K strings are
    returned that share the same base clauses and differ only in their
    availability clause.

    Args:
        query: Users search query

    Returns:
        Filter strings, one per backend query
    """
    base = ""
    if query.visible is not None:
        base = f"visible={1 if query.visible else 0}"
    for options, attr in attribute_filters(query):
        base = add_filters(base, options, attr)

    if not query.availability:
        return [base]

    return [
        f"{base}{AND}{availability_filter(timeslot)}" if base else availability_filter(timeslot)
        for timeslot in query.availability
    ]


def get_optional_filter_strings(query: UsersQuery) -> List[str]:
    """
    Ranking hints sent alongside every filter string.

    Optional filters never exclude a hit; they only promote featured users
    of the requested aspect when the index supports it.
    """
    return [f"featured:{query.aspect.value}"]
