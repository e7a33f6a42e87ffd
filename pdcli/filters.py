"""Translation of command-line filters into PagerDuty query parameters.

Each filter category is handled by an independent step that contributes at
most one criterion (one query parameter). Steps run in a fixed order and a
step that cannot produce a usable value raises, which aborts the command
before anything is fetched.
"""

import re
import sys
from dataclasses import dataclass, field
from datetime import timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import click
import dateparser

from .pd_client import PagerDutyClient
from .utils import CliError, InvalidInputError

STATUS_CLASSES: Dict[str, List[str]] = {
    "open": ["triggered", "acknowledged"],
    "closed": ["resolved"],
}
STATUS_CHOICES = ["open", "closed", "triggered", "acknowledged", "resolved"]
URGENCY_CHOICES = ["high", "low"]

PAGERDUTY_ID_PATTERN = re.compile(r"^[A-Z0-9]{7,}$")

DIRECT = "direct"
RESOLVED = "resolved"


class ResolutionError(CliError):
    """A name-based filter matched nothing."""


class InvalidIdError(InvalidInputError):
    """One or more identifiers do not look like PagerDuty IDs."""


@dataclass
class FilterCriterion:
    """One resolved, API-ready query constraint."""

    param: str
    value: Any
    method: str = DIRECT


@dataclass
class IncidentFilters:
    """Incident filters as given on the command line."""

    statuses: Sequence[str] = ("open",)
    me: bool = False
    assignees: Sequence[str] = ()
    teams: Sequence[str] = ()
    services: Sequence[str] = ()
    urgencies: Sequence[str] = ()
    since: Optional[str] = None
    until: Optional[str] = None


@dataclass
class NameLookup:
    """How to turn names of one category into IDs."""

    collection: str
    param: str
    activity: str
    empty_message: str
    names: List[str] = field(default_factory=list)


def dedupe(values: Iterable[Any]) -> List[Any]:
    """Remove duplicates, keeping the first occurrence of each value."""
    return list(dict.fromkeys(values))


def expand_statuses(statuses: Iterable[str]) -> List[str]:
    """Expand open/closed into the concrete statuses the API understands.

    Args:
        statuses: Literal statuses and status classes

    Returns:
        De-duplicated concrete statuses in first-seen order
    """
    expanded: List[str] = []
    for status in statuses:
        expanded.extend(STATUS_CLASSES.get(status, [status]))
    return dedupe(expanded)


def split_dedup_and_flatten(values: Iterable[str]) -> List[str]:
    """Split newline/comma separated values, trim them and remove duplicates.

    Args:
        values: Repeated flag values or blocks of piped text

    Returns:
        Flat list of non-empty tokens in first-seen order
    """
    tokens: List[str] = []
    for value in values:
        for token in re.split(r"[\n,]", value or ""):
            token = token.strip()
            if token:
                tokens.append(token)
    return dedupe(tokens)


def invalid_pagerduty_ids(ids: Iterable[str]) -> List[str]:
    """Return the tokens that are not well-formed PagerDuty identifiers."""
    return [i for i in ids if not PAGERDUTY_ID_PATTERN.match(i)]


def resolve_ids(values: Iterable[str], label: str = "incident") -> List[str]:
    """Flatten, de-duplicate and validate a list of identifiers.

    Args:
        values: Raw identifier input (flags or piped text)
        label: Resource name used in error messages

    Returns:
        Validated identifiers

    Raises:
        InvalidIdError: If any token is malformed or nothing remains
    """
    ids = split_dedup_and_flatten(values)
    invalid = invalid_pagerduty_ids(ids)
    if invalid:
        raise InvalidIdError(f"Invalid {label} ID's: {', '.join(invalid)}")
    if not ids:
        raise InvalidIdError("No valid IDs specified. Nothing to do.")
    return ids


def parse_date_phrase(phrase: Optional[str]) -> Optional[str]:
    """Parse a natural-language date such as "3 days ago" into UTC ISO-8601.

    Returns:
        The parsed timestamp, or None when the phrase cannot be understood
    """
    if not phrase or not phrase.strip():
        return None
    parsed = dateparser.parse(phrase, settings={"RETURN_AS_TIMEZONE_AWARE": True})
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).isoformat()


def resolve_names(client: PagerDutyClient, lookup: NameLookup) -> List[str]:
    """Search each name of a category and collect the matching IDs.

    Names are looked up one at a time in the order given.

    Raises:
        ResolutionError: If no name matched anything
    """
    if sys.stderr.isatty():
        click.echo(f"{lookup.activity}...", err=True)
    found: List[str] = []
    for name in lookup.names:
        for match in client.search(lookup.collection, name):
            if match.get("id"):
                found.append(match["id"])
    ids = dedupe(found)
    if not ids:
        raise ResolutionError(lookup.empty_message)
    return ids


# --- Incident filter steps ---
IncidentStep = Callable[[PagerDutyClient, IncidentFilters], Optional[FilterCriterion]]


def _status_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    statuses = expand_statuses(filters.statuses or ["open"])
    return FilterCriterion("statuses", statuses)


def _urgency_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    if not filters.urgencies:
        return None
    return FilterCriterion("urgencies", dedupe(filters.urgencies))


def _assignee_step(
    client: PagerDutyClient, filters: IncidentFilters
) -> Optional[FilterCriterion]:
    if filters.me and filters.assignees:
        raise InvalidInputError("--me and --assignees cannot be used together")
    if filters.me:
        me = client.identity()
        user_id = (me.get("user") or {}).get("id")
        if not user_id:
            raise ResolutionError("Could not determine the current user's ID.")
        return FilterCriterion("user_ids", [user_id], RESOLVED)
    if filters.assignees:
        lookup = NameLookup(
            collection="users",
            param="user_ids",
            activity="Finding users",
            empty_message="No assignee user IDs found. Please check your search.",
            names=list(filters.assignees),
        )
        return FilterCriterion(lookup.param, resolve_names(client, lookup), RESOLVED)
    return None


def _team_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    if not filters.teams:
        return None
    lookup = NameLookup(
        collection="teams",
        param="team_ids",
        activity="Finding teams",
        empty_message="No teams found. Please check your search.",
        names=list(filters.teams),
    )
    return FilterCriterion(lookup.param, resolve_names(client, lookup), RESOLVED)


def _service_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    if not filters.services:
        return None
    lookup = NameLookup(
        collection="services",
        param="service_ids",
        activity="Finding services",
        empty_message="No services found. Please check your search.",
        names=list(filters.services),
    )
    return FilterCriterion(lookup.param, resolve_names(client, lookup), RESOLVED)


def _since_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    since = parse_date_phrase(filters.since)
    if filters.since and since is None:
        click.echo(f"Ignoring unrecognized --since date: {filters.since}", err=True)
    return FilterCriterion("since", since) if since else None


def _until_step(client: PagerDutyClient, filters: IncidentFilters) -> Optional[FilterCriterion]:
    until = parse_date_phrase(filters.until)
    if filters.until and until is None:
        click.echo(f"Ignoring unrecognized --until date: {filters.until}", err=True)
    return FilterCriterion("until", until) if until else None


INCIDENT_STEPS: List[IncidentStep] = [
    _status_step,
    _urgency_step,
    _assignee_step,
    _team_step,
    _service_step,
    _since_step,
    _until_step,
]


def resolve_incident_criteria(
    client: PagerDutyClient, filters: IncidentFilters
) -> List[FilterCriterion]:
    """Run every incident filter step and collect the resulting criteria."""
    criteria: List[FilterCriterion] = []
    for step in INCIDENT_STEPS:
        criterion = step(client, filters)
        if criterion is not None:
            criteria.append(criterion)
    return criteria


def criteria_to_params(criteria: Iterable[FilterCriterion]) -> Dict[str, Any]:
    """Flatten criteria into the query parameter mapping sent to the API."""
    return {c.param: c.value for c in criteria}


def resolve_incident_params(client: PagerDutyClient, filters: IncidentFilters) -> Dict[str, Any]:
    """Resolve incident filters into query parameters.

    Args:
        client: API client used for identity and name lookups
        filters: Filters as given on the command line

    Returns:
        Parameter mapping for the incidents endpoint
    """
    return criteria_to_params(resolve_incident_criteria(client, filters))
