"""
Free-text claim search.

A query is first classified into one of a closed set of variants, then each
variant maps to exactly one SQL predicate. The predicate is always ANDed with
the caller's tenant scope:

    MatchAll   -> scope
    EnumMatch  -> scope AND <column> = <enum value>
    TextMatch  -> scope AND (name ILIKE .. OR email ILIKE .. OR ... [OR id = n])
    NoMatch    -> scope AND false

Enum names match regardless of case and separators, so "ThesisProject",
"thesis project" and "THESIS_PROJECT" all name the same claim type. An
all-digit query also matches the claim with that id.

There is no branch that drops the scope or turns an unusable query into "no
filter".
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from sqlalchemy import and_, false, or_
from sqlalchemy.sql.elements import ColumnElement

from claimdesk.models.claims import Claim, ClaimStatus, ClaimType
from claimdesk.models.tenancy import User

# Widest searchable text column (users.email, users.name, claims.transport_*).
MAX_SEARCHABLE_LENGTH = 191

# Enum types a query may name exactly, with the column each one filters.
MATCHABLE_ENUMS = (
    (ClaimType, Claim.claim_type),
    (ClaimStatus, Claim.status),
)

# Text columns searched by substring.
SUBMITTER_TEXT_FIELDS = (User.name, User.email)
CLAIM_TEXT_FIELDS = (Claim.transport_from, Claim.transport_to, Claim.thesis_exam_course_code)

# Longest all-digit query still compared against claims.id (fits a signed 64-bit integer).
MAX_ID_DIGITS = 18


@dataclass(frozen=True)
class MatchAll:
    pass


@dataclass(frozen=True)
class EnumMatch:
    value: enum.Enum


@dataclass(frozen=True)
class TextMatch:
    text: str


@dataclass(frozen=True)
class NoMatch:
    reason: str


SearchTerm = Union[MatchAll, EnumMatch, TextMatch, NoMatch]


def _normalize(value: str) -> str:
    return "".join(ch for ch in value.upper() if ch not in " _-")


def classify_query(query: str | None) -> SearchTerm:
    if query is None or not query.strip():
        return MatchAll()

    text = query.strip()
    normalized = _normalize(text)
    for enum_type, _column in MATCHABLE_ENUMS:
        for member in enum_type:
            if _normalize(member.value) == normalized:
                return EnumMatch(member)

    if len(text) > MAX_SEARCHABLE_LENGTH:
        return NoMatch(f"query longer than {MAX_SEARCHABLE_LENGTH} characters")

    return TextMatch(text)


def escape_like(text: str, escape: str = "\\") -> str:
    return text.replace(escape, escape * 2).replace("%", escape + "%").replace("_", escape + "_")


def _is_claim_id(text: str) -> bool:
    return text.isascii() and text.isdigit() and len(text) <= MAX_ID_DIGITS


def term_clause(term: SearchTerm) -> ColumnElement[bool] | None:
    """Predicate for one search term, or None for MatchAll."""

    if isinstance(term, MatchAll):
        return None
    if isinstance(term, EnumMatch):
        for enum_type, column in MATCHABLE_ENUMS:
            if isinstance(term.value, enum_type):
                return column == term.value
        return false()
    if isinstance(term, TextMatch):
        pattern = f"%{escape_like(term.text)}%"
        clauses = [Claim.submitted_by.has(column.ilike(pattern, escape="\\")) for column in SUBMITTER_TEXT_FIELDS]
        clauses += [column.ilike(pattern, escape="\\") for column in CLAIM_TEXT_FIELDS]
        if _is_claim_id(term.text):
            clauses.append(Claim.id == int(term.text))
        return or_(*clauses)
    return false()


def build_claim_filter(scope_clause: ColumnElement[bool], query: str | None) -> ColumnElement[bool]:
    if scope_clause is None:
        raise ValueError("A tenant scope is required to search claims")

    clause = term_clause(classify_query(query))
    if clause is None:
        return scope_clause
    return and_(scope_clause, clause)
