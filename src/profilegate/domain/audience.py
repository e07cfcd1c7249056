"""Audience levels, relationship classes, and the closed set of profile fields.

The configurable fields form a closed enumeration; every key is validated
against :class:`ProfileField` where configuration is written and where
resolution runs. Baseline fields are never subject to configuration.
"""

from __future__ import annotations

from enum import StrEnum

from profilegate.domain.errors import InvalidAudienceLevelError, InvalidFieldError


class AudienceLevel(StrEnum):
    """Owner-chosen minimum relationship required to see a field."""

    PUBLIC = "Public"
    FRIENDS = "Friends"
    ONLY_ME = "Only Me"


class RelationshipClass(StrEnum):
    """Derived viewer/owner category. Never stored."""

    SELF = "self"
    FRIEND = "friend"
    PUBLIC = "public"


class ProfileField(StrEnum):
    """Profile fields whose audience the owner may configure."""

    CURRENT_CITY = "current_city"
    HOMETOWN = "hometown"
    RELATIONSHIP_STATUS = "relationship_status"
    PHONE_NUMBER = "phone_number"
    EMAIL = "email"
    GENDER = "gender"
    PRONOUNS = "pronouns"
    BIRTHDAY = "birthday"
    LANGUAGES = "languages"
    ABOUT_YOU = "about_you"
    NAME_PRONUNCIATION = "name_pronunciation"
    FAVORITE_QUOTES = "favorite_quotes"
    FAMILY_MEMBERS = "family_members"
    SOCIAL_LINKS = "social_links"
    WEBSITES = "websites"
    WORK = "work"
    EDUCATION = "education"
    PLACES_LIVED = "places_lived"
    OTHER_NAMES = "other_names"
    JOIN_DATE = "join_date"


# Fields holding a list of entries, each of which may carry its own level.
MULTI_ENTRY_FIELDS: frozenset[ProfileField] = frozenset(
    {
        ProfileField.FAMILY_MEMBERS,
        ProfileField.SOCIAL_LINKS,
        ProfileField.WEBSITES,
        ProfileField.WORK,
        ProfileField.EDUCATION,
        ProfileField.PLACES_LIVED,
        ProfileField.OTHER_NAMES,
    }
)

# Always visible, never configurable.
BASELINE_FIELDS: frozenset[str] = frozenset(
    {"id", "username", "display_name", "avatar_url", "cover_photo_url"}
)

DEFAULT_LEVEL = AudienceLevel.PUBLIC

# Which relationship classes each level admits.
_ALLOWED: dict[AudienceLevel, frozenset[RelationshipClass]] = {
    AudienceLevel.PUBLIC: frozenset(RelationshipClass),
    AudienceLevel.FRIENDS: frozenset({RelationshipClass.SELF, RelationshipClass.FRIEND}),
    AudienceLevel.ONLY_ME: frozenset({RelationshipClass.SELF}),
}

# Rank by permissiveness: higher admits more viewers.
PERMISSIVENESS: dict[AudienceLevel, int] = {
    AudienceLevel.ONLY_ME: 0,
    AudienceLevel.FRIENDS: 1,
    AudienceLevel.PUBLIC: 2,
}

_LEVEL_ALIASES: dict[str, AudienceLevel] = {
    "public": AudienceLevel.PUBLIC,
    "friends": AudienceLevel.FRIENDS,
    "only me": AudienceLevel.ONLY_ME,
    "only_me": AudienceLevel.ONLY_ME,
    "onlyme": AudienceLevel.ONLY_ME,
    "only-me": AudienceLevel.ONLY_ME,
}


def level_allows(level: AudienceLevel, relationship: RelationshipClass) -> bool:
    """Return True if a viewer of class *relationship* may see a *level* field."""
    return relationship in _ALLOWED[level]


def parse_level(value: str | AudienceLevel) -> AudienceLevel:
    """Coerce *value* to an :class:`AudienceLevel` (case-insensitive).

    Raises:
        InvalidAudienceLevelError: If *value* is not a known level.
    """
    if isinstance(value, AudienceLevel):
        return value
    if isinstance(value, str):
        level = _LEVEL_ALIASES.get(value.strip().lower())
        if level is not None:
            return level
    msg = f"Invalid audience level: {value!r}. Expected one of {[lv.value for lv in AudienceLevel]}"
    raise InvalidAudienceLevelError(msg, level=str(value))


def parse_field(value: str | ProfileField) -> ProfileField:
    """Coerce *value* to a :class:`ProfileField`.

    Raises:
        InvalidFieldError: If *value* is not a configurable field.
    """
    if isinstance(value, ProfileField):
        return value
    try:
        return ProfileField(str(value).strip())
    except ValueError:
        msg = f"Invalid profile field: {value!r}"
        raise InvalidFieldError(msg, field=str(value)) from None


def parse_multi_entry_field(value: str | ProfileField) -> ProfileField:
    """Like :func:`parse_field`, but only for fields that hold entry lists."""
    field = parse_field(value)
    if field not in MULTI_ENTRY_FIELDS:
        msg = f"Field {field.value!r} does not hold entries with their own audience"
        raise InvalidFieldError(msg, field=field.value)
    return field
