# -----------------------------------------------------------------------------
# IMAGE REFERENCES - TAG PARSER
# -----------------------------------------------------------------------------
# Responsibility: Parse and validate "[registry/]repository[:tag]" strings
# using the Docker distribution reference grammar.
#
# Digest references ("repository@sha256:...") are valid references but
# cannot name a freshly loaded image, so parse_tag rejects them.
# -----------------------------------------------------------------------------

import re
from dataclasses import dataclass

DEFAULT_TAG = "latest"
MAX_NAME_LENGTH = 255

_DOMAIN_COMPONENT = r"(?:[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9])"
_DOMAIN_RE = re.compile(
    rf"^{_DOMAIN_COMPONENT}(?:\.{_DOMAIN_COMPONENT})*(?::[0-9]+)?$"
)
_PATH_COMPONENT_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|[-]+)[a-z0-9]+)*$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$", re.ASCII)
_DIGEST_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$")


class InvalidTagError(ValueError):
    """Raised when a string is not a valid image tag reference."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"invalid tag '{value}': {reason}")
        self.value = value
        self.reason = reason


@dataclass(frozen=True)
class Tag:
    """A parsed image tag reference."""

    repository: str
    tag: str = DEFAULT_TAG
    registry: str = ""

    @property
    def repository_name(self) -> str:
        """Repository including the registry when one was given."""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    @property
    def name(self) -> str:
        return f"{self.repository_name}:{self.tag}"

    def __str__(self) -> str:
        return self.name


def _split_registry(remainder: str) -> tuple[str, str]:
    """Split off the registry host if the first path component looks like one."""
    if "/" not in remainder:
        return "", remainder

    first, rest = remainder.split("/", 1)
    if "." in first or ":" in first or first == "localhost":
        return first, rest
    return "", remainder


def parse_tag(value: str) -> Tag:
    """
    Parse a tag reference such as 'app', 'app:v1' or 'localhost:5000/team/app:v1'.

    Args:
        value: The reference string.

    Returns:
        Parsed Tag (tag defaults to 'latest').

    Raises:
        InvalidTagError: If the string does not follow the reference grammar.
    """
    if not value:
        raise InvalidTagError(value, "empty reference")

    if "@" in value:
        _, _, digest = value.partition("@")
        if _DIGEST_RE.match(digest):
            raise InvalidTagError(value, "digest references cannot be used as tags")
        raise InvalidTagError(value, "malformed digest")

    remainder = value
    tag = DEFAULT_TAG
    last_slash = remainder.rfind("/")
    last_colon = remainder.rfind(":")
    if last_colon > last_slash:
        remainder, tag = remainder[:last_colon], remainder[last_colon + 1 :]
        if not _TAG_RE.match(tag):
            raise InvalidTagError(value, f"bad tag component '{tag}'")

    registry, repository = _split_registry(remainder)
    if registry and not _DOMAIN_RE.match(registry):
        raise InvalidTagError(value, f"bad registry '{registry}'")

    if not repository:
        raise InvalidTagError(value, "missing repository")

    for component in repository.split("/"):
        if not _PATH_COMPONENT_RE.match(component):
            raise InvalidTagError(value, f"bad repository component '{component}'")

    full_name = f"{registry}/{repository}" if registry else repository
    if len(full_name) > MAX_NAME_LENGTH:
        raise InvalidTagError(value, f"repository name longer than {MAX_NAME_LENGTH}")

    return Tag(repository=repository, tag=tag, registry=registry)
