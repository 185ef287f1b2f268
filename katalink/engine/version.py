"""
Engine Version Negotiation

Tracks the version reported by the engine and the outcome of the bs29
capability probe.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from .protocol import Action, CAPABILITY_PROBE_ID


@dataclass(frozen=True, order=True)
class EngineVersion:
    """Numeric (major, minor, patch) engine version."""

    major: int = 1
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, version_str: str) -> "EngineVersion":
        """
        Parse a version string such as "1.10.1" or "1.12.4-cuda".

        Missing components count as 0; trailing text after the numbers
        is ignored.

        Raises:
            ValueError: If the string does not start with a number
        """
        match = re.match(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?", str(version_str))
        if not match:
            raise ValueError(f"Unparseable version: {version_str!r}")
        major, minor, patch = (int(part) if part else 0 for part in match.groups())
        return cls(major, minor, patch)

    @classmethod
    def try_parse(cls, version_str: str) -> Optional["EngineVersion"]:
        try:
            return cls.parse(version_str)
        except ValueError:
            return None

    def as_tuple(self) -> tuple:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


DEFAULT_VERSION = EngineVersion(1, 0, 0)

# Exact versions known to crash with this client
BAD_VERSIONS: List[EngineVersion] = [
    EngineVersion(1, 9, 0),
]


class VersionNegotiator:
    """
    Consumes the responses to the two startup probes.

    Warnings go through the notifier; neither outcome affects the connection.
    """

    def __init__(self, notifier, bad_versions: Optional[List[EngineVersion]] = None):
        self._notifier = notifier
        self._bad_versions = list(BAD_VERSIONS if bad_versions is None else bad_versions)
        self.version: EngineVersion = DEFAULT_VERSION
        self.received_version = False
        self.bs29_support: Optional[bool] = None

    @staticmethod
    def is_capability_response(message: Dict[str, Any]) -> bool:
        return message.get("id") == CAPABILITY_PROBE_ID

    def handle_capability_response(self, message: Dict[str, Any]) -> None:
        """An error here is the healthy outcome; success means a slow bs29 build."""
        if message.get("error"):
            self.bs29_support = False
            return
        self.bs29_support = True
        self._notifier.alert(
            'This build of KataGo appears to be compiled with "bs29" support. '
            "It will be significantly slower."
        )

    def handle_message(self, message: Dict[str, Any]) -> None:
        """Pick up the version from an identification response."""
        if message.get("action") != Action.QUERY_VERSION.value or not message.get("version"):
            return

        reported = message["version"]
        version = EngineVersion.try_parse(reported)
        self.received_version = True
        if version is None:
            logger.warning(f"Engine reported an unparseable version: {reported!r}")
            return

        self.version = version
        logger.info(f"Engine version: {version}")

        if version in self._bad_versions:
            self._notifier.alert(
                f"This exact version of KataGo ({reported}) is known to crash under this client."
            )
