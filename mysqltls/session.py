"""Session setup run on every freshly connected handle."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .drivers import LiveConnection

DEFAULT_INCOMPATIBLE_MODES: tuple[str, ...] = (
    "NO_ZERO_DATE",
    "ONLY_FULL_GROUP_BY",
    "STRICT_TRANS_TABLES",
    "STRICT_ALL_TABLES",
    "TRADITIONAL",
    "ANSI",
)

_MARIADB_REPLICATION_PREFIX = "5.5.5-"


@dataclass(frozen=True, slots=True)
class CharsetChoice:
    """Character set and collation applied to each connection."""

    charset: str | None = None
    collation: str | None = None


@dataclass(frozen=True, slots=True)
class SessionSettings:
    """Configured session options for post-connect setup."""

    database: str = ""
    charset: str | None = "utf8"
    collation: str | None = None
    incompatible_modes: tuple[str, ...] = field(default=DEFAULT_INCOMPATIBLE_MODES)


def server_version(connection: LiveConnection) -> tuple[int, ...]:
    """Return the numeric server version, ignoring vendor suffixes."""

    info = connection.get_server_info() or ""
    if info.startswith(_MARIADB_REPLICATION_PREFIX):
        info = info[len(_MARIADB_REPLICATION_PREFIX) :]
    match = re.match(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?", info)
    if match is None:
        return (0,)
    return tuple(int(part) for part in match.groups() if part is not None)


def negotiate_charset(connection: LiveConnection, settings: SessionSettings) -> CharsetChoice:
    """Pick the charset/collation once, upgrading to utf8mb4 where supported."""

    charset = settings.charset or None
    collation = settings.collation or None
    if charset is None:
        return CharsetChoice(collation=collation)

    version = server_version(connection)
    if charset == "utf8" and version >= (5, 5, 3):
        charset = "utf8mb4"
    if charset == "utf8mb4":
        if collation is None or collation == "utf8_general_ci":
            collation = "utf8mb4_unicode_ci"
        elif collation.startswith("utf8_"):
            collation = "utf8mb4_" + collation[len("utf8_") :]
    if collation == "utf8mb4_unicode_ci" and version >= (5, 6):
        collation = "utf8mb4_unicode_520_ci"
    return CharsetChoice(charset=charset, collation=collation)


def apply_charset(connection: LiveConnection, choice: CharsetChoice) -> None:
    if choice.charset is None:
        return
    connection.set_character_set(choice.charset, choice.collation)


def apply_sql_mode(connection: LiveConnection, incompatible_modes: tuple[str, ...]) -> None:
    """Drop incompatible entries from the session SQL mode."""

    cursor = connection.cursor()
    try:
        cursor.execute("SELECT @@SESSION.sql_mode")
        row = cursor.fetchone()
        current = str(row[0]) if row and row[0] is not None else ""
        blocked = {mode.upper() for mode in incompatible_modes}
        modes = [mode for mode in current.split(",") if mode and mode.upper() not in blocked]
        cursor.execute("SET SESSION sql_mode = %s", (",".join(modes),))
    finally:
        cursor.close()


def select_database(connection: LiveConnection, database: str) -> None:
    if not database:
        raise ValueError("No database name configured.")
    connection.select_db(database)


__all__ = [
    "CharsetChoice",
    "DEFAULT_INCOMPATIBLE_MODES",
    "SessionSettings",
    "apply_charset",
    "apply_sql_mode",
    "negotiate_charset",
    "select_database",
    "server_version",
]
