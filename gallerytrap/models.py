from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(frozen=True)
class Creator:
    id: str
    directory: str

    @classmethod
    def under(cls, output_dir: str, creator_id: str) -> "Creator":
        # "." and ".." keep their prefix so the archive path check rejects them.
        if output_dir == os.curdir and creator_id not in (os.curdir, os.pardir):
            return cls(id=creator_id, directory=creator_id)
        return cls(id=creator_id, directory=os.path.join(output_dir, creator_id))

    @property
    def scraps_directory(self) -> str:
        return os.path.join(self.directory, "scraps")


@dataclass(frozen=True)
class Artifact:
    id: int
    directory: str


@dataclass(frozen=True)
class CrawlPage:
    page_num: int
    url: str
    ids: Tuple = ()
    stop: bool = False


@dataclass(frozen=True)
class CookieRecord:
    domain: str
    path: str
    secure: bool
    expires: int
    name: str
    value: str


class SaveStatus(enum.Enum):
    SAVED = "saved"
    ALREADY_ARCHIVED = "already_archived"
    ASSET_MISSING = "asset_missing"


@dataclass
class RunSummary:
    creators: List[str] = field(default_factory=list)
    listed: int = 0
    saved: int = 0
    already_archived: int = 0
    asset_missing: int = 0

    def record(self, status: SaveStatus) -> None:
        if status is SaveStatus.SAVED:
            self.saved += 1
        elif status is SaveStatus.ALREADY_ARCHIVED:
            self.already_archived += 1
        else:
            self.asset_missing += 1
