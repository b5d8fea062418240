"""Settings taken from the command line."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OverwritePolicy(Enum):
    """What to do when a file being extracted already exists."""

    PROMPT = "prompt"
    SKIP = "skip"
    ALL = "all"


@dataclass
class Options:
    """Options controlling listing, testing and extraction."""

    overwrite_policy: OverwritePolicy = OverwritePolicy.PROMPT
    quiet: int = 0
    verbose: bool = False
    dry_run: bool = False
    extract_path: Optional[str] = None
    use_path: bool = True