"""Directory-backed braid source: list braid files and load them by name."""

import json
import logging
import shutil
from pathlib import Path

from pydantic import ValidationError

from braidview.models import Braid, BraidEntry

logger = logging.getLogger(__name__)


class BraidSourceError(Exception):
    """A braid could not be listed or loaded."""


class BraidNotFoundError(BraidSourceError):
    pass


class BraidLoadError(BraidSourceError):
    pass


class BraidCatalog:
    """Braid JSON files in one directory. The file stem is the braid name."""

    def __init__(self, braids_dir: Path) -> None:
        self.braids_dir = braids_dir

    def list_braids(self) -> list[BraidEntry]:
        if not self.braids_dir.is_dir():
            raise BraidSourceError(f"Braid directory not found: {self.braids_dir}")
        return [
            BraidEntry(name=p.stem, filename=p.name)
            for p in sorted(self.braids_dir.glob("*.json"))
        ]

    def resolve(self, selector: str) -> Path:
        """Map a name or filename to a file inside the catalog directory."""
        filename = selector if selector.endswith(".json") else f"{selector}.json"
        path = self.braids_dir / filename
        # selectors come from users; never leave the catalog directory
        if path.resolve().parent != self.braids_dir.resolve() or not path.is_file():
            raise BraidNotFoundError(f"Braid not found: {selector}")
        return path

    def load(self, selector: str) -> Braid:
        path = self.resolve(selector)
        try:
            raw = json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise BraidLoadError(f"Could not read {path.name}: {e}") from e
        try:
            braid = Braid.model_validate(raw)
        except ValidationError as e:
            raise BraidLoadError(f"Malformed braid {path.name}: {e}") from e

        logger.info(
            "Loaded braid %s: %d nodes, %d cohorts, path length %d",
            path.stem, len(braid.parents), len(braid.cohorts), len(braid.highest_work_path),
        )
        return braid

    def publish(self, selector: str, dest: Path) -> Path:
        """Copy a braid to `dest`, replacing whatever braid was current there."""
        self.load(selector)  # refuse to publish something that does not parse
        src = self.resolve(selector)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        logger.info("Published %s to %s", src.name, dest)
        return dest
