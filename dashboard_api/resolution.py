from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Union

from .config import Settings
from .errors import MissingInputError

logger = logging.getLogger(__name__)

PathPart = Union[str, Path]


class FileResolver:
    """
    Maps logical dataset names to files under the configured data directory.

    Nothing is checked at construction; existence is tested on every call
    so files dropped into the tree are picked up by the next request.
    """

    def __init__(self, settings: Settings):
        self.data_dir = Path(settings.data_dir)

    def resolve(self, *parts: PathPart) -> Path:
        return self.data_dir.joinpath(*parts)

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def display(self, path: Path) -> str:
        """Path relative to the data directory when possible, for messages."""
        try:
            return Path(path).relative_to(self.data_dir).as_posix()
        except ValueError:
            return str(path)

    def require(self, *paths: Path) -> List[Path]:
        """Return ``paths`` unchanged if all exist; else list every missing one."""
        missing = [p for p in paths if not self.exists(p)]
        if missing:
            logger.warning("missing required files: %s", ", ".join(self.display(p) for p in missing))
            raise MissingInputError(self.display(p) for p in missing)
        return list(paths)

    def resolve_any(self, candidates: Sequence[Path]) -> Path:
        """First existing candidate, in the order given."""
        for candidate in candidates:
            if self.exists(candidate):
                return candidate
        logger.warning("none of the candidates exist: %s", ", ".join(self.display(c) for c in candidates))
        raise MissingInputError(self.display(c) for c in candidates)

    def candidates(self, directory: PathPart, names: Iterable[str]) -> List[Path]:
        return [self.resolve(directory, name) for name in names]
