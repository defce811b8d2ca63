import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from app.logging.logger import Log


@contextmanager
def scoped_workspace(root: Path, prefix: str = "audit-") -> Generator[Path, None, None]:
    """Yield a fresh, uniquely-named directory under root; remove it on exit."""
    root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=root))
    Log.debug(f"Created workspace {path}")
    try:
        yield path
    finally:
        release_workspace(path)


def release_workspace(path: Path) -> None:
    """Remove a workspace directory. Never raises; problems are logged."""
    if not path.exists():
        return
    try:
        path.rmdir()
        Log.debug(f"Removed empty workspace {path}")
        return
    except OSError:
        pass

    try:
        leftovers = sorted(entry.name for entry in path.iterdir())
        Log.warning(f"Workspace {path} not empty, removing leftovers: {leftovers}")
        shutil.rmtree(path)
    except OSError as exc:
        Log.warning(f"Could not remove workspace {path}: {exc}")
