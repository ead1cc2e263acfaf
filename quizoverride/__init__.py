import importlib.metadata
from pathlib import Path

here = Path(__file__).parent
_version_file = here.parent / "VERSION.txt"
if _version_file.exists():
    __version__ = _version_file.read_text(encoding="utf8").strip()
else:
    __version__ = importlib.metadata.version("quizoverride")
