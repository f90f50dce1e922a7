import sys
from pathlib import Path

# Ensure `src` (package root) and the tests directory (shared sample models) are
# on sys.path for tests when not installed editable.
ROOT = Path(__file__).resolve().parent.parent
for path in (ROOT / "src", Path(__file__).resolve().parent):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
