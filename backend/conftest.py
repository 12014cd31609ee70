# Ensure 'backend/' is on sys.path so 'import courtbook.*' works
# even when pytest is started from the repository root.
import os
from pathlib import Path
import sys

_BACKEND_DIR = Path(__file__).resolve().parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

# The application engine is built at import time; keep it off real databases.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")

collect_ignore_glob = [
    # Operational scripts are exercised through their importable helpers only
    "scripts/*.py",
]
