"""
Pytest configuration and shared fixtures.
This file ensures the project root is in sys.path for imports and points the
application at an in-memory SQLite database before any settings are loaded.
"""

import os
import sys
import tempfile
from pathlib import Path

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-with-at-least-32-bytes!"
os.environ["DB_INIT_ATTEMPTS"] = "1"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="tealogistics-media-")

# Add project root to sys.path so we can import domain, services, etc.
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
