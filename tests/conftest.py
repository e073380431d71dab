import os, sys
from pathlib import Path

# Add the src layout to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Ensure required environment variables for lookup_relay.config
os.environ.setdefault("BOT_TOKEN", "test-token")
os.environ.setdefault("FIREBASE_URL", "https://relay-test.firebaseio.com")
os.environ.setdefault("FIREBASE_SECRET", "test-secret")
