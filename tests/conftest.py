import os
import tempfile

# Set before coach_api.main is imported: the app mounts UPLOADS_DIR at import time.
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="coach-uploads-"))
os.environ.setdefault("COACH_STORE_BACKEND", "memory")
