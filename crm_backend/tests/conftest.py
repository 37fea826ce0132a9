from __future__ import annotations

import os
import tempfile

# Configuration is read once and cached, so it must be in place before any
# crm_backend module is imported by the test modules.
_TMP_DIR = tempfile.mkdtemp(prefix="crm-tests-")
os.environ["APP_ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'crm-test.db')}"
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "crm-test.log")
os.environ["ENABLE_RATE_LIMIT"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAIL_BACKEND"] = "log"
os.environ["FRONTEND_URL"] = "https://app.crm.io"
os.environ["RESILIENCE_RETRIES"] = "1"
os.environ["RESILIENCE_BACKOFF_BASE"] = "0"
