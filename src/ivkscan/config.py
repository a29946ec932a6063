"""
Runtime settings, all overridable via environment variables.

Functions that use a setting take it as a keyword argument; passing
``None`` falls back to the value here, looked up at call time.
"""

import os

# ============================================================
# Scanning
# ============================================================
MAX_ACCOUNTS = int(os.getenv("IVKSCAN_MAX_ACCOUNTS", "") or 10)
NUM_WORKERS = int(os.getenv("IVKSCAN_WORKERS", "") or 1)
BATCH_CHUNK_SIZE = int(os.getenv("IVKSCAN_BATCH_CHUNK", "") or 1000)
DEFAULT_NETWORK = os.getenv("IVKSCAN_NETWORK", "mainnet")

# "package.module:Factory" returning an OrchardBackend
BACKEND = os.getenv("IVKSCAN_BACKEND", "")

# ============================================================
# Node RPC (zebrad / zcashd)
# ============================================================
RPC_URL = os.getenv("IVKSCAN_RPC_URL", "http://localhost:8232")
RPC_USER = os.getenv("IVKSCAN_RPC_USER", "")
RPC_PASS = os.getenv("IVKSCAN_RPC_PASS", "")
RPC_TIMEOUT = float(os.getenv("IVKSCAN_RPC_TIMEOUT", "") or 30)

# ============================================================
# Logging
# ============================================================
LOG_LEVEL = os.getenv("IVKSCAN_LOG_LEVEL", "WARNING")
LOG_FORMAT = os.getenv("IVKSCAN_LOG_FORMAT", "human")  # human | json
LOG_FILE = os.getenv("IVKSCAN_LOG_FILE", "")
