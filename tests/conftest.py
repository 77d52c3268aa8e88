from __future__ import annotations

import os

# settings 모듈이 import 되기 전에 적용되어야 함
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("PRICE_STORE_STORAGE_BACKEND", "memory")
