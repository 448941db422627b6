#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the MOVT API.

Binds to $HOST/$PORT (default 0.0.0.0:3000) with auto-reload.
"""
import os
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    print(f"Starting MOVT API at http://localhost:{port} (docs at /docs)")

    uvicorn.run("app.main:app", host=host, port=port, reload=True, log_level="info")
