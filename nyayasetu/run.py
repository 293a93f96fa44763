#!/usr/bin/env python3
"""
Quick runner for the eNyayaSetu API
===================================

Usage:
    python -m nyayasetu.run
"""

import uvicorn

if __name__ == "__main__":
    print("Starting eNyayaSetu API...")
    print("API docs: http://localhost:8000/docs")
    print("Health:   http://localhost:8000/health")
    print()

    uvicorn.run(
        "nyayasetu.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
