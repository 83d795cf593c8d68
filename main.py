"""
main.py: Server launcher and entry point.

Run this file to start the OPD token allocation server:

    python main.py

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.

Direct uvicorn usage:
    uvicorn app:app --reload

The Streamlit dashboard runs separately:
    streamlit run dashboard/app.py
"""

from __future__ import annotations

import uvicorn


HOST = "127.0.0.1"
PORT = 8000


def main() -> None:
    """Start the OPD token allocation API server."""
    print("=" * 60)
    print("  OPD Token Allocation Engine")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}/api")
    print(f"  API docs : http://{HOST}:{PORT}/docs")
    print("  Dashboard: streamlit run dashboard/app.py")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info",
    )


if __name__ == "__main__":
    main()
