"""
ShipTrack - FastAPI Application Entry Point
"""
from shiptrack.main import app, run

__all__ = ["app"]

if __name__ == "__main__":
    run()
