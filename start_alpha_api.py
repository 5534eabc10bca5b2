"""
Start Alpha Engine API Server

Quick start script for the Alpha Engine REST API.
"""

import uvicorn
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s'
)

LOG = logging.getLogger(__name__)


def main():
    """Start the API server"""

    print("=" * 80)
    print("ALPHAQUANT ALPHA ENGINE API")
    print("=" * 80)
    print()
    print("API Documentation: http://localhost:8002/docs")
    print()
    print("Available Endpoints:")
    print("  GET  /                  - API info")
    print("  GET  /config            - Current configuration")
    print("  GET  /schema/{family}   - Ordered factor names")
    print("  POST /compute/{family}  - Latest factor vector")
    print("  GET  /health            - Health status")
    print()
    print("Press CTRL+C to stop the server")
    print("=" * 80)
    print()

    try:
        uvicorn.run(
            "alphaquant.alpha_engine.api:app",
            host="0.0.0.0",
            port=8002,
            reload=False,
            log_level="info",
            access_log=True
        )
    except KeyboardInterrupt:
        print()
        print("API Server stopped")


if __name__ == "__main__":
    main()
