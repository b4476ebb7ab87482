#!/usr/bin/env python3
"""
Location Requests Backend - Run Script
This script starts the FastAPI geocoding service
"""

import os
import sys
import subprocess
from pathlib import Path

def print_colored(message, color="blue"):
    """Print colored output"""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "reset": "\033[0m"
    }
    print(f"{colors.get(color, '')}{message}{colors['reset']}")

def check_file_exists(filepath, error_message):
    """Check if a file exists"""
    if not Path(filepath).exists():
        print_colored(f"Error: {error_message}", "red")
        sys.exit(1)

def main():
    print_colored("Starting Location Requests backend...", "blue")

    check_file_exists(
        "location_requests/main.py",
        "location_requests/main.py not found. Please run this script from the backend directory."
    )

    # Defaults apply without a .env
    if not Path(".env").exists() and not Path("../.env").exists():
        print_colored("Warning: no .env file found, using default settings.", "yellow")
        print("Optional variables:")
        print("  GEOCODER_PROVIDER=nominatim   # or google")
        print("  GOOGLE_API_KEY=your_api_key_here")
        print("  REQUEST_TIMEOUT=10")
        print("  LOGGER=20")

    if not os.environ.get('VIRTUAL_ENV'):
        print_colored("Warning: virtual environment not activated.", "yellow")

    print_colored("Starting Uvicorn server...", "blue")
    print("Backend will be available at: http://localhost:8000")
    print("API Health check: http://localhost:8000/health")
    print("API Documentation: http://localhost:8000/docs")
    print()

    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "location_requests.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", "8000"
        ], check=True)
    except KeyboardInterrupt:
        print_colored("\nBackend server stopped.", "yellow")
    except subprocess.CalledProcessError as e:
        print_colored(f"\nError starting server: {e}", "red")
        sys.exit(1)

if __name__ == "__main__":
    main()
