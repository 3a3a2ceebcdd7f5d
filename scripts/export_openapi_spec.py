#!/usr/bin/env python3
"""Export the dashboard OpenAPI specification to a file for frontend development."""

import json
import os
import sys
from pathlib import Path

from app.main import app


def export_openapi_spec(output_path: str = "openapi.json") -> Path:
    """Export OpenAPI specification to a JSON file."""
    openapi_schema = app.openapi()

    output_file = Path(output_path)
    with open(output_file, "w") as f:
        json.dump(openapi_schema, f, indent=2)

    print(f"✅ OpenAPI specification exported to: {output_file.absolute()}")
    print(f"   File size: {output_file.stat().st_size:,} bytes")
    print(f"   Paths: {len(openapi_schema.get('paths', {}))}")

    return output_file


if __name__ == "__main__":
    output_path = os.getenv("OPENAPI_OUTPUT", "openapi.json")

    # Allow override via command line
    if len(sys.argv) > 1:
        output_path = sys.argv[1]

    export_openapi_spec(output_path)
