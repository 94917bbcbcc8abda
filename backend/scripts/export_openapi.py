"""
Export the OpenAPI schema to docs/api/.

Generates both JSON and YAML versions of the OpenAPI specification from the
FastAPI application, for the frontend's API client generation.

Usage:
    python scripts/export_openapi.py [--output-dir docs/api]
"""

import argparse
import json
import os
import sys
from pathlib import Path

import yaml

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Settings require a secret key; schema export never signs tokens
os.environ.setdefault("SECRET_KEY", "openapi_export_secret_key_at_least_32_characters")

DEFAULT_OUTPUT_DIR = backend_dir.parent / "docs" / "api"


def export_openapi(output_dir: Path) -> dict:
    """Write openapi.json and openapi.yaml to ``output_dir`` and return the schema."""
    # Import app to trigger all route registrations
    from travel_planner.main import app

    openapi_schema = app.openapi()
    output_dir.mkdir(parents=True, exist_ok=True)

    json_path = output_dir / "openapi.json"
    yaml_path = output_dir / "openapi.yaml"

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(openapi_schema, f, indent=2, ensure_ascii=False)
    print(f"OpenAPI JSON exported to: {json_path}")

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(openapi_schema, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    print(f"OpenAPI YAML exported to: {yaml_path}")

    return openapi_schema


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the OpenAPI document")
    parser.add_argument("--output-dir", type=Path, default=DEFAULT_OUTPUT_DIR)
    args = parser.parse_args()

    openapi_schema = export_openapi(args.output_dir)

    print("\nAPI Summary:")
    print(f"  Title: {openapi_schema['info']['title']}")
    print(f"  Version: {openapi_schema['info']['version']}")
    print(f"  Endpoints: {len(openapi_schema['paths'])}")
    print(f"  Schemas: {len(openapi_schema.get('components', {}).get('schemas', {}))}")


if __name__ == "__main__":
    main()
