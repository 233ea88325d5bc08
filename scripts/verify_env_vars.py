import sys
from pathlib import Path

from dotenv import dotenv_values

from app.config import Settings


def find_settings_vars():
    """Environment variables the settings model reads."""
    return sorted(field.alias for field in Settings.model_fields.values() if field.alias)


def verify_against_env_file(path: str = ".env.example"):
    env_file = Path(path)
    if not env_file.exists():
        print(f"{path} not found")
        return 1

    deployed_vars = set(dotenv_values(env_file))
    code_vars = set(find_settings_vars())
    missing_in_file = sorted(code_vars - deployed_vars)
    unused_in_code = sorted(deployed_vars - code_vars)

    print("=== ENV VAR VERIFICATION ===")
    print(f"Settings read: {len(code_vars)} vars")
    print(f"{path} has: {len(deployed_vars)} vars")
    print("")
    if missing_in_file:
        print(f"MISSING IN {path} ({len(missing_in_file)}):")
        for v in missing_in_file:
            print(f"  - {v}")
    else:
        print(f"No missing vars against {path}.")
    print("")
    if unused_in_code:
        print(f"UNUSED IN CODE ({len(unused_in_code)}):")
        for v in unused_in_code:
            print(f"  - {v}")
    else:
        print("No unused vars.")
    return 0


if __name__ == "__main__":
    sys.exit(verify_against_env_file(*sys.argv[1:2]))
