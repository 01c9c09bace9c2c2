"""Input validation for CLI arguments."""
import re
import sys

# Keys with a meaning of their own in the credentials file
RESERVED_NAMES = ("default", "workspaces")


def validate_workspace_name(name: str) -> None:
    """
    Validate a workspace name (the workspace's URL slug).

    Args:
        name: Workspace name to validate

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not name:
        print("Error: Workspace name cannot be empty", file=sys.stderr)
        print("\nWorkspace names must match: [a-zA-Z0-9_-]", file=sys.stderr)
        sys.exit(2)

    if not re.match(r'^[a-zA-Z0-9_-]+$', name):
        print(f"Error: Invalid workspace name '{name}'", file=sys.stderr)
        print("\nAllowed characters: letters, numbers, underscores (_), hyphens (-)", file=sys.stderr)
        print("Use the slug from your workspace URL, e.g. https://linear.app/<slug>", file=sys.stderr)
        sys.exit(2)

    if name in RESERVED_NAMES:
        print(f"Error: '{name}' is reserved and cannot be used as a workspace name", file=sys.stderr)
        sys.exit(2)


def validate_api_key(value: str) -> None:
    """
    Validate an API key is not empty.

    Raises:
        SystemExit with code 2 if validation fails
    """
    if not value or value.strip() == "":
        print("Error: No API key provided", file=sys.stderr)
        print("\nCreate one at https://linear.app/settings/account/security", file=sys.stderr)
        sys.exit(2)
