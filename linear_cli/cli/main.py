"""CLI entrypoint for linear-cli."""
import argparse
import getpass
import logging
import os
import sys
import traceback

from ..credentials.domains.config_loader import ProjectConfig, load_env_file, resolve_api_key
from ..credentials.workflows.credential_store import CredentialStore
from ..errors import AuthError, CliError, ValidationError
from .validators import validate_api_key, validate_workspace_name

VERSION = "0.1.0"


def is_debug_mode() -> bool:
    """Check if debug output is enabled via LINEAR_DEBUG."""
    return os.getenv("LINEAR_DEBUG", "").lower() in ("1", "true")


# Configure logging to stderr
logging.basicConfig(
    level=logging.DEBUG if is_debug_mode() else logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _select_workspace(message, workspaces, current=None, marker="current"):
    """Prompt for one of the configured workspaces by number."""
    print(f"{message}:")
    for i, ws in enumerate(workspaces, start=1):
        suffix = f" ({marker})" if ws == current else ""
        print(f"{i}. {ws}{suffix}")

    choice = input(f"\nEnter choice (1-{len(workspaces)}): ").strip()
    if not choice.isdigit() or not 1 <= int(choice) <= len(workspaces):
        print("Invalid choice.", file=sys.stderr)
        sys.exit(2)
    return workspaces[int(choice) - 1]


def cmd_version(args, store):
    """Show version information."""
    print(f"linear-cli {VERSION}")


def cmd_auth_login(args, store):
    """Add a workspace credential."""
    validate_workspace_name(args.workspace)

    api_key = args.key
    if not api_key:
        print("Create an API key at https://linear.app/settings/account/security")
        api_key = getpass.getpass("Enter your Linear API key: ")
    validate_api_key(api_key)
    api_key = api_key.strip()

    already_exists = store.has_workspace(args.workspace)
    store.add_credential(args.workspace, api_key)

    if already_exists:
        print(f"Updated credentials for workspace: {args.workspace}")
    else:
        print(f"Logged in to workspace: {args.workspace}")

    if len(store.get_workspaces()) == 1:
        print("  Set as default workspace")

    if os.getenv("LINEAR_API_KEY"):
        print()
        print("Warning: LINEAR_API_KEY environment variable is set.")
        print("It takes precedence over stored credentials.")
        print("Remove it from your shell config to use multi-workspace auth.")


def cmd_auth_logout(args, store):
    """Remove a workspace credential."""
    workspaces = store.get_workspaces()
    if not workspaces:
        print("Error: No workspaces configured", file=sys.stderr)
        sys.exit(1)

    workspace = args.workspace
    if not workspace:
        if len(workspaces) == 1:
            workspace = workspaces[0]
        else:
            workspace = _select_workspace(
                "Select workspace to remove", workspaces,
                current=store.get_default_workspace(), marker="default"
            )

    if not store.has_workspace(workspace):
        print(f'Error: Workspace "{workspace}" not found', file=sys.stderr)
        sys.exit(1)

    if not args.force:
        response = input(f'Remove credentials for workspace "{workspace}"? (y/N): ').strip().lower()
        if response != 'y':
            print("Cancelled")
            return

    store.remove_credential(workspace)
    print(f"Removed credentials for workspace: {workspace}")

    new_default = store.get_default_workspace()
    if new_default:
        print(f"  Default workspace is now: {new_default}")


def cmd_auth_list(args, store):
    """List configured workspaces."""
    workspaces = store.get_workspaces()
    if not workspaces:
        print("No workspaces configured")
        print("Run `linear auth login` to add a workspace")
        return

    default = store.get_default_workspace()
    credentials = store.get_all_credentials()
    width = max(len("WORKSPACE"), *(len(ws) for ws in workspaces))

    print(f"  {'WORKSPACE'.ljust(width)} API KEY")
    for ws in workspaces:
        prefix = "* " if ws == default else "  "
        status = "stored" if ws in credentials else "missing (run `linear auth login`)"
        print(f"{prefix}{ws.ljust(width)} {status}")


def cmd_auth_default(args, store):
    """Set the default workspace."""
    workspaces = store.get_workspaces()
    if not workspaces:
        print("Error: No workspaces configured", file=sys.stderr)
        print("Run `linear auth login` to add a workspace", file=sys.stderr)
        sys.exit(1)

    if len(workspaces) == 1:
        print(f"Only one workspace configured: {workspaces[0]}")
        return

    current = store.get_default_workspace()
    workspace = args.workspace
    if not workspace:
        workspace = _select_workspace("Select default workspace", workspaces, current=current)

    if workspace == current:
        print(f'"{workspace}" is already the default workspace')
        return

    store.set_default_workspace(workspace)
    print(f"Default workspace set to: {workspace}")


def cmd_auth_token(args, store):
    """Print the API key that requests would use."""
    api_key = resolve_api_key(store, ProjectConfig(), args.api_key, args.workspace)
    if not api_key:
        raise AuthError(
            "No API key configured",
            suggestion="Set LINEAR_API_KEY, add api_key to .linear.yml, or run `linear auth login`.",
        )
    print(api_key)


def cmd_auth_path(args, store):
    """Show the credentials file location."""
    path = store.get_credentials_path()
    if path is None:
        raise CliError("Could not determine credentials path")
    print(path)


def build_parser():
    """Build the argument parser and its auth subcommands."""
    parser = argparse.ArgumentParser(
        prog="linear",
        description="linear-cli - Linear from the command line, with per-workspace credentials",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (secure storage, credentials file, no API key, etc.)
  2 - Usage error (invalid arguments, unknown workspace, etc.)

Environment variables:
  LINEAR_API_KEY   - API key (takes precedence over stored credentials)
  LINEAR_WORKSPACE - Workspace whose stored key should be used
  LINEAR_DEBUG     - Set to 1 for debug logging and tracebacks

Credentials:
  Workspace names are kept in ~/.config/linear/credentials.yml.
  API keys are kept in the OS secure storage (Keychain, Secret Service,
  or Windows Credential Manager), never in that file.
        """
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of linear-cli"
    )

    auth_parser = subparsers.add_parser(
        "auth",
        help="Manage workspace credentials",
        description="Add, remove and select workspace API keys"
    )
    auth_subparsers = auth_parser.add_subparsers(dest="auth_command")

    login_parser = auth_subparsers.add_parser(
        "login",
        help="Add a workspace credential",
        description="""
Store an API key for a workspace in the OS secure storage.

The first workspace added becomes the default. Logging in again to a
known workspace replaces its key.
        """
    )
    login_parser.add_argument(
        "-w", "--workspace",
        required=True,
        help="Workspace slug (format: [a-zA-Z0-9_-]+)"
    )
    login_parser.add_argument(
        "-k", "--key",
        help="API key (prompted if not provided)"
    )

    logout_parser = auth_subparsers.add_parser(
        "logout",
        help="Remove a workspace credential",
        description="Remove a workspace and clear its API key from secure storage"
    )
    logout_parser.add_argument("workspace", nargs="?", help="Workspace to remove")
    logout_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Skip confirmation prompt"
    )

    auth_subparsers.add_parser(
        "list",
        help="List configured workspaces",
        description="List configured workspaces; the default is marked with *"
    )

    default_parser = auth_subparsers.add_parser(
        "default",
        help="Set the default workspace",
        description="Set the workspace used when none is given explicitly"
    )
    default_parser.add_argument("workspace", nargs="?", help="Workspace to make the default")

    token_parser = auth_subparsers.add_parser(
        "token",
        help="Print the configured API token",
        description="""
Print the API key that would be used for requests.

Resolution order:
  1. --api-key, api_key in .linear.yml, LINEAR_API_KEY
  2. Stored key for --workspace
  3. Stored key for the workspace option (.linear.yml or LINEAR_WORKSPACE)
  4. Stored key for the default workspace
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    token_parser.add_argument("-w", "--workspace", help="Workspace whose stored key to use")
    token_parser.add_argument("--api-key", help="Explicit API key")

    auth_subparsers.add_parser(
        "path",
        help="Show credentials file path",
        description="Print the location of the credentials file"
    )

    return parser, auth_parser


AUTH_COMMANDS = {
    "login": cmd_auth_login,
    "logout": cmd_auth_logout,
    "list": cmd_auth_list,
    "default": cmd_auth_default,
    "token": cmd_auth_token,
    "path": cmd_auth_path,
}


def main(argv=None, store=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (secure storage, credentials file, missing API key, etc.)
        2 - Usage errors (invalid arguments, unknown workspace, etc.)
    """
    parser, auth_parser = build_parser()
    args = parser.parse_args(argv)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        if args.command == "version":
            cmd_version(args, store)
        elif args.command == "auth":
            handler = AUTH_COMMANDS.get(args.auth_command)
            if handler is None:
                auth_parser.print_help()
                sys.exit(2)
            load_env_file()
            if store is None:
                store = CredentialStore()
            handler(args, store)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except CliError as e:
        if is_debug_mode():
            traceback.print_exc()
        print(f"Error: {e.message}", file=sys.stderr)
        if e.suggestion:
            print(f"  {e.suggestion}", file=sys.stderr)
        sys.exit(2 if isinstance(e, ValidationError) else 1)
    except Exception as e:
        if is_debug_mode():
            traceback.print_exc()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
