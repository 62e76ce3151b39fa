import os
import sys

from dotenv import load_dotenv


def main() -> None:
    """Run administrative tasks."""
    # Add the project root directory to the Python path
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)

    load_dotenv()
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

    # If running the dev server without an explicit port, default to 8788 to avoid 8000 conflicts
    if len(sys.argv) >= 2 and sys.argv[1] == "runserver":
        addr_arg = next((arg for arg in sys.argv[2:] if not arg.startswith("-")), None)
        if addr_arg is None:
            host = os.environ.get("DJANGO_HOST", "0.0.0.0")
            port = os.environ.get("DJANGO_PORT", "8788")
            sys.argv.append(f"{host}:{port}")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
