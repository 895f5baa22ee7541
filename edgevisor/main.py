import sys
import logging
from typing import List, Optional

# Basic console logger for messages BEFORE full setup is complete.
# This logger will be replaced by the full setup later.
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)-8s - [console] - %(message)s',
    stream=sys.stdout
)
log = logging.getLogger("console")

import edgevisor.settings as default_settings
import edgevisor.local.console as console
from edgevisor.log.setup import setup_logging
from edgevisor.local.supervisor.errors import SupervisorError


def main(argv: Optional[List[str]] = None) -> int:
    """
    The entry point for the container: `edgevisor {start|restart|status|block}`.

    :param argv: Command-line arguments without the program name.
    :return: The process exit code.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    setup_logging(logging.INFO)

    if not args:
        console.print_usage()
        return default_settings.EXIT_USAGE

    command, args = args[0], args[1:]
    try:
        return console.execute_command(command, args)
    except SupervisorError as e:
        log.critical(f"Startup failed (exit code {e.exit_code}): {e}", exc_info=True)
        return e.exit_code


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
