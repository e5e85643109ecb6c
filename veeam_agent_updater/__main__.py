import argparse
import logging

from veeam_agent_updater.config.parser import ConfigParser, build_config, resolve_config_path
from veeam_agent_updater.core import executor
from veeam_agent_updater.core.errors import OperationCancelled, UpdaterError
from veeam_agent_updater.core.logger import SafeLogger
from veeam_agent_updater.core.models import HostRole, TargetHost
from veeam_agent_updater.core.validator import validate_config
from veeam_agent_updater.run_on_platform.windows import get_running_processes_by_name

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def log_level_type(level_str: str) -> str:
    level_upper = level_str.upper()
    if level_upper not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(f"Invalid log level supplied: {level_str}...")
    return level_upper


def positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Not a number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive: {value}")
    return number


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="veeam-agent-updater",
        description="Back up and replace VeeamAgent binaries on hosts registered in Veeam Backup & Replication",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
              veeam-agent-updater
              veeam-agent-updater proxy01.corp.local
              veeam-agent-updater vbr01 --role management --config C:\\Scripts\\agents.json
              veeam-agent-updater --simulation --verbosity info
        """
    )
    parser.add_argument("host", nargs="?", default=None,
                        help="Update only this host (name or address); all registered hosts when omitted")
    parser.add_argument("--role", choices=[r.value for r in HostRole], default=HostRole.ORDINARY.value,
                        help="Role of the single host: management gets all path groups (default: ordinary)")
    parser.add_argument("--config", default=None,
                        help="Configuration file path (default: config.json in current directory, if present)")
    parser.add_argument("--verbosity", type=log_level_type, default="INFO",
                        help="Log verbosity (case-insensitive): DEBUG, INFO, WARNING, ERROR, CRITICAL")
    parser.add_argument("--timeout", type=positive_float, default=None,
                        help="Seconds to wait for each remote existence check or copy")
    parser.add_argument("--simulation", action="store_true",
                        help="Run in simulation mode (check paths, copy nothing)")
    parser.add_argument("--yes", action="store_true",
                        help="Do not ask before stopping the backup service")
    parser.add_argument("--no-stop-service", action="store_true",
                        help="Do not stop the backup service (it is already stopped)")
    return parser


def main(argv=None):
    args = build_arg_parser().parse_args(argv)

    try:
        raw_config = ConfigParser(resolve_config_path(args.config)).load_config()
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    if args.timeout is not None:
        raw_config['timeout'] = args.timeout

    config_errors = validate_config(raw_config)
    if config_errors:
        print("Configuration errors:")
        for error in config_errors:
            print(f"  - {error}")
        return 1
    config = build_config(raw_config)

    try:
        safe_logger = SafeLogger(log_level=LOG_LEVELS[args.verbosity], log_file=config.log_file)
    except OSError as e:
        print(f"Error opening log file {config.log_file}: {e}")
        return 1
    safe_logger.start_run()
    logger = safe_logger.logger

    target = TargetHost(args.host, HostRole(args.role)) if args.host else None
    confirm = (lambda question: True) if args.yes else executor.ask_yes_no

    try:
        host_directory, service_controller, file_system = executor.build_collaborators(config)
        executor.run_update(
            config, host_directory, file_system, service_controller,
            confirm=confirm,
            target=target,
            stop_service=not args.no_stop_service,
            simulation_mode=args.simulation,
            find_processes=None if config.management_server else get_running_processes_by_name,
            logger=logger,
        )
        return 0
    except OperationCancelled as e:
        logger.critical(str(e))
        return 1
    except UpdaterError as e:
        logger.critical(f"Update aborted: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Operation interrupted by user")
        return 1
    except Exception as e:
        logger.critical(f"Unexpected error: {str(e)}")
        return 1
    finally:
        safe_logger.close()


if __name__ == "__main__":
    exit(main())
