"""
Fatal setup errors. Each one carries the exit code the supervisor process
reports to the container runtime when startup is aborted.
"""
import edgevisor.settings as default_settings


class SupervisorError(Exception):
    """Base class for errors that abort supervisor startup."""
    exit_code = default_settings.EXIT_USAGE


class EnvironmentFileError(SupervisorError):
    """The optional environment file exists but could not be loaded."""
    exit_code = default_settings.EXIT_ENV_FILE


class ConfigPatchError(SupervisorError):
    """The agent config document could not be read, mutated or written back."""
    exit_code = default_settings.EXIT_CONFIG_PATCH


class SupervisorConfigError(SupervisorError):
    """A supervisor environment variable holds an unusable value."""
    exit_code = default_settings.EXIT_BAD_ENVIRONMENT
