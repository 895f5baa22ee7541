import os
import json
import shutil
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Sequence
import edgevisor.settings as default_settings
from edgevisor.local.supervisor.errors import ConfigPatchError

if TYPE_CHECKING:
    from edgevisor.local.config import AgentEnvironment

log = logging.getLogger(__name__)


def set_key_path(document: Dict[str, Any], key_path: Sequence[str], value: Any) -> None:
    """
    Sets a nested value, creating missing intermediate objects.

    :param document: The parsed JSON document.
    :param key_path: Keys from the document root to the target field.
    :param value: The JSON-serializable value to write.
    :raises ConfigPatchError: If an intermediate value exists but is not an object.
    """
    node = document
    for depth, key in enumerate(key_path[:-1]):
        child = node.setdefault(key, {})
        if not isinstance(child, dict):
            dotted = ".".join(key_path[:depth + 1])
            raise ConfigPatchError(f"Cannot set '{'.'.join(key_path)}': '{dotted}' is not an object.")
        node = child
    node[key_path[-1]] = value
    log.debug(f"Config set: {'.'.join(key_path)} = {value!r}")


def alias_mac_instance_dir(instance_dir: Path, shared_root: Path) -> None:
    """
    Symlinks the instance directory to its copy under the Docker for Mac
    shared root, so the subdirectory checks see what the host bind-mounted.
    """
    if instance_dir.exists() or instance_dir.is_symlink():
        log.debug(f"Instance directory '{instance_dir}' already present, no alias needed.")
        return

    target = shared_root / instance_dir.relative_to(instance_dir.anchor)
    try:
        instance_dir.parent.mkdir(parents=True, exist_ok=True)
        instance_dir.symlink_to(target, target_is_directory=True)
        log.info(f"Aliased instance directory '{instance_dir}' -> '{target}'")
    except OSError as e:
        raise ConfigPatchError(f"Failed to alias '{instance_dir}' to '{target}': {e}") from e


def _load_document(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigPatchError(f"Failed to read config document '{path}': {e}") from e
    if not isinstance(document, dict):
        raise ConfigPatchError(f"Config document '{path}' is not a JSON object.")
    return document


def _write_document(path: Path, document: Dict[str, Any]) -> None:
    """Atomically replaces the config document."""
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open("w") as f:
            json.dump(document, f, indent=2)
            f.write("\n")
        os.replace(temp_path, path)
    except (OSError, TypeError, ValueError) as e:
        raise ConfigPatchError(f"Failed to write config document '{path}': {e}") from e
    finally:
        temp_path.unlink(missing_ok=True)


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + default_settings.CONFIG_BACKUP_SUFFIX)


def _backup_document(path: Path) -> None:
    """Keeps the pristine document. An existing backup is never overwritten."""
    backup = backup_path_for(path)
    if backup.exists():
        log.debug(f"Backup '{backup}' already exists, keeping it.")
        return
    try:
        shutil.copy2(path, backup)
        log.info(f"Saved original config to '{backup}'")
    except OSError as e:
        raise ConfigPatchError(f"Failed to back up config document to '{backup}': {e}") from e


def apply_container_settings(document: Dict[str, Any], env: "AgentEnvironment") -> None:
    """
    Applies the container-specific mutations to an in-memory document.

    :param document: The parsed config document, mutated in place.
    :param env: The runtime environment.
    """
    set_key_path(document, default_settings.LISTEN_ADDRESS_KEY, default_settings.LISTEN_ADDRESS)
    set_key_path(document, default_settings.MULTI_INSTANCE_KEY, True)

    endpoint = env.docker_endpoint
    if endpoint:
        set_key_path(document, default_settings.DOCKER_ENDPOINT_KEY, endpoint)

    instance_dir = env.instance_dir
    if env.is_mac_host:
        alias_mac_instance_dir(instance_dir, env.MAC_SHARED_ROOT)

    for subdir, (key_path, leaf) in default_settings.INSTANCE_SUBDIRS.items():
        subdir_path = instance_dir / subdir
        if not subdir_path.is_dir():
            log.debug(f"No '{subdir}' directory at '{subdir_path}', leaving {'.'.join(key_path)} untouched.")
            continue
        value = subdir_path / leaf if leaf else subdir_path
        set_key_path(document, key_path, str(value))


def patch_config(path: Path, env: "AgentEnvironment") -> None:
    """
    Reads the agent config document, applies the container settings and
    writes it back, preserving the original as a `.orig` backup.

    :param path: Path to the agent's JSON config document.
    :param env: The runtime environment.
    :raises ConfigPatchError: On any read, mutation or write failure.
    """
    log.info(f"Patching agent config at '{path}' for container '{env.CONTAINER_NAME}'...")
    document = _load_document(path)
    _backup_document(path)
    apply_container_settings(document, env)
    _write_document(path, document)
    log.info("Agent config patched.")
