import copy
import dataclasses
import json
from typing import Any, Dict, Mapping, Type, TypeVar

CONFIG_FILENAME = "msh-config.json"
IDENTITY_LENGTH = 40

PLACEHOLDER_FILE_NAME = "<Server.FileName>"
PLACEHOLDER_START_PARAM = "<Commands.StartServerParam>"

T = TypeVar("T")


class ConfigError(Exception):
    """Raised when a configuration mapping has the wrong shape."""


@dataclasses.dataclass
class ServerConfig:
    folder: str = "{path/to/server/folder}"
    file_name: str = "{server.jar}"
    version: str = "1.19.2"
    protocol: int = 760


@dataclasses.dataclass
class CommandsConfig:
    start_server: str = (
        f"java {PLACEHOLDER_START_PARAM} -jar {PLACEHOLDER_FILE_NAME} nogui"
    )
    start_server_param: str = "-Xmx1024M -Xms1024M"
    stop_server: str = "stop"
    stop_server_allow_kill: int = 10


@dataclasses.dataclass
class MshConfig:
    id: str = ""
    debug: int = 1
    allow_suspend: bool = False
    info_hibernation: str = (
        "                   §fserver status:\n"
        "                   §b§lHIBERNATING"
    )
    info_starting: str = (
        "                   §fserver status:\n"
        "                    §6§lWARMING UP"
    )
    notify_update: bool = True
    notify_message: bool = True
    listen_port: int = 25555
    time_before_stopping_empty_server: int = 30


@dataclasses.dataclass
class Configuration:
    server: ServerConfig = dataclasses.field(default_factory=ServerConfig)
    commands: CommandsConfig = dataclasses.field(default_factory=CommandsConfig)
    msh: MshConfig = dataclasses.field(default_factory=MshConfig)

    def copy(self) -> "Configuration":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            section: {
                json_key: getattr(getattr(self, attr), field_name)
                for json_key, field_name in _SECTION_KEYS[section].items()
            }
            for section, attr in _SECTIONS.items()
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Configuration":
        if not isinstance(data, Mapping):
            raise ConfigError("config must be a JSON object")
        return cls(
            server=_parse_section(data, "Server", ServerConfig),
            commands=_parse_section(data, "Commands", CommandsConfig),
            msh=_parse_section(data, "Msh", MshConfig),
        )

    @classmethod
    def from_json(cls, text: str) -> "Configuration":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)


_SECTIONS = {"Server": "server", "Commands": "commands", "Msh": "msh"}

_SECTION_KEYS: Dict[str, Dict[str, str]] = {
    "Server": {
        "Folder": "folder",
        "FileName": "file_name",
        "Version": "version",
        "Protocol": "protocol",
    },
    "Commands": {
        "StartServer": "start_server",
        "StartServerParam": "start_server_param",
        "StopServer": "stop_server",
        "StopServerAllowKill": "stop_server_allow_kill",
    },
    "Msh": {
        "ID": "id",
        "Debug": "debug",
        "AllowSuspend": "allow_suspend",
        "InfoHibernation": "info_hibernation",
        "InfoStarting": "info_starting",
        "NotifyUpdate": "notify_update",
        "NotifyMessage": "notify_message",
        "ListenPort": "listen_port",
        "TimeBeforeStoppingEmptyServer": "time_before_stopping_empty_server",
    },
}


def _validate_value(value: Any, expected: Type[Any], scope: str) -> Any:
    # bool is a subclass of int; JSON true/false must not pass as numbers.
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            if isinstance(value, float) and value.is_integer():
                return int(value)
            raise ConfigError(f"{scope} must be an integer")
        return value
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigError(f"{scope} must be a boolean")
        return value
    if not isinstance(value, str):
        raise ConfigError(f"{scope} must be a string")
    return value


def _parse_section(data: Mapping[str, Any], section: str, cls: Type[T]) -> T:
    raw = data.get(section)
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise ConfigError(f"{section} must be a JSON object")
    # Field annotations are real types here (no postponed evaluation).
    field_types = {f.name: f.type for f in dataclasses.fields(cls)}  # type: ignore[arg-type]
    kwargs: Dict[str, Any] = {}
    for json_key, field_name in _SECTION_KEYS[section].items():
        if json_key not in raw:
            continue
        kwargs[field_name] = _validate_value(
            raw[json_key], field_types[field_name], f"{section}.{json_key}"
        )
    return cls(**kwargs)


def substitute_placeholders(config: Configuration) -> None:
    """Replace every placeholder occurrence in the start command template."""
    command = config.commands.start_server
    command = command.replace(PLACEHOLDER_FILE_NAME, config.server.file_name)
    command = command.replace(
        PLACEHOLDER_START_PARAM, config.commands.start_server_param
    )
    config.commands.start_server = command


def is_healthy_identity(identity: str) -> bool:
    return len(identity) == IDENTITY_LENGTH


__all__ = [
    "CONFIG_FILENAME",
    "CommandsConfig",
    "ConfigError",
    "Configuration",
    "IDENTITY_LENGTH",
    "MshConfig",
    "ServerConfig",
    "is_healthy_identity",
    "substitute_placeholders",
]
