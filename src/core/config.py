import pathlib
from dataclasses import dataclass, fields, replace

import yaml

""" src/core/config.py: Server configuration, read once at startup and passed to every service."""

CONFIG_PATH = pathlib.Path(__file__).resolve().parents[2] / "env" / "server.yml"


@dataclass(frozen=True)
class ServerConfig:
    http_port: int = 80
    https_port: int = 443
    bind_address: str = ""
    web_root: pathlib.Path = pathlib.Path("web")
    cert_file: pathlib.Path = pathlib.Path("/etc/letsencrypt/live/miksfamily.com/fullchain.pem")
    key_file: pathlib.Path = pathlib.Path("/etc/letsencrypt/live/miksfamily.com/privkey.pem")


_PORT_KEYS = ("http_port", "https_port")
_PATH_KEYS = ("web_root", "cert_file", "key_file")


def _check_port(key, value):
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    if not 0 <= value <= 65535:
        raise ValueError(f"{key} out of range: {value}")
    return value


def config_from_dict(data: dict | None) -> ServerConfig:
    """Validate a raw mapping (e.g. parsed YAML) into a ServerConfig."""
    if data is None:
        return ServerConfig()
    if not isinstance(data, dict):
        raise ValueError("Server config must be a mapping")

    known = {f.name for f in fields(ServerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    values = {}
    for key, value in data.items():
        if key in _PORT_KEYS:
            values[key] = _check_port(key, value)
        elif key in _PATH_KEYS:
            values[key] = pathlib.Path(str(value))
        else:
            values[key] = "" if value is None else str(value)

    return replace(ServerConfig(), **values)


def load_config(path=CONFIG_PATH) -> ServerConfig:
    path = pathlib.Path(path)
    if not path.exists():
        print(f"[INFO] No config file at {path}, using built-in defaults.")
        return ServerConfig()

    with open(path, 'r') as file:
        data = yaml.safe_load(file)
    return config_from_dict(data)
