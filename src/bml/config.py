"""
    Copyright 2024 Inmanta

    Licensed under the Apache License, Version 2.0 (the "License");
    you may not use this file except in compliance with the License.
    You may obtain a copy of the License at

        http://www.apache.org/licenses/LICENSE-2.0

    Unless required by applicable law or agreed to in writing, software
    distributed under the License is distributed on an "AS IS" BASIS,
    WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
    See the License for the specific language governing permissions and
    limitations under the License.

    Contact: code@inmanta.com
"""

import getpass
import logging
import os
from collections import abc, defaultdict
from configparser import ConfigParser, Interpolation
from typing import Callable, Dict, Generic, List, Optional, TypeVar, Union

import pydantic

from bml import const
from bml.exceptions import ConfigurationError

LOGGER = logging.getLogger(__name__)


def _normalize_name(name: str) -> str:
    return name.replace("_", "-")


def _get_from_env(section: str, name: str) -> Optional[str]:
    return os.environ.get(f"BML_{section}_{name}".replace("-", "_").upper(), default=None)


class LenientConfigParser(ConfigParser):
    def optionxform(self, name: str) -> str:
        name = _normalize_name(name)
        return super(LenientConfigParser, self).optionxform(name)


class Config(object):
    __instance: Optional[ConfigParser] = None
    __config_definition: Dict[str, Dict[str, "Option"]] = defaultdict(lambda: {})

    @classmethod
    def load_config(cls, config_file: Optional[str] = None, main_cfg_file: str = "/etc/bml/bml.cfg") -> None:
        """
        Load the configuration files. Files later in the list override options defined by earlier files.
        """
        files: List[str] = [main_cfg_file, os.path.expanduser("~/.bml.cfg"), ".bml.cfg"]
        if config_file is not None:
            files.append(config_file)

        config = LenientConfigParser(interpolation=Interpolation())
        config.read(files)
        cls.__instance = config

    @classmethod
    def _get_instance(cls) -> ConfigParser:
        if cls.__instance is None:
            cls.load_config()

        return cls.__instance

    @classmethod
    def _reset(cls) -> None:
        cls.__instance = None

    @classmethod
    def get(cls, section: str, name: str, default_value: object = None) -> object:
        """
        Get a value directly, an environment variable takes precedence over the config files
        """
        cfg = cls._get_instance()
        name = _normalize_name(name)

        opt = cls.validate_option_request(section, name)

        val = _get_from_env(section, name)
        if val is not None:
            LOGGER.debug("Setting %s:%s was set using an environment variable", section, name)
        else:
            val = cfg.get(section, name, fallback=default_value)

        if not opt:
            return val
        return opt.validate(val)

    @classmethod
    def set(cls, section: str, name: str, value: str) -> None:
        """
        Override a value
        """
        name = _normalize_name(name)

        if section not in cls._get_instance():
            cls._get_instance().add_section(section)
        cls._get_instance().set(section, name, value)

    @classmethod
    def register_option(cls, option: "Option") -> None:
        cls.__config_definition[option.section][option.name] = option

    @classmethod
    def validate_option_request(cls, section: str, name: str) -> Optional["Option"]:
        if section not in cls.__config_definition:
            LOGGER.warning("Config section %s not defined" % (section))
            return None
        if name not in cls.__config_definition[section]:
            LOGGER.warning("Config name %s not defined in section %s" % (name, section))
            return None
        return cls.__config_definition[section][name]


def is_int(value: str) -> int:
    """int"""
    return int(value)


def is_time(value: str) -> int:
    """Time, the number of seconds represented as an integer value"""
    return int(value)


def is_str(value: str) -> str:
    """str"""
    return str(value)


T = TypeVar("T")


class Option(Generic[T]):
    """
    Defines an option and exposes it for use

    :param section: section in the config file
    :param name: name of the option
    :param default: default value for this option
        the default value is either a value or a function.
        If it is a function, its return value is the actual default value
    :param documentation: the documentation for this option
    :param validator: a function responsible for turning the string representation of the option into the correct type.
    :param short_name: the key under which this option can be passed in the properties of a client
    """

    def __init__(
        self,
        section: str,
        name: str,
        default: Union[T, None, Callable[[], T]],
        documentation: str,
        validator: Callable[[str], T] = is_str,
        short_name: Optional[str] = None,
    ) -> None:
        self.section = section
        self.name = _normalize_name(name)
        self.validator = validator
        self.documentation = documentation
        self.default = default
        self.short_name = short_name
        Config.register_option(self)

    def get(self) -> T:
        return Config.get(self.section, self.name, self.get_default_value())

    def validate(self, value: object) -> T:
        if value is None:
            return None
        try:
            return self.validator(value)
        except ValueError as e:
            raise ConfigurationError("Invalid value for %s.%s: %s" % (self.section, self.name, e))

    def get_default_value(self) -> Optional[T]:
        defa = self.default
        if callable(defa):
            return defa()
        else:
            return defa

    def from_properties(self, properties: abc.Mapping[str, object]) -> T:
        """
        Resolve the value of this option, giving precedence to the client properties over the config files
        """
        if self.short_name is not None and self.short_name in properties:
            return self.validate(properties[self.short_name])
        return self.get()

    def set(self, value: str) -> None:
        """Only for tests"""
        Config.set(self.section, self.name, value)


def get_default_user() -> str:
    """``getpass.getuser()``"""
    return getpass.getuser()


#############################
# Client config
#############################
class ClientOptions(object):
    """
    A class to register the config options of a BML client
    """

    def __init__(self, section: str = "bml_client") -> None:
        self.section = section
        self.server_url = Option(
            section, "server_url", "", "The url of the gateway that exposes the BML server", is_str, "server.url"
        )
        self.dws_version = Option(
            section, "dws_version", const.DEFAULT_DWS_VERSION, "The version of the rest api", is_str, "dws.version"
        )
        self.max_connection_size = Option(
            section,
            "max_connection_size",
            10,
            "Maximum number of connections the http client keeps, calls of one client are still sent one at a time",
            is_int,
            "max.connection.size",
        )
        self.connection_timeout = Option(
            section, "connection_timeout", 300, "Timeout to set up a connection in seconds", is_time, "connection.timeout"
        )
        self.read_timeout = Option(
            section, "read_timeout", 600, "The time before a request times out in seconds", is_time, "connection.read.timeout"
        )
        self.auth_token_key = Option(
            section, "auth_token_key", const.DEFAULT_AUTH_TOKEN_KEY, "Header carrying the auth token", is_str, "auth.token.key"
        )
        self.auth_token_value = Option(
            section, "auth_token_value", const.DEFAULT_AUTH_TOKEN_VALUE, "The auth token", is_str, "auth.token.value"
        )
        self.client_name = Option(
            section, "client_name", const.DEFAULT_CLIENT_NAME, "Name of this client in logs", is_str, "client.name"
        )
        self.user = Option(section, "user", get_default_user, "The user bound to the client", is_str, "user")


client_options = ClientOptions()


class ClientConfig(pydantic.BaseModel):
    """
    The resolved configuration of the http transport. Discovery, load balancing and retries are never enabled and
    authentication always uses a token.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    server_url: str
    dws_version: str = const.DEFAULT_DWS_VERSION
    max_connection_size: int = 10
    connection_timeout: int = 300
    read_timeout: int = 600
    auth_token_key: str = const.DEFAULT_AUTH_TOKEN_KEY
    auth_token_value: str = const.DEFAULT_AUTH_TOKEN_VALUE
    client_name: str = const.DEFAULT_CLIENT_NAME

    @pydantic.field_validator("server_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def load(
        cls,
        server_url: Optional[str] = None,
        properties: Optional[abc.Mapping[str, object]] = None,
        options: ClientOptions = client_options,
    ) -> "ClientConfig":
        """
        Build the config from an explicit server url, the client properties and the config files, in that order of
        precedence.

        :raises ConfigurationError: when no server url is available
        """
        if properties is None:
            properties = {}

        url = server_url if server_url else options.server_url.from_properties(properties)
        if not url:
            raise ConfigurationError("serverUrl cannot be null.")

        try:
            return cls(
                server_url=url,
                dws_version=options.dws_version.from_properties(properties),
                max_connection_size=options.max_connection_size.from_properties(properties),
                connection_timeout=options.connection_timeout.from_properties(properties),
                read_timeout=options.read_timeout.from_properties(properties),
                auth_token_key=options.auth_token_key.from_properties(properties),
                auth_token_value=options.auth_token_value.from_properties(properties),
                client_name=options.client_name.from_properties(properties),
            )
        except pydantic.ValidationError as e:
            raise ConfigurationError(str(e))
