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

"""
File system access on behalf of a proxy user. Paths carry the kind of file system they live on as a scheme prefix, for
example ``local:///tmp/out.txt`` or ``hdfs:///user/alice/out.txt``. A path without a scheme is a local path.

Only the local file system is provided here. Other kinds of file systems are plugged in with :func:`register_filesystem`.
"""

import abc
import logging
import os
import posixpath
import pwd
from collections.abc import Mapping
from typing import BinaryIO, Callable, Dict, List, Optional

from bml import const
from bml.exceptions import InvalidArgument

LOGGER = logging.getLogger(__name__)


class FsPath(object):
    """
    A path prefixed with the scheme of its file system
    """

    def __init__(self, path: str) -> None:
        if not path:
            raise InvalidArgument("path cannot be empty")
        self._full_path = path
        if const.SCHEME_SEPARATOR in path:
            scheme, self._path = path.split(const.SCHEME_SEPARATOR, 1)
            self._scheme = scheme.lower() or const.DEFAULT_SCHEME
        else:
            self._scheme = const.DEFAULT_SCHEME
            self._path = path

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def path(self) -> str:
        """The path without its scheme"""
        return self._path

    @property
    def name(self) -> str:
        return posixpath.basename(self._path)

    def __str__(self) -> str:
        return self._full_path

    def __repr__(self) -> str:
        return "FsPath(%r)" % self._full_path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FsPath):
            return NotImplemented
        return self._scheme == other._scheme and self._path == other._path

    def __hash__(self) -> int:
        return hash((self._scheme, self._path))


class FileSystem(abc.ABC):
    """
    A handle on a file system that performs all operations as the given proxy user. Streams opened through the handle are
    closed when the handle is closed.
    """

    def __init__(self, user: Optional[str]) -> None:
        self.user = user
        self._streams: List[BinaryIO] = []

    def init(self, params: Optional[Mapping[str, str]] = None) -> None:
        """
        Prepare the handle for use
        """

    @abc.abstractmethod
    def write(self, fs_path: FsPath, overwrite: bool) -> BinaryIO:
        """
        Open the path for writing

        :param overwrite: Replace an existing file. When false and the file exists, FileExistsError is raised.
        """

    @abc.abstractmethod
    def read(self, fs_path: FsPath) -> BinaryIO:
        """
        Open the path for reading
        """

    @abc.abstractmethod
    def exists(self, fs_path: FsPath) -> bool:
        pass

    def _track(self, stream: BinaryIO) -> BinaryIO:
        self._streams.append(stream)
        return stream

    def close(self) -> None:
        streams, self._streams = self._streams, []
        for stream in streams:
            if not stream.closed:
                stream.close()

    def __enter__(self) -> "FileSystem":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class LocalFileSystem(FileSystem):
    """
    The file system of this machine. When the process runs as root, files that are written are handed over to the proxy
    user. Otherwise the files are owned by the user running the process.
    """

    def _hand_over(self, path: str) -> None:
        if self.user is None or os.geteuid() != 0:
            return
        try:
            account = pwd.getpwnam(self.user)
        except KeyError:
            LOGGER.warning("Proxy user %s does not exist on this machine, %s stays owned by root", self.user, path)
            return
        os.chown(path, account.pw_uid, account.pw_gid)

    def write(self, fs_path: FsPath, overwrite: bool) -> BinaryIO:
        path = fs_path.path
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        LOGGER.debug("Opening %s for writing as user %s (overwrite=%s)", fs_path, self.user, overwrite)
        stream = open(path, "wb" if overwrite else "xb")
        try:
            self._hand_over(path)
        except OSError:
            stream.close()
            raise
        return self._track(stream)

    def read(self, fs_path: FsPath) -> BinaryIO:
        LOGGER.debug("Opening %s for reading as user %s", fs_path, self.user)
        return self._track(open(fs_path.path, "rb"))

    def exists(self, fs_path: FsPath) -> bool:
        return os.path.exists(fs_path.path)


FileSystemFactory = Callable[[Optional[str]], FileSystem]

_filesystems: Dict[str, FileSystemFactory] = {}


def register_filesystem(scheme: str, factory: FileSystemFactory) -> None:
    """
    Make a kind of file system available for paths with the given scheme
    """
    _filesystems[scheme.lower()] = factory


def get_fs_by_proxy_user(fs_path: FsPath, user: Optional[str]) -> FileSystem:
    """
    Get a handle on the file system of the path that acts as the given user

    :raises InvalidArgument: no file system is registered for the scheme of the path
    """
    factory = _filesystems.get(fs_path.scheme)
    if factory is None:
        raise InvalidArgument("No file system available for scheme %s of %s" % (fs_path.scheme, fs_path))
    return factory(user)


register_filesystem("file", LocalFileSystem)
register_filesystem("local", LocalFileSystem)
