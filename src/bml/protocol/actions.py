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

import logging
from collections import abc
from types import MappingProxyType
from typing import BinaryIO, Dict, NamedTuple, Optional

from bml import const
from bml.const import HttpMethod, Operation
from bml.types import PayloadType

LOGGER: logging.Logger = logging.getLogger(__name__)


class Route(NamedTuple):
    """
    How an operation is sent over the wire
    """

    method: HttpMethod
    path: str
    # True if the operation sends its content as multipart form data
    multipart: bool = False


ROUTES: Dict[Operation, Route] = {
    Operation.upload: Route(HttpMethod.POST, "upload", multipart=True),
    Operation.update: Route(HttpMethod.POST, "updateVersion", multipart=True),
    Operation.download: Route(HttpMethod.GET, "download"),
    Operation.get_versions: Route(HttpMethod.GET, "getVersions"),
    Operation.delete_resource: Route(HttpMethod.POST, "deleteResource"),
    Operation.create_project: Route(HttpMethod.POST, "createBmlProject"),
    Operation.upload_share_resource: Route(HttpMethod.POST, "uploadShareResource", multipart=True),
    Operation.update_share_resource: Route(HttpMethod.POST, "updateShareResource", multipart=True),
    Operation.download_share_resource: Route(HttpMethod.GET, "downloadShareResource"),
    Operation.attach_resource_and_project: Route(HttpMethod.POST, "attachResourceAndProject"),
    Operation.update_project_priv: Route(HttpMethod.POST, "updateProjectUsers"),
    Operation.change_owner: Route(HttpMethod.POST, "changeOwner"),
    Operation.copy_resource: Route(HttpMethod.POST, "copyResourceToAnotherUser"),
    Operation.rollback_version: Route(HttpMethod.POST, "rollbackVersion"),
}


class NamedStream(NamedTuple):
    """
    A stream sent as a file part, together with the file name it is declared with
    """

    file_name: str
    stream: BinaryIO


class Action(object):
    """
    A request to the BML server. Actions are immutable, use :class:`ActionBuilder` to create one.
    """

    def __init__(
        self,
        operation: Operation,
        user: Optional[str],
        parameters: abc.Mapping[str, str],
        payloads: abc.Mapping[str, PayloadType],
        streams: abc.Mapping[str, NamedStream],
    ) -> None:
        self._operation = operation
        self._user = user
        self._parameters = MappingProxyType(dict(parameters))
        self._payloads = MappingProxyType(dict(payloads))
        self._streams = MappingProxyType(dict(streams))

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def route(self) -> Route:
        return ROUTES[self._operation]

    @property
    def user(self) -> Optional[str]:
        return self._user

    @property
    def parameters(self) -> abc.Mapping[str, str]:
        return self._parameters

    @property
    def payloads(self) -> abc.Mapping[str, PayloadType]:
        return self._payloads

    @property
    def streams(self) -> abc.Mapping[str, NamedStream]:
        return self._streams

    def get_url(self, dws_version: str) -> str:
        return "%s/%s/bml/%s" % (const.REST_PREFIX, dws_version, self.route.path)

    def __repr__(self) -> str:
        return "Action<%s user=%s parameters=%s payloads=%s streams=%s>" % (
            self._operation.value,
            self._user,
            dict(self._parameters),
            dict(self._payloads),
            {name: named.file_name for name, named in self._streams.items()},
        )


class ActionBuilder(object):
    """
    Collects the arguments of a single call. Every method returns the builder so calls can be chained:

    .. code-block:: python

        action = ActionBuilder(Operation.download).user("alice").parameter("resourceId", resource_id).build()
    """

    def __init__(self, operation: Operation) -> None:
        if operation not in ROUTES:
            raise ValueError("No route is known for operation %s" % operation)
        self._operation = operation
        self._user: Optional[str] = None
        self._parameters: Dict[str, str] = {}
        self._payloads: Dict[str, PayloadType] = {}
        self._streams: Dict[str, NamedStream] = {}

    def user(self, user: Optional[str]) -> "ActionBuilder":
        self._user = user
        return self

    def parameter(self, name: str, value: Optional[str]) -> "ActionBuilder":
        """
        Add a parameter, empty values are not sent
        """
        if value:
            self._parameters[name] = value
        return self

    def payload(self, name: str, value: PayloadType) -> "ActionBuilder":
        if isinstance(value, abc.Sequence) and not isinstance(value, str):
            # user lists are copied so the action does not change when the caller reuses its list
            value = tuple(value)
        self._payloads[name] = value
        return self

    def stream(self, name: str, file_name: str, stream: BinaryIO) -> "ActionBuilder":
        if not ROUTES[self._operation].multipart:
            raise ValueError("Operation %s can not carry streams" % self._operation.value)
        self._streams[name] = NamedStream(file_name, stream)
        return self

    def build(self) -> Action:
        return Action(self._operation, self._user, self._parameters, self._payloads, self._streams)
