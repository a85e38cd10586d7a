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

import io
import logging
import uuid
from typing import Callable, Dict, List, Optional

from bml import const, version
from bml.protocol.actions import Action
from bml.protocol.results import BmlResult, DownloadResult, DownloadShareResult, decode_result
from bml.protocol.transport import Transport
from bml.types import JsonType

LOGGER = logging.getLogger(__name__)


def no_error_in_logs(caplog, levels=[logging.ERROR]):
    for logger_name, log_level, message in caplog.record_tuples:
        assert log_level not in levels, f"{logger_name} {log_level} {message}"


def log_contains(caplog, loggerpart, level, msg, test_phase="call"):
    close = []
    for record in caplog.get_records(test_phase):
        logger_name, log_level, message = record.name, record.levelno, record.message
        if msg in message:
            if loggerpart in logger_name and level == log_level:
                return
            else:
                close.append((logger_name, log_level, message))
    if close:
        print("found nearly matching log entry")
        for logger_name, log_level, message in close:
            print(logger_name, log_level, message)
        print("------------")

    assert False


def log_doesnt_contain(caplog, loggerpart, level, msg):
    for logger_name, log_level, message in caplog.record_tuples:
        if loggerpart in logger_name and level == log_level and msg in message:
            assert False


def envelope(route: str, status: int = 0, data: Optional[JsonType] = None, message: str = "OK") -> JsonType:
    """
    The answer of the server to a call of the given route
    """
    return {"method": "/api/bml/%s" % route, "status": status, "message": message, "data": data if data is not None else {}}


def next_version(tag: str) -> str:
    """
    The version the server assigns after the given one
    """
    return "%s%0*d" % (const.VERSION_PREFIX, const.VERSION_DIGITS, version.version_number(tag) + 1)


class TrackingStream(io.BytesIO):
    """
    A stream that remembers it was closed and can be told to fail while it is being read
    """

    def __init__(self, content: bytes = b"", fail_after: Optional[int] = None) -> None:
        super().__init__(content)
        self.fail_after = fail_after
        self.close_count = 0

    def read(self, size: int = -1) -> bytes:
        if self.fail_after is not None and self.tell() >= self.fail_after:
            raise IOError("connection reset while reading")
        if self.fail_after is not None and (size < 0 or self.tell() + size > self.fail_after):
            size = self.fail_after - self.tell()
        return super().read(size)

    def close(self) -> None:
        self.close_count += 1
        super().close()


class FakeResponse(object):
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


class Resource(object):
    def __init__(self, owner: str) -> None:
        self.owner = owner
        self.versions: Dict[str, bytes] = {}
        self.project: Optional[str] = None

    @property
    def latest(self) -> str:
        return list(self.versions.keys())[-1]

    def add_version(self, content: bytes) -> str:
        tag = const.FIRST_VERSION if not self.versions else next_version(self.latest)
        self.versions[tag] = content
        return tag


class FakeBmlServer(Transport):
    """
    A transport that answers calls from an in-memory BML server with the versioning semantics of the real server
    """

    def __init__(self) -> None:
        self.resources: Dict[str, Resource] = {}
        self.projects: Dict[str, JsonType] = {}
        self.actions: List[Action] = []
        self.closed = False
        # results to return, in order, instead of handling the calls
        self.scripted: List[object] = []
        # called with the stream of every download before it is returned
        self.stream_factory: Callable[[bytes], io.BytesIO] = TrackingStream
        self.responses: List[FakeResponse] = []
        self.streams: List[io.BytesIO] = []

    def execute(self, action: Action) -> BmlResult:
        self.actions.append(action)
        if self.scripted:
            return self.scripted.pop(0)
        handler = getattr(self, "_" + action.route.path)
        return handler(action)

    def close(self) -> None:
        self.closed = True

    @property
    def last_action(self) -> Action:
        return self.actions[-1]

    def _answer(self, action: Action, status: int = 0, data: Optional[JsonType] = None, message: str = "OK") -> BmlResult:
        return decode_result(envelope(action.route.path, status, data, message))

    def _refuse(self, action: Action, message: str) -> BmlResult:
        return self._answer(action, status=1, message=message)

    def _store(self, action: Action, resource: Resource) -> BmlResult:
        tag = resource.add_version(action.streams[const.FILE_STREAM_NAME].stream.read())
        resource_id = [k for k, v in self.resources.items() if v is resource][0]
        return self._answer(action, data={"resourceId": resource_id, "version": tag})

    def _new_resource(self, owner: str, content: bytes) -> str:
        resource_id = str(uuid.uuid4())
        resource = Resource(owner)
        resource.add_version(content)
        self.resources[resource_id] = resource
        return resource_id

    def _lookup(self, action: Action, key: str = "resourceId") -> Optional[Resource]:
        resource_id = action.parameters.get(key, action.payloads.get(key))
        return self.resources.get(resource_id)

    def _upload(self, action: Action) -> BmlResult:
        resource_id = str(uuid.uuid4())
        self.resources[resource_id] = Resource(action.user)
        return self._store(action, self.resources[resource_id])

    def _uploadShareResource(self, action: Action) -> BmlResult:
        if action.parameters["projectName"] not in self.projects:
            return self._refuse(action, "project does not exist")
        result = self._upload(action)
        self.resources[result.resource_id].project = action.parameters["projectName"]
        return result

    def _updateVersion(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None:
            return self._refuse(action, "resource does not exist")
        if resource.owner != action.user:
            return self._refuse(action, "%s is not the owner" % action.user)
        return self._store(action, resource)

    def _updateShareResource(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or resource.project is None:
            return self._refuse(action, "resource is not shared")
        if action.user not in self.projects[resource.project]["editUsers"]:
            return self._refuse(action, "%s can not edit" % action.user)
        return self._store(action, resource)

    def _stream(self, action: Action, result_cls: type) -> BmlResult:
        resource = self._lookup(action)
        tag = action.parameters.get("version")
        if resource is None or (tag is not None and tag not in resource.versions):
            return self._refuse(action, "resource or version does not exist")
        stream = self.stream_factory(resource.versions[tag or resource.latest])
        self.streams.append(stream)
        response = FakeResponse()
        self.responses.append(response)
        return result_cls(method="/api/bml/%s" % action.route.path, stream=stream, response=response)

    def _download(self, action: Action) -> BmlResult:
        return self._stream(action, DownloadResult)

    def _downloadShareResource(self, action: Action) -> BmlResult:
        return self._stream(action, DownloadShareResult)

    def _getVersions(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None:
            return self._refuse(action, "resource does not exist")
        versions = [{"version": tag, "size": len(content)} for tag, content in resource.versions.items()]
        return self._answer(
            action, data={"ResourceVersions": {"resourceId": action.parameters["resourceId"], "versions": versions}}
        )

    def _deleteResource(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or resource.owner != action.user:
            return self._refuse(action, "resource can not be deleted")
        del self.resources[action.parameters["resourceId"]]
        return self._answer(action)

    def _createBmlProject(self, action: Action) -> BmlResult:
        name = action.payloads["projectName"]
        if name in self.projects:
            return self._refuse(action, "project exists")
        self.projects[name] = {
            "creator": action.user,
            "editUsers": list(action.payloads["editUsers"]),
            "accessUsers": list(action.payloads["accessUsers"]),
        }
        return self._answer(action)

    def _attachResourceAndProject(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or action.payloads["projectName"] not in self.projects:
            return self._refuse(action, "resource or project does not exist")
        resource.project = action.payloads["projectName"]
        return self._answer(action)

    def _updateProjectUsers(self, action: Action) -> BmlResult:
        project = self.projects.get(action.payloads["projectName"])
        if project is None:
            return self._refuse(action, "project does not exist")
        project["editUsers"] = list(action.payloads["editUsers"])
        project["accessUsers"] = list(action.payloads["accessUsers"])
        return self._answer(action)

    def _changeOwner(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or resource.owner != action.payloads["oldOwner"]:
            return self._refuse(action, "owner can not be changed")
        resource.owner = action.payloads["newOwner"]
        return self._answer(action)

    def _copyResourceToAnotherUser(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or resource.owner != action.user:
            return self._refuse(action, "resource can not be copied")
        resource_id = self._new_resource(action.payloads["anotherUser"], resource.versions[resource.latest])
        return self._answer(action, data={"resourceId": resource_id})

    def _rollbackVersion(self, action: Action) -> BmlResult:
        resource = self._lookup(action)
        if resource is None or action.payloads["version"] not in resource.versions:
            return self._refuse(action, "version does not exist")
        tag = resource.add_version(resource.versions[action.payloads["version"]])
        return self._answer(action, data={"resourceId": action.payloads["resourceId"], "version": tag})
