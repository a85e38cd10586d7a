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
The results the BML server answers with. The server wraps every answer in an envelope:

.. code-block:: json

    {"method": "/api/bml/upload", "status": 0, "message": "...", "data": {"resourceId": "...", "version": "v000001"}}

The ``method`` of the envelope selects the result variant, the ``data`` holds its payload. A status of 0 means the
server processed the request successfully.
"""

import logging
from typing import Any, ClassVar, Dict, Optional, Type

import pydantic
from pydantic import ConfigDict, Field

from bml import const
from bml.exceptions import ProtocolMismatchError
from bml.types import JsonType

LOGGER: logging.Logger = logging.getLogger(__name__)


class BmlResult(pydantic.BaseModel):
    """
    A result of a call to the BML server
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True, extra="ignore")

    result_type: ClassVar[str] = "BmlResult"

    method: Optional[str] = None
    status: int = const.STATUS_SUCCESS
    message: Optional[str] = None
    # the http status code, for diagnostics
    status_code: int = 200


class ResourceResult(BmlResult):
    """
    Base for results that identify a version of a resource
    """

    resource_id: Optional[str] = Field(default=None, alias="resourceId")
    version: Optional[str] = None


class UploadResult(ResourceResult):
    result_type = "BmlUploadResult"


class UpdateResult(ResourceResult):
    result_type = "BmlUpdateResult"


class UploadShareResult(ResourceResult):
    result_type = "BmlUploadShareResourceResult"


class UpdateShareResult(ResourceResult):
    result_type = "BmlUpdateShareResourceResult"


class RollbackVersionResult(ResourceResult):
    result_type = "BmlRollbackVersionResult"


class CopyResourceResult(BmlResult):
    result_type = "BmlCopyResourceResult"

    resource_id: Optional[str] = Field(default=None, alias="resourceId")


class ResourceVersion(pydantic.BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str
    size: Optional[int] = None
    updator: Optional[str] = None


class ResourceVersions(pydantic.BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    resource_id: Optional[str] = Field(default=None, alias="resourceId")
    user: Optional[str] = None
    versions: list[ResourceVersion] = []


class VersionsResult(BmlResult):
    """
    The versions of a resource, oldest first
    """

    result_type = "BmlResourceVersionResult"

    resource_versions: Optional[ResourceVersions] = Field(default=None, alias="ResourceVersions")

    @property
    def resource_id(self) -> Optional[str]:
        return self.resource_versions.resource_id if self.resource_versions else None

    @property
    def versions(self) -> Optional[list[str]]:
        if self.resource_versions is None:
            return None
        return [v.version for v in self.resource_versions.versions]


class DeleteResult(BmlResult):
    result_type = "BmlDeleteResult"


class CreateProjectResult(BmlResult):
    result_type = "BmlCreateBmlProjectResult"


class AttachResult(BmlResult):
    result_type = "BmlAttachResult"


class UpdateProjectResult(BmlResult):
    result_type = "BmlUpdateProjectResult"


class ChangeOwnerResult(BmlResult):
    result_type = "BmlChangeOwnerResult"


class StreamResult(BmlResult):
    """
    The content of a resource. Whoever reads the stream is responsible for closing it.
    """

    stream: Any = None
    # the transport level response the stream was obtained from
    response: Any = None


class DownloadResult(StreamResult):
    result_type = "BmlResourceDownloadResult"


class DownloadShareResult(StreamResult):
    result_type = "BmlDownloadShareResult"


# route of the server method -> result variant
RESULTS: Dict[str, Type[BmlResult]] = {
    "upload": UploadResult,
    "updateVersion": UpdateResult,
    "download": DownloadResult,
    "getVersions": VersionsResult,
    "deleteResource": DeleteResult,
    "createBmlProject": CreateProjectResult,
    "uploadShareResource": UploadShareResult,
    "updateShareResource": UpdateShareResult,
    "downloadShareResource": DownloadShareResult,
    "attachResourceAndProject": AttachResult,
    "updateProjectUsers": UpdateProjectResult,
    "changeOwner": ChangeOwnerResult,
    "copyResourceToAnotherUser": CopyResourceResult,
    "rollbackVersion": RollbackVersionResult,
}


def result_type_for(method: Optional[str]) -> Type[BmlResult]:
    """
    Find the result variant for the method reported by the server. Unknown methods map on the generic BmlResult.
    """
    if not method:
        return BmlResult
    route = method.rstrip("/").rsplit("/", 1)[-1]
    return RESULTS.get(route, BmlResult)


def decode_result(body: JsonType, status_code: int = 200) -> BmlResult:
    """
    Decode the envelope of a server answer into a result

    :raises ProtocolMismatchError: the envelope does not have the shape of a BML answer
    """
    if not isinstance(body, dict) or "status" not in body:
        raise ProtocolMismatchError(BmlResult.result_type, type(body).__name__)

    result_cls = result_type_for(body.get("method"))
    data = body.get("data")
    values: JsonType = dict(data) if isinstance(data, dict) else {}
    values.update(method=body.get("method"), status=body["status"], message=body.get("message"), status_code=status_code)

    try:
        return result_cls.model_validate(values)
    except pydantic.ValidationError as e:
        LOGGER.error("Unable to decode the answer of %s as %s: %s", body.get("method"), result_cls.result_type, e)
        raise ProtocolMismatchError(result_cls.result_type, "malformed %s" % result_cls.result_type)
