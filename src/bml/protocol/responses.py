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

from typing import Any, Optional

import pydantic
from pydantic import ConfigDict

from bml.protocol import results


class BmlResponse(pydantic.BaseModel):
    """
    The outcome of a client operation.

    :param is_success: True iff the server reported success. A failed response has all payload fields set to None.
    :param status: The status the server reported, 0 on success. None when the outcome did not come from the server.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    is_success: bool
    status: Optional[int] = None

    @classmethod
    def from_result(cls, result: results.BmlResult) -> "BmlResponse":
        """
        Build the successful response of an operation from its result
        """
        return cls(is_success=True, status=result.status)

    @classmethod
    def failed(cls, result: results.BmlResult) -> "BmlResponse":
        """
        Build the failed response of an operation. Only the status is kept, the payload is left empty.
        """
        return cls(is_success=False, status=result.status)


class ResourceResponse(BmlResponse):
    resource_id: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def from_result(cls, result: results.ResourceResult) -> "ResourceResponse":
        return cls(is_success=True, status=result.status, resource_id=result.resource_id, version=result.version)


class UploadResponse(ResourceResponse):
    pass


class UpdateResponse(ResourceResponse):
    pass


class RollbackVersionResponse(ResourceResponse):
    pass


class CopyResourceResponse(BmlResponse):
    """
    :param resource_id: The id of the new resource that holds the copy
    """

    resource_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: results.CopyResourceResult) -> "CopyResourceResponse":
        return cls(is_success=True, status=result.status, resource_id=result.resource_id)


class VersionsResponse(BmlResponse):
    """
    :param versions: The versions of the resource as returned by the server, oldest first
    """

    resource_id: Optional[str] = None
    versions: Optional[list[str]] = None

    @classmethod
    def from_result(cls, result: results.VersionsResult) -> "VersionsResponse":
        return cls(is_success=True, status=result.status, resource_id=result.resource_id, versions=result.versions)


class DownloadResponse(BmlResponse):
    """
    :param input_stream: The content of the resource, only set when no destination path was given. The caller must
        close it.
    :param full_file_name: The path the content was written to, only set when a destination path was given.
    """

    input_stream: Any = None
    resource_id: Optional[str] = None
    version: Optional[str] = None
    full_file_name: Optional[str] = None

    @classmethod
    def from_result(cls, result: results.StreamResult) -> "DownloadResponse":
        return cls(is_success=True, status=result.status, input_stream=result.stream)


class DeleteResponse(BmlResponse):
    pass


class CreateProjectResponse(BmlResponse):
    pass


class AttachResourceAndProjectResponse(BmlResponse):
    pass


class UpdateProjectPrivResponse(BmlResponse):
    pass


class ChangeOwnerResponse(BmlResponse):
    pass
