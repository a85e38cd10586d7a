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

from enum import Enum

FIRST_VERSION = "v000001"
VERSION_PREFIX = "v"
VERSION_DIGITS = 6

# A zero status in the response envelope means the server processed the request
STATUS_SUCCESS = 0

# Name of the form field that carries the resource content
FILE_STREAM_NAME = "file"

DEFAULT_CLIENT_NAME = "BML-Client"
DEFAULT_DWS_VERSION = "v1"
DEFAULT_AUTH_TOKEN_KEY = "Validation-Code"
DEFAULT_AUTH_TOKEN_VALUE = "BML-AUTH"
TOKEN_USER_HEADER = "Token-User"

REST_PREFIX = "/api/rest_j"

DEFAULT_SCHEME = "file"
SCHEME_SEPARATOR = "://"

COPY_BUFFER_SIZE = 64 * 1024


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"


class Operation(str, Enum):
    """
    The operations the BML server understands. The value is the name of the operation as used in logs.
    """

    upload = "upload"
    update = "update"
    download = "download"
    get_versions = "getVersions"
    delete_resource = "deleteResource"
    create_project = "createBmlProject"
    upload_share_resource = "uploadShareResource"
    update_share_resource = "updateShareResource"
    download_share_resource = "downloadShareResource"
    attach_resource_and_project = "attachResourceAndProject"
    update_project_priv = "updateProjectPriv"
    change_owner = "changeOwner"
    copy_resource = "copyResourceToAnotherUser"
    rollback_version = "rollbackVersion"
