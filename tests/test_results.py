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

import pytest

from bml.exceptions import ProtocolMismatchError
from bml.protocol import results
from bml.protocol.results import decode_result, result_type_for
from utils import envelope


@pytest.mark.parametrize(
    "method, expected",
    [
        ("/api/bml/upload", results.UploadResult),
        ("/api/rest_j/v1/bml/updateVersion", results.UpdateResult),
        ("/api/bml/updateProjectUsers/", results.UpdateProjectResult),
        ("/api/bml/rollbackVersion", results.RollbackVersionResult),
        ("/api/bml/somethingNew", results.BmlResult),
        (None, results.BmlResult),
    ],
)
def test_result_type_for(method, expected):
    assert result_type_for(method) is expected


def test_decode_upload():
    result = decode_result(envelope("upload", data={"resourceId": "r1", "version": "v000001"}), 200)
    assert isinstance(result, results.UploadResult)
    assert result.status == 0
    assert result.status_code == 200
    assert result.resource_id == "r1"
    assert result.version == "v000001"
    assert result.result_type == "BmlUploadResult"


def test_decode_failure_without_data():
    result = decode_result(envelope("updateVersion", status=1, data=None, message="no such resource"), 400)
    assert isinstance(result, results.UpdateResult)
    assert result.status == 1
    assert result.status_code == 400
    assert result.message == "no such resource"
    assert result.resource_id is None
    assert result.version is None


def test_decode_versions():
    data = {
        "ResourceVersions": {
            "resourceId": "r1",
            "user": "alice",
            "versions": [{"version": "v000001", "size": 5}, {"version": "v000002", "size": 6, "md5": "abc"}],
        }
    }
    result = decode_result(envelope("getVersions", data=data))
    assert isinstance(result, results.VersionsResult)
    assert result.resource_id == "r1"
    assert result.versions == ["v000001", "v000002"]


def test_decode_unknown_method():
    result = decode_result(envelope("somethingNew"))
    assert type(result) is results.BmlResult


@pytest.mark.parametrize("body", [[], {"method": "/api/bml/upload"}, "upload"])
def test_decode_no_envelope(body):
    with pytest.raises(ProtocolMismatchError):
        decode_result(body)


def test_decode_malformed_payload():
    with pytest.raises(ProtocolMismatchError):
        decode_result(envelope("getVersions", data={"ResourceVersions": {"versions": [{"size": 3}]}}))


def test_share_results_are_not_private_results():
    assert not issubclass(results.DownloadShareResult, results.DownloadResult)
    assert not issubclass(results.UploadShareResult, results.UploadResult)
