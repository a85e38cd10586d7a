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

import pytest

from bml.exceptions import ProtocolMismatchError
from bml.protocol import responses, results
from bml.protocol.outcome import expect_result, map_outcome
from utils import log_contains

OPERATIONS = [
    (results.UploadResult, responses.UploadResponse),
    (results.UpdateResult, responses.UpdateResponse),
    (results.RollbackVersionResult, responses.RollbackVersionResponse),
    (results.UploadShareResult, responses.UploadResponse),
    (results.UpdateShareResult, responses.UpdateResponse),
    (results.CopyResourceResult, responses.CopyResourceResponse),
    (results.VersionsResult, responses.VersionsResponse),
    (results.DownloadResult, responses.DownloadResponse),
    (results.DownloadShareResult, responses.DownloadResponse),
    (results.DeleteResult, responses.DeleteResponse),
    (results.CreateProjectResult, responses.CreateProjectResponse),
    (results.AttachResult, responses.AttachResourceAndProjectResponse),
    (results.UpdateProjectResult, responses.UpdateProjectPrivResponse),
    (results.ChangeOwnerResult, responses.ChangeOwnerResponse),
]


def payload_of(response: responses.BmlResponse) -> dict:
    return {name: value for name, value in response.model_dump().items() if name not in ("is_success", "status")}


@pytest.mark.parametrize("expected, response_type", OPERATIONS)
def test_success(expected, response_type):
    response = map_outcome(expected(status=0), expected, response_type, "alice")
    assert isinstance(response, response_type)
    assert response.is_success
    assert response.status == 0


@pytest.mark.parametrize("expected, response_type", OPERATIONS)
def test_failure_has_no_payload(caplog, expected, response_type):
    result = expected(status=1, message="denied", status_code=403)
    with caplog.at_level(logging.ERROR):
        response = map_outcome(result, expected, response_type, "alice")
    assert not response.is_success
    assert response.status == 1
    assert all(value is None for value in payload_of(response).values())
    log_contains(caplog, "bml.protocol.outcome", logging.ERROR, "user alice %s failed, status is 1" % expected.result_type)


def test_success_payload():
    result = results.UpdateResult(status=0, resource_id="r1", version="v000002")
    response = map_outcome(result, results.UpdateResult, responses.UpdateResponse, "alice")
    assert response.resource_id == "r1"
    assert response.version == "v000002"


def test_failure_drops_payload():
    result = results.UpdateResult(status=2, resource_id="r1", version="v000002")
    response = map_outcome(result, results.UpdateResult, responses.UpdateResponse, "alice")
    assert not response.is_success
    assert response.status == 2
    assert response.resource_id is None
    assert response.version is None


@pytest.mark.parametrize(
    "result, expected",
    [
        (results.UploadResult(status=0), results.UpdateResult),
        (results.DownloadShareResult(status=0), results.DownloadResult),
        (results.DownloadResult(status=0), results.DownloadShareResult),
        (results.BmlResult(status=0), results.DeleteResult),
    ],
)
def test_other_variant(caplog, result, expected):
    with pytest.raises(ProtocolMismatchError) as e:
        expect_result(result, expected)
    assert e.value.expected == expected.result_type
    assert e.value.actual == result.result_type
    log_contains(caplog, "bml.protocol.outcome", logging.ERROR, "not match %s" % expected.result_type)


@pytest.mark.parametrize("result", [None, "ok", {"status": 0}])
def test_not_a_result(result):
    with pytest.raises(ProtocolMismatchError):
        map_outcome(result, results.DeleteResult, responses.DeleteResponse, "alice")
