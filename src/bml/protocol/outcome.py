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
Every call to the server ends in exactly one of three outcomes:

1. the result has the shape the operation expects: its status decides between a successful and a failed response.
2. the result belongs to another operation: the client and the server disagree on the protocol.
3. the result is not a BML result at all: same as 2.

A failed response is an ordinary answer of the server. A protocol mismatch is a defect and is always raised.
"""

import logging
from typing import Optional, Type, TypeVar

from bml import const
from bml.exceptions import ProtocolMismatchError
from bml.protocol.responses import BmlResponse
from bml.protocol.results import BmlResult

LOGGER: logging.Logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BmlResult)
T = TypeVar("T", bound=BmlResponse)


def expect_result(result: object, expected: Type[R]) -> R:
    """
    Check that the result is of the expected variant

    :raises ProtocolMismatchError: the result is of another variant or no result at all
    """
    if isinstance(result, expected):
        return result

    if isinstance(result, BmlResult):
        LOGGER.error("result type %s not match %s", result.result_type, expected.result_type)
        raise ProtocolMismatchError(expected.result_type, result.result_type)

    raise ProtocolMismatchError(expected.result_type, type(result).__name__)


def map_outcome(result: object, expected: Type[R], response_type: Type[T], user: Optional[str]) -> T:
    """
    Turn the result of a call into the response of the operation

    :param result: The result the transport returned
    :param expected: The result variant the operation produces
    :param response_type: The response of the operation
    :param user: The user that performed the call, for logging
    :raises ProtocolMismatchError: the result is not of the expected variant
    """
    checked = expect_result(result, expected)
    if checked.status == const.STATUS_SUCCESS:
        return response_type.from_result(checked)

    LOGGER.error(
        "user %s %s failed, status is %d, status code is %d: %s",
        user,
        expected.result_type,
        checked.status,
        checked.status_code,
        checked.message,
    )
    return response_type.failed(checked)
