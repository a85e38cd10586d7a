# Copyright 2024 Inmanta
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# Contact: code@inmanta.com

"""
The protocol package contains the code that maps client operations on calls to the BML server.

    * actions: The immutable request of a single call and the builder to create it. The route table maps each
               operation on its http method and url.
    * results: The closed hierarchy of results the server answers with and the decoding of the response envelope.
    * responses: The values the client returns to its callers.
    * outcome: The single decision routine that turns a result into a response or a protocol mismatch.
    * transport: The transport interface the client depends on and its http implementation on top of tornado.
"""

# flake8: noqa: F401

from .actions import Action, ActionBuilder
from .outcome import expect_result, map_outcome
from .results import BmlResult, decode_result
from .transport import HttpTransport, Transport

__all__ = [
    "Action",
    "ActionBuilder",
    "expect_result",
    "map_outcome",
    "BmlResult",
    "decode_result",
    "HttpTransport",
    "Transport",
]
