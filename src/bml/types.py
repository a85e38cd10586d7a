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

# This file defines named type definitions for the BML client

from collections.abc import Sequence
from typing import Any, Optional, Union

JsonType = dict[str, Any]

# Values that can be put in the json body of a request
PayloadType = Optional[Union[str, int, bool, Sequence[str]]]
