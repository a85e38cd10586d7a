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
Version tags have the form vNNNNNN. The tags are zero padded to a fixed width, so the lexicographic order of two tags
is the same as the order of their sequence numbers.
"""

import re
from typing import Optional

from bml import const

VERSION_RE = re.compile(r"^%s(\d{%d})$" % (const.VERSION_PREFIX, const.VERSION_DIGITS))


def is_valid(tag: Optional[str]) -> bool:
    return tag is not None and VERSION_RE.match(tag) is not None


def version_number(tag: str) -> int:
    """
    Return the sequence number of a version tag
    """
    match = VERSION_RE.match(tag)
    if match is None:
        raise ValueError(
            "%s is not a valid version, expected %s followed by %d digits" % (tag, const.VERSION_PREFIX, const.VERSION_DIGITS)
        )
    return int(match.group(1))


def is_newer(candidate: str, reference: str) -> bool:
    """
    True iff candidate is a later version than reference
    """
    return version_number(candidate) > version_number(reference)
