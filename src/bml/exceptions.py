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

from typing import Optional


class BmlClientException(Exception):
    """
    Base class for all errors raised by the BML client
    """


class ConfigurationError(BmlClientException):
    """
    The client configuration is incomplete or invalid. Raised before any call is made.
    """


class InvalidArgument(BmlClientException):
    """
    The caller passed an argument the client can not work with, for example a file that can not be opened.
    """


class TransportError(BmlClientException):
    """
    The transport failed to deliver a request or to obtain a usable answer.
    """

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        msg = "Request to the BML server failed with code %d" % code
        if message is not None:
            msg += ": " + message

        super().__init__(msg)
        self.code = code


class ProtocolMismatchError(BmlClientException):
    """
    The server answered with a result that does not belong to the operation that was called. This always points to
    a version skew between client and server.
    """

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__("result type %s does not match %s" % (actual, expected))
        self.expected = expected
        self.actual = actual


class StreamCopyError(BmlClientException):
    """
    Copying a downloaded stream to its destination failed. The underlying I/O error is available as __cause__.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        msg = "failed to copy inputStream and outputStream"
        if message is not None:
            msg += ": " + message

        super().__init__(msg)


class NotImplementedOperation(BmlClientException, NotImplementedError):
    """
    The operation is declared by the client but not supported by the protocol yet.
    """

    def __init__(self, operation: str) -> None:
        super().__init__("%s is not implemented" % operation)
        self.operation = operation
